"""
Docker registry resolution.

Maps references to the registry index that serves them and selects the
credentials to use for that index.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

import docker.auth
import docker.errors

from ..config import ImageBuildSettings, get_settings
from ..core.exceptions import RegistryResolutionError
from ..core.reference import NamedReference
from .models import AuthConfig

log = logging.getLogger(__name__)

LOOPBACK_HOSTS = ("localhost", "::1")


@dataclass(frozen=True)
class IndexInfo:
    """A registry index and how to talk to it."""

    name: str
    secure: bool = True
    official: bool = False


@dataclass(frozen=True)
class RepositoryInfo:
    """A repository and the index serving it."""

    name: NamedReference
    index: IndexInfo
    official: bool = False


def split_host(index_name: str) -> str:
    """Return the host part of ``host[:port]``, unbracketing IPv6 literals."""
    if index_name.startswith("["):
        return index_name[1:].split("]", 1)[0]
    return index_name.rsplit(":", 1)[0] if ":" in index_name else index_name


class DefaultRegistryService:
    """Resolve repositories using the Docker SDK naming rules."""

    def __init__(self, insecure_registries: Iterable[str] = ()):
        """
        Initialize registry service.

        Args:
            insecure_registries: Registry hosts (optionally with port) that
                are reached over plain HTTP
        """
        self.insecure_registries = frozenset(insecure_registries)

    @classmethod
    def from_settings(
        cls, settings: Optional[ImageBuildSettings] = None
    ) -> "DefaultRegistryService":
        settings = settings or get_settings()
        return cls(insecure_registries=settings.insecure_registries)

    def resolve_repository(self, reference: NamedReference) -> RepositoryInfo:
        """
        Resolve the index serving reference.

        Args:
            reference: Normalized reference to resolve

        Returns:
            RepositoryInfo for the reference

        Raises:
            RegistryResolutionError: If the index name is invalid
        """
        try:
            index_name, _ = docker.auth.resolve_repository_name(reference.name)
        except docker.errors.InvalidRepository as e:
            raise RegistryResolutionError(
                f"cannot resolve repository {reference.name}: {e}"
            ) from e

        index = self.new_index_info(index_name)
        official = index.official and "/" not in reference.familiar_name
        log.debug(f"Resolved {reference.name} to index {index.name}")
        return RepositoryInfo(name=reference, index=index, official=official)

    def new_index_info(self, index_name: str) -> IndexInfo:
        return IndexInfo(
            name=index_name,
            secure=not self.is_insecure(index_name),
            official=index_name == docker.auth.INDEX_NAME,
        )

    def is_insecure(self, index_name: str) -> bool:
        """Check whether an index should be reached without TLS."""
        host = split_host(index_name)
        if index_name in self.insecure_registries or host in self.insecure_registries:
            return True
        return host in LOOPBACK_HOSTS or host.startswith("127.")


def resolve_auth_config(
    auth_configs: Mapping[str, AuthConfig], index: IndexInfo
) -> AuthConfig:
    """
    Pick the credentials for index from a registry-keyed map.

    Keys may be bare hosts or URLs such as ``https://index.docker.io/v1/``;
    they are compared by hostname. A miss returns the empty AuthConfig.
    """
    resolved = docker.auth.resolve_authconfig(
        {"auths": dict(auth_configs)}, registry=index.name
    )
    if resolved is None:
        log.debug(f"No credentials configured for {index.name}")
        return AuthConfig()
    return resolved


def load_auth_configs(config_path: Optional[Path] = None) -> Dict[str, AuthConfig]:
    """
    Load registry credentials from the Docker CLI config file.

    Registries handled by ``credsStore`` or ``credHelpers`` are looked up
    through the configured credential helper; their ``auths`` entries are
    empty placeholders. A helper that cannot be run leaves that registry
    anonymous.

    Args:
        config_path: Path to config.json (defaults to Docker's lookup rules)

    Returns:
        Credentials keyed by registry
    """
    config = docker.auth.load_config(
        config_path=str(config_path) if config_path else None
    )
    registries = list(config.auths) + [
        registry for registry in config.cred_helpers if registry not in config.auths
    ]

    auth_configs = {}
    for registry in registries:
        entry = config.auths.get(registry) or {}
        if config.get_credential_store(registry):
            try:
                entry = config.resolve_authconfig(registry) or entry
            except docker.errors.DockerException as e:
                log.warning(f"Cannot read credentials for {registry}: {e}")
        auth_configs[registry] = AuthConfig.model_validate(entry)
    return auth_configs
