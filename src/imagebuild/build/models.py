"""
Data carried through one build.

BuildOptions and AuthConfig are pydantic models so they can be loaded from
CLI flags, JSON or the Docker config file; the per-build containers are
plain dataclasses.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, NewType, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..core.progress import ProgressWriter

# Identifier type expected by the tagging path. Engine and push code use
# plain strings; convert with ImageID(...) only where tags are applied.
ImageID = NewType("ImageID", str)


class AuthConfig(BaseModel):
    """
    Credentials for one registry index. The empty model means anonymous.

    Accepts both the lowercase keys of ``config.json`` entries and the
    capitalized keys the Docker SDK produces for tokens and credential
    store lookups.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    username: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("username", "Username")
    )
    password: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("password", "Password")
    )
    auth: Optional[str] = None
    email: Optional[str] = None
    serveraddress: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("serveraddress", "ServerAddress")
    )
    identitytoken: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("identitytoken", "IdentityToken")
    )
    registrytoken: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("registrytoken", "RegistryToken")
    )

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class BuildOptions(BaseModel):
    """Options for a single build request."""

    model_config = ConfigDict(frozen=True)

    tags: List[str] = Field(default_factory=list)
    push_as: str = ""
    squash: bool = False
    auth_configs: Dict[str, AuthConfig] = Field(default_factory=dict)

    # Engine options, consumed by the build engine only
    context_path: Optional[Path] = None
    dockerfile: str = "Dockerfile"
    build_args: Dict[str, str] = Field(default_factory=dict)
    labels: Dict[str, str] = Field(default_factory=dict)
    target: Optional[str] = None
    platform: Optional[str] = None
    no_cache: bool = False
    pull: bool = False


@dataclass(frozen=True)
class BuildConfig:
    """Everything one build call needs."""

    options: BuildOptions
    progress_writer: ProgressWriter


@dataclass(frozen=True)
class BaseImage:
    """The image a build started from."""

    image_id: str


@dataclass(frozen=True)
class BuildResult:
    """Result reported by the build engine.

    ``from_image`` is None when the build started from scratch.
    """

    image_id: str
    from_image: Optional[BaseImage] = None


@dataclass
class BuildOutput:
    """Outcome of a full build: final image id plus the reported error."""

    image_id: str
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> str:
        """
        Re-raise the reported error, if any.

        Returns:
            The final image id when the build succeeded
        """
        if self.error is not None:
            raise self.error
        return self.image_id


__all__ = [
    "AuthConfig",
    "BaseImage",
    "BuildConfig",
    "BuildOptions",
    "BuildOutput",
    "BuildResult",
    "ImageID",
]
