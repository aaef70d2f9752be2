"""
Image reference parsing.

Parses ``[domain/]path[:tag][@digest]`` strings and normalizes them the way
the Docker CLI does: a missing domain becomes ``docker.io`` and single
component Docker Hub names gain the ``library/`` prefix.
"""

import re
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .exceptions import InvalidReferenceError

DEFAULT_DOMAIN = "docker.io"
LEGACY_DEFAULT_DOMAIN = "index.docker.io"
OFFICIAL_REPO_NAME = "library"
DEFAULT_TAG = "latest"
NAME_TOTAL_LENGTH_MAX = 255

_ALPHA_NUMERIC = r"[a-z0-9]+"
_SEPARATOR = r"(?:[._]|__|-+)"
_NAME_COMPONENT = rf"{_ALPHA_NUMERIC}(?:{_SEPARATOR}{_ALPHA_NUMERIC})*"
_DOMAIN_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_IPV6_ADDRESS = r"\[[a-fA-F0-9:]+\]"
_DOMAIN = rf"(?:{_DOMAIN_COMPONENT}(?:\.{_DOMAIN_COMPONENT})*|{_IPV6_ADDRESS})(?::[0-9]+)?"
_PATH = rf"{_NAME_COMPONENT}(?:/{_NAME_COMPONENT})*"
_TAG = r"[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}"

REFERENCE_RE = re.compile(rf"^((?:{_DOMAIN}/)?{_PATH})(?::({_TAG}))?(?:@({_DIGEST}))?$")
ANCHORED_NAME_RE = re.compile(rf"^(?:({_DOMAIN})/)?({_PATH})$")
ANCHORED_IDENTIFIER_RE = re.compile(r"^[a-f0-9]{64}$")

# Hex lengths of the digest algorithms we accept.
DIGEST_HEX_LENGTHS = {"sha256": 64, "sha384": 96, "sha512": 128}


@dataclass(frozen=True)
class NamedReference:
    """A normalized repository reference with an optional tag and digest."""

    domain: str
    path: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    @property
    def name(self) -> str:
        """Fully qualified repository name, e.g. ``docker.io/library/busybox``."""
        return f"{self.domain}/{self.path}"

    @property
    def familiar_name(self) -> str:
        """Short repository name as users type it, e.g. ``busybox``."""
        if self.domain != DEFAULT_DOMAIN:
            return self.name
        head, _, rest = self.path.partition("/")
        if head == OFFICIAL_REPO_NAME and rest and "/" not in rest:
            return rest
        return self.path

    def is_name_only(self) -> bool:
        return self.tag is None and self.digest is None

    def with_default_tag(self) -> "NamedReference":
        """Return this reference, tagged ``latest`` if it has no tag or digest."""
        if self.is_name_only():
            return replace(self, tag=DEFAULT_TAG)
        return self

    def familiar_string(self) -> str:
        return self._with_suffix(self.familiar_name)

    def _with_suffix(self, name: str) -> str:
        if self.tag:
            name = f"{name}:{self.tag}"
        if self.digest:
            name = f"{name}@{self.digest}"
        return name

    def __str__(self) -> str:
        return self._with_suffix(self.name)


def split_docker_domain(name: str) -> Tuple[str, str]:
    """
    Split a reference into its registry domain and the remainder.

    The first path component is only treated as a domain when it looks like
    a host (contains ``.`` or ``:``, or is ``localhost``).

    Args:
        name: Reference string, possibly without a domain

    Returns:
        Tuple of (domain, remainder)
    """
    head, sep, rest = name.partition("/")
    if not sep or (not any(c in head for c in ".:") and head != "localhost"):
        domain, remainder = DEFAULT_DOMAIN, name
    else:
        domain, remainder = head, rest

    if domain == LEGACY_DEFAULT_DOMAIN:
        domain = DEFAULT_DOMAIN
    if domain == DEFAULT_DOMAIN and "/" not in remainder:
        remainder = f"{OFFICIAL_REPO_NAME}/{remainder}"
    return domain, remainder


def parse(value: str) -> NamedReference:
    """
    Parse a fully qualified reference string without normalizing it.

    Raises:
        InvalidReferenceError: If the string is not a valid reference
    """
    match = REFERENCE_RE.match(value)
    if match is None:
        if not value:
            raise InvalidReferenceError(
                value, "repository name must have at least one component"
            )
        if REFERENCE_RE.match(value.lower()):
            raise InvalidReferenceError(value, "repository name must be lowercase")
        raise InvalidReferenceError(value, "invalid reference format")

    name, tag, digest = match.groups()
    if len(name) > NAME_TOTAL_LENGTH_MAX:
        raise InvalidReferenceError(
            value,
            f"repository name must not be more than {NAME_TOTAL_LENGTH_MAX} characters",
        )
    if digest:
        _validate_digest(value, digest)

    domain, path = ANCHORED_NAME_RE.match(name).groups()
    return NamedReference(domain=domain or "", path=path, tag=tag, digest=digest)


def parse_normalized_named(value: str) -> NamedReference:
    """
    Parse a reference the way users type it and return its normalized form.

    ``busybox`` becomes ``docker.io/library/busybox``, ``index.docker.io``
    is rewritten to ``docker.io``, and other registries are kept verbatim.

    Args:
        value: Reference string such as ``myrepo/app:1.0``

    Returns:
        The normalized NamedReference

    Raises:
        InvalidReferenceError: If the reference is malformed, uppercase or
            a bare 64 character image identifier
    """
    if not value:
        raise InvalidReferenceError(
            value, "repository name must have at least one component"
        )
    if ANCHORED_IDENTIFIER_RE.match(value):
        raise InvalidReferenceError(
            value, "cannot specify 64-byte hexadecimal strings"
        )

    domain, remainder = split_docker_domain(value)
    remote_name = remainder.split(":", 1)[0]
    if remote_name.lower() != remote_name:
        raise InvalidReferenceError(value, "repository name must be lowercase")

    try:
        return parse(f"{domain}/{remainder}")
    except InvalidReferenceError as e:
        raise InvalidReferenceError(value, e.reason) from None


def _validate_digest(value: str, digest: str) -> None:
    algorithm, _, encoded = digest.partition(":")
    expected = DIGEST_HEX_LENGTHS.get(algorithm)
    if expected is None:
        raise InvalidReferenceError(value, f"unsupported digest algorithm {algorithm}")
    if len(encoded) != expected or not re.fullmatch(r"[a-f0-9]+", encoded):
        raise InvalidReferenceError(value, "invalid checksum digest format")
