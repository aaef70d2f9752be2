"""Protocols for the collaborators the build backend drives."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Protocol

if TYPE_CHECKING:
    from ..core.progress import ProgressOutput
    from ..core.reference import NamedReference
    from .models import AuthConfig, BuildConfig, BuildResult, ImageID
    from .registry import RepositoryInfo


class BuildManager(Protocol):
    """Build engine that turns a build request into an image."""

    async def build(self, config: BuildConfig) -> BuildResult:
        """
        Run the build described by config.

        Args:
            config: Build options and the progress writer for this build

        Returns:
            BuildResult with the image id and the base image, if any

        Raises:
            Exception: Any failure; the backend treats it as fatal
        """
        ...


class ImageComponent(Protocol):
    """Image store operations needed to finish a build."""

    async def squash_image(self, from_id: str, to_id: str) -> str:
        """
        Squash image from_id onto its base image to_id.

        Args:
            from_id: Id of the freshly built image
            to_id: Id of the base image, or "" when built from scratch

        Returns:
            Id of the squashed image
        """
        ...

    async def tag_image_with_reference(
        self, image_id: ImageID, reference: NamedReference
    ) -> None:
        """Point reference at image_id."""
        ...

    async def push_image(
        self,
        image: str,
        tag: str,
        meta_headers: Dict[str, List[str]],
        auth_config: AuthConfig,
        output: ProgressOutput,
    ) -> None:
        """
        Push image to its registry.

        Args:
            image: Full reference to push; may already carry the tag
            tag: Explicit tag, or "" to use the one in image
            meta_headers: Extra HTTP headers for the registry
            auth_config: Credentials for the target registry
            output: Sink for push progress events
        """
        ...


class RegistryService(Protocol):
    """Resolves references to registry index information."""

    def resolve_repository(self, reference: NamedReference) -> RepositoryInfo:
        ...
