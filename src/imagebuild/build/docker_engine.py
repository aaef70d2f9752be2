"""
Docker image building operations.

Builds images through the Docker Engine API with platform targeting.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, Optional

import docker
import docker.errors

from ..core.exceptions import BuildEngineError
from ..core.progress import JSONMessage, ProgressWriter
from ..core.utils.stringid import truncate_id
from .models import BaseImage, BuildConfig, BuildResult

log = logging.getLogger(__name__)


class DockerBuildManager:
    """Build engine backed by the Docker daemon."""

    def __init__(self, client: Optional[docker.DockerClient] = None):
        """
        Initialize build manager.

        Args:
            client: Docker client (defaults to docker.from_env())
        """
        self.client = client or docker.from_env()

    async def build(self, config: BuildConfig) -> BuildResult:
        return await asyncio.to_thread(self._build, config)

    def _build(self, config: BuildConfig) -> BuildResult:
        options = config.options
        if options.context_path is None:
            raise BuildEngineError("no build context given")

        log.info(f"Building Docker image from {options.context_path}")
        log.info(f"   Dockerfile: {options.dockerfile}")
        if options.platform:
            log.info(f"   Platform: {options.platform}")

        try:
            events = self.client.api.build(
                path=str(options.context_path),
                dockerfile=options.dockerfile,
                buildargs=dict(options.build_args) or None,
                labels=dict(options.labels) or None,
                target=options.target,
                platform=options.platform,
                nocache=options.no_cache,
                pull=options.pull,
                rm=True,
                decode=True,
            )
            image_id = self._consume_events(events, config.progress_writer)
        except docker.errors.APIError as e:
            raise BuildEngineError(f"Docker build failed: {e.explanation or e}") from e

        if not image_id:
            raise BuildEngineError("build finished without producing an image")

        log.info(f"Image built successfully: {truncate_id(image_id)}")
        return BuildResult(image_id=image_id, from_image=self._resolve_from_image(image_id))

    def _consume_events(
        self, events: Iterable[Dict[str, Any]], writer: ProgressWriter
    ) -> Optional[str]:
        """Forward build output and return the id announced by the daemon."""
        image_id = None
        for event in events:
            message = JSONMessage.model_validate(event)
            if message.error:
                raise BuildEngineError(message.error)
            if message.stream is not None:
                writer.stdout_formatter.write(message.stream)
            elif message.aux and "ID" in message.aux:
                image_id = message.aux["ID"]
            elif message.status:
                writer.progress_output.write_progress(message)
        return image_id

    def _resolve_from_image(self, image_id: str) -> Optional[BaseImage]:
        """
        Find the image the build started from.

        The nearest ancestor in the history that carries a repository tag
        is taken as the base; no such ancestor means the build started
        from scratch.
        """
        try:
            history = self.client.api.history(image_id)
        except docker.errors.APIError as e:
            raise BuildEngineError(
                f"cannot read history of {truncate_id(image_id)}: {e.explanation or e}"
            ) from e

        for entry in history[1:]:
            ancestor_id = entry.get("Id")
            if entry.get("Tags") and ancestor_id and ancestor_id != "<missing>":
                log.debug(f"Base image: {truncate_id(ancestor_id)}")
                return BaseImage(image_id=ancestor_id)

        log.debug("Image was built from scratch")
        return None
