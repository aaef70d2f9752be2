"""
Docker image store operations.

Squash, tag and push images through the Docker Engine API.
"""

import asyncio
import json
import logging
import tempfile
from typing import Any, Dict, List, Optional

import docker
import docker.errors

from ..core.exceptions import ImageComponentError, PushError
from ..core.progress import JSONMessage, ProgressOutput, decode_json_lines
from ..core.reference import NamedReference
from ..core.utils.stringid import truncate_id
from .models import AuthConfig, ImageID

log = logging.getLogger(__name__)

# Command used to create the throwaway container for images without one.
PLACEHOLDER_COMMAND = ["true"]


# Healthcheck duration fields, in nanoseconds, and their HEALTHCHECK flags.
HEALTHCHECK_DURATIONS = (
    ("Interval", "--interval"),
    ("Timeout", "--timeout"),
    ("StartPeriod", "--start-period"),
    ("StartInterval", "--start-interval"),
)


def healthcheck_instruction(healthcheck: Dict[str, Any]) -> Optional[str]:
    """Render an image Healthcheck as a HEALTHCHECK instruction."""
    test = healthcheck.get("Test") or []
    if not test:
        return None
    if test[0] == "NONE":
        return "HEALTHCHECK NONE"

    flags = [
        f"{flag}={healthcheck[key] / 1e9:g}s"
        for key, flag in HEALTHCHECK_DURATIONS
        if healthcheck.get(key)
    ]
    if healthcheck.get("Retries"):
        flags.append(f"--retries={healthcheck['Retries']}")

    if test[0] == "CMD-SHELL":
        command = " ".join(test[1:])
    else:
        command = json.dumps(test[1:])
    return " ".join(["HEALTHCHECK", *flags, "CMD", command])


def image_config_changes(config: Dict[str, Any]) -> List[str]:
    """
    Translate an image config into Dockerfile instructions for an import.

    Args:
        config: The ``Config`` section of an image inspect result

    Returns:
        Instructions such as ``ENV PATH="/usr/bin"`` or ``CMD ["sh"]``
    """
    changes = []
    for env in config.get("Env") or []:
        key, _, value = env.partition("=")
        changes.append(f"ENV {key}={json.dumps(value)}")
    if config.get("Entrypoint"):
        changes.append(f"ENTRYPOINT {json.dumps(config['Entrypoint'])}")
    if config.get("Cmd"):
        changes.append(f"CMD {json.dumps(config['Cmd'])}")
    if config.get("WorkingDir"):
        changes.append(f"WORKDIR {config['WorkingDir']}")
    if config.get("User"):
        changes.append(f"USER {config['User']}")
    for port in config.get("ExposedPorts") or {}:
        changes.append(f"EXPOSE {port}")
    for key, value in (config.get("Labels") or {}).items():
        changes.append(f"LABEL {json.dumps(key)}={json.dumps(value)}")
    for volume in config.get("Volumes") or {}:
        changes.append(f"VOLUME {json.dumps([volume])}")
    if config.get("StopSignal"):
        changes.append(f"STOPSIGNAL {config['StopSignal']}")
    healthcheck = healthcheck_instruction(config.get("Healthcheck") or {})
    if healthcheck:
        changes.append(healthcheck)
    for trigger in config.get("OnBuild") or []:
        changes.append(f"ONBUILD {trigger}")
    return changes


class DockerImageComponent:
    """Image component backed by the Docker daemon."""

    def __init__(self, client: Optional[docker.DockerClient] = None):
        """
        Initialize image component.

        Args:
            client: Docker client (defaults to docker.from_env())
        """
        self.client = client or docker.from_env()

    async def squash_image(self, from_id: str, to_id: str) -> str:
        return await asyncio.to_thread(self._squash_image, from_id, to_id)

    async def tag_image_with_reference(
        self, image_id: ImageID, reference: NamedReference
    ) -> None:
        await asyncio.to_thread(self._tag_image, image_id, reference)

    async def push_image(
        self,
        image: str,
        tag: str,
        meta_headers: Dict[str, List[str]],
        auth_config: AuthConfig,
        output: ProgressOutput,
    ) -> None:
        await asyncio.to_thread(
            self._push_image, image, tag, meta_headers, auth_config, output
        )

    def _squash_image(self, from_id: str, to_id: str) -> str:
        """
        Flatten from_id into a single layer image with the same config.

        The daemon API has no layer-level squash, so the whole filesystem
        is exported and re-imported; layers shared with to_id are not kept.
        """
        if to_id:
            log.warning(
                f"Squashing {truncate_id(from_id)} into a single layer; "
                f"layers shared with base {truncate_id(to_id)} are not preserved"
            )

        try:
            config = self.client.api.inspect_image(from_id).get("Config") or {}
            command = (
                None if config.get("Cmd") or config.get("Entrypoint") else PLACEHOLDER_COMMAND
            )
            container = self.client.api.create_container(from_id, command=command)
            try:
                with tempfile.TemporaryFile() as rootfs:
                    for chunk in self.client.api.export(container["Id"]):
                        rootfs.write(chunk)
                    rootfs.seek(0)
                    response = self.client.api.import_image_from_data(
                        rootfs, changes=image_config_changes(config)
                    )
            finally:
                self.client.api.remove_container(container["Id"], force=True)
        except docker.errors.APIError as e:
            raise ImageComponentError(
                f"failed to flatten {truncate_id(from_id)}: {e.explanation or e}"
            ) from e

        squashed_id = self._imported_image_id(response)
        log.info(f"Squashed {truncate_id(from_id)} into {truncate_id(squashed_id)}")
        return squashed_id

    def _imported_image_id(self, response: str) -> str:
        for event in reversed(decode_json_lines(response)):
            message = JSONMessage.model_validate(event)
            if message.error:
                raise ImageComponentError(message.error)
            if message.status and message.status.startswith("sha256:"):
                return message.status
        raise ImageComponentError(f"unexpected import response: {response!r}")

    def _tag_image(self, image_id: ImageID, reference: NamedReference) -> None:
        log.debug(f"Tagging image: {truncate_id(image_id)} -> {reference}")
        try:
            tagged = self.client.api.tag(
                image_id, reference.name, tag=reference.tag, force=True
            )
        except docker.errors.APIError as e:
            raise ImageComponentError(
                f"failed to tag {truncate_id(image_id)} as {reference}: {e.explanation or e}"
            ) from e
        if not tagged:
            raise ImageComponentError(
                f"failed to tag {truncate_id(image_id)} as {reference}"
            )

    def _push_image(
        self,
        image: str,
        tag: str,
        meta_headers: Dict[str, List[str]],
        auth_config: AuthConfig,
        output: ProgressOutput,
    ) -> None:
        if meta_headers:
            log.warning("Extra registry headers are not supported by the Docker API; ignoring")

        log.info(f"Pushing to registry: {image}")
        try:
            events = self.client.api.push(
                image,
                tag=tag or None,
                stream=True,
                decode=True,
                auth_config=auth_config.model_dump(exclude_none=True),
            )
            for event in events:
                message = JSONMessage.model_validate(event)
                if message.error:
                    raise PushError(message.error)
                output.write_progress(message)
        except docker.errors.APIError as e:
            raise PushError(f"Docker push failed: {e.explanation or e}") from e

        log.info("Image pushed successfully")
