"""
Build backend.

Runs one build end to end: build engine, optional squash, tagging and
optional push to a registry.
"""

import logging
from typing import Mapping, Optional, TextIO, Union

from ..core.exceptions import InvalidReferenceError, SquashError
from ..core.progress import StreamFormatter, new_progress_output
from ..core.reference import parse_normalized_named
from ..core.utils.stringid import truncate_id
from .models import AuthConfig, BuildConfig, BuildOutput, BuildResult, ImageID
from .protocol import BuildManager, ImageComponent, RegistryService
from .registry import DefaultRegistryService, resolve_auth_config
from .tagger import Tagger

log = logging.getLogger(__name__)


class Backend:
    """
    Orchestrate the finishing steps of an image build.

    This class coordinates:
    1. Tag validation
    2. The build engine
    3. Optional squashing against the base image
    4. Tagging
    5. Optional push of the push-as reference

    Failures never escape ``build``; they are reported in the returned
    BuildOutput.
    """

    def __init__(
        self,
        image_component: ImageComponent,
        build_manager: BuildManager,
        registry_service: Optional[RegistryService] = None,
    ):
        """
        Initialize build backend with its collaborators.

        Args:
            image_component: Image store used to squash, tag and push
            build_manager: Build engine producing the image
            registry_service: Repository resolver (defaults to environment-based)
        """
        self.image_component = image_component
        self.build_manager = build_manager
        self.registry_service = registry_service or DefaultRegistryService.from_settings()

    async def build(self, config: BuildConfig) -> BuildOutput:
        """
        Build an image and apply the finishing steps.

        Args:
            config: Build options and progress writer

        Returns:
            BuildOutput with the final image id and the reported error. The
            id is empty when the build, squash or tag validation failed.
        """
        options = config.options
        tags = list(options.tags)
        if options.push_as:
            tags.append(options.push_as)

        stdout = config.progress_writer.stdout_formatter
        try:
            tagger = Tagger(self.image_component, stdout, tags)
        except InvalidReferenceError as e:
            log.error(f"Invalid build tag: {e}")
            return BuildOutput(image_id="", error=e)

        try:
            build = await self.build_manager.build(config)
        except Exception as e:
            log.error(f"Build failed: {e}")
            return BuildOutput(image_id="", error=e)

        image_id = build.image_id
        if options.squash:
            try:
                image_id = await squash_build(build, self.image_component)
            except SquashError as e:
                log.error(str(e))
                return BuildOutput(image_id="", error=e)

        stdout.write(f"Successfully built {truncate_id(image_id)}\n")

        tag_error: Optional[Exception] = None
        try:
            await tagger.tag_images(ImageID(image_id))
        except Exception as e:
            tag_error = e

        if options.push_as:
            try:
                await self._push_image(options.push_as, options.auth_configs, stdout)
            except Exception as e:
                log.error(f"Failed to push {options.push_as}: {e}")
                if tag_error is not None:
                    log.warning(f"Tag error superseded by push error: {tag_error}")
                return BuildOutput(image_id=image_id, error=e)

        return BuildOutput(image_id=image_id, error=tag_error)

    async def _push_image(
        self,
        push_as: str,
        auth_configs: Mapping[str, AuthConfig],
        output: Union[StreamFormatter, TextIO],
    ) -> None:
        """
        Push the push-as reference to the registry it resolves to.

        Args:
            push_as: Reference to push, e.g. ``registry.example.com/app:1.0``
            auth_configs: Credentials keyed by registry
            output: Sink the push progress is derived from

        Raises:
            InvalidReferenceError: If push_as cannot be parsed
            RegistryResolutionError: If its registry cannot be resolved
            Exception: Whatever the image component's push raises
        """
        reference = parse_normalized_named(push_as)
        repo_info = self.registry_service.resolve_repository(reference)
        auth_config = resolve_auth_config(auth_configs, repo_info.index)

        log.info(f"Pushing {reference} to {repo_info.index.name}")
        await self.image_component.push_image(
            str(reference), "", {}, auth_config, new_progress_output(output)
        )


async def squash_build(build: BuildResult, image_component: ImageComponent) -> str:
    """
    Squash a built image onto the image it was built from.

    Args:
        build: Result from the build engine
        image_component: Image store performing the squash

    Returns:
        Id of the squashed image

    Raises:
        SquashError: Wrapping whatever the squash raised
    """
    from_id = build.from_image.image_id if build.from_image is not None else ""
    try:
        return await image_component.squash_image(build.image_id, from_id)
    except Exception as e:
        raise SquashError(e) from e
