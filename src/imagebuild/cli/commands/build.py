"""imagebuild build command - build, squash, tag and push one image."""

import asyncio
from pathlib import Path
from typing import Dict, List, Optional

import docker
import docker.errors
import typer
from rich.console import Console

from ...build.backend import Backend
from ...build.docker_component import DockerImageComponent
from ...build.docker_engine import DockerBuildManager
from ...build.models import BuildConfig, BuildOptions
from ...build.registry import DefaultRegistryService, load_auth_configs
from ...config import ImageBuildSettings, get_settings
from ...core.progress import ProgressWriter

# Status messages go to stderr; stdout carries build output and the image id
console = Console(stderr=True)


def parse_key_values(items: List[str], option: str) -> Dict[str, str]:
    """
    Parse repeated KEY=VALUE options.

    Raises:
        typer.BadParameter: If an item has no ``=`` or an empty key
    """
    values = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(
                f"expected KEY=VALUE, got {item!r}", param_hint=option
            )
        values[key] = value
    return values


def create_backend(settings: ImageBuildSettings) -> Backend:
    """Wire a Backend to the local Docker daemon."""
    client = docker.from_env()
    return Backend(
        image_component=DockerImageComponent(client),
        build_manager=DockerBuildManager(client),
        registry_service=DefaultRegistryService.from_settings(settings),
    )


def build_command(
    context: Path,
    dockerfile: str,
    tags: List[str],
    push_as: str,
    squash: bool,
    build_args: List[str],
    labels: List[str],
    target: Optional[str],
    platform: Optional[str],
    no_cache: bool,
    pull: bool,
    json_progress: bool,
):
    """
    Build an image and apply the finishing steps.

    Examples:
      imagebuild build . -t app:dev                 # Build and tag
      imagebuild build . --push-as registry/app:1   # Build, tag and push
      imagebuild build . -t app:dev --squash        # Squash before tagging
    """
    settings = get_settings()
    options = BuildOptions(
        tags=tags,
        push_as=push_as,
        squash=squash,
        auth_configs=load_auth_configs(settings.docker_config_file),
        context_path=context,
        dockerfile=dockerfile,
        build_args=parse_key_values(build_args, "--build-arg"),
        labels=parse_key_values(labels, "--label"),
        target=target,
        platform=platform,
        no_cache=no_cache,
        pull=pull,
    )
    config = BuildConfig(
        options=options,
        progress_writer=ProgressWriter.from_stream(
            json_format=json_progress or settings.json_progress
        ),
    )

    try:
        backend = create_backend(settings)
    except docker.errors.DockerException as e:
        console.print(f"[red]Error:[/red] cannot connect to Docker: {e}")
        raise typer.Exit(1)

    output = asyncio.run(backend.build(config))
    if not output.success:
        console.print(f"[red]Error:[/red] {output.error}")
        if output.image_id:
            console.print(f"Image was built as {output.image_id}")
        raise typer.Exit(1)

    typer.echo(output.image_id)
