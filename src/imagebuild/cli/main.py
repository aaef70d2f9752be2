"""Main CLI entry point for imagebuild."""

from importlib import metadata
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console


def get_version() -> str:
    """Get the package version from metadata."""
    try:
        return metadata.version("imagebuild")
    except metadata.PackageNotFoundError:
        return "unknown"


console = Console()

# command: imagebuild
app = typer.Typer(
    name="imagebuild",
    help="Build container images, then squash, tag and push them",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# command: imagebuild <command>


@app.command("build")
def build_cmd(
    context: Path = typer.Argument(
        ..., exists=True, file_okay=False, help="Build context directory"
    ),
    dockerfile: str = typer.Option(
        "Dockerfile", "--file", "-f", help="Dockerfile path inside the context"
    ),
    tags: Optional[List[str]] = typer.Option(
        None, "--tag", "-t", help="Name and optional tag (name:tag), repeatable"
    ),
    push_as: str = typer.Option(
        "", "--push-as", help="Tag the image with this reference and push it"
    ),
    squash: bool = typer.Option(False, "--squash", help="Squash the built layers"),
    build_args: Optional[List[str]] = typer.Option(
        None, "--build-arg", help="Build-time variable KEY=VALUE, repeatable"
    ),
    labels: Optional[List[str]] = typer.Option(
        None, "--label", help="Image label KEY=VALUE, repeatable"
    ),
    target: Optional[str] = typer.Option(None, "--target", help="Build stage to stop at"),
    platform: Optional[str] = typer.Option(None, "--platform", help="Target platform"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Do not use the build cache"),
    pull: bool = typer.Option(False, "--pull", help="Always pull newer base images"),
    json_progress: bool = typer.Option(
        False, "--json", help="Print progress as JSON lines"
    ),
):
    """Build an image from CONTEXT and apply the finishing steps."""
    from .commands.build import build_command

    return build_command(
        context=context,
        dockerfile=dockerfile,
        tags=tags or [],
        push_as=push_as,
        squash=squash,
        build_args=build_args or [],
        labels=labels or [],
        target=target,
        platform=platform,
        no_cache=no_cache,
        pull=pull,
        json_progress=json_progress,
    )


@app.command("version")
def version_cmd():
    """Show the installed version."""
    console.print(f"imagebuild v{get_version()}")


if __name__ == "__main__":
    app()
