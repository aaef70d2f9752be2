"""Configuration management for imagebuild."""

import os
from pathlib import Path
from typing import NamedTuple, Optional, Tuple


class ImageBuildSettings(NamedTuple):
    """Settings read from the environment."""

    docker_config_file: Optional[Path]
    insecure_registries: Tuple[str, ...]
    json_progress: bool


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def get_settings() -> ImageBuildSettings:
    """
    Get settings from environment variables.

    Environment variables:
        DOCKER_CONFIG: Directory holding the Docker CLI config.json
        IMAGEBUILD_INSECURE_REGISTRIES: Comma separated registry hosts
        IMAGEBUILD_JSON_PROGRESS: Emit JSON progress lines (true/false)

    Returns:
        ImageBuildSettings instance
    """
    docker_config_dir = os.getenv("DOCKER_CONFIG")
    docker_config_file = (
        Path(docker_config_dir) / "config.json" if docker_config_dir else None
    )
    insecure_registries = tuple(
        host.strip()
        for host in os.getenv("IMAGEBUILD_INSECURE_REGISTRIES", "").split(",")
        if host.strip()
    )

    return ImageBuildSettings(
        docker_config_file=docker_config_file,
        insecure_registries=insecure_registries,
        json_progress=_env_flag("IMAGEBUILD_JSON_PROGRESS"),
    )
