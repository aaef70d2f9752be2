"""
imagebuild build pipeline.

Components:
    - Backend: runs the build engine, then squash, tag and push
    - Tagger: applies tag references to the final image
    - DefaultRegistryService: resolves references to registry indexes
    - DockerBuildManager / DockerImageComponent: Docker daemon adapters

Usage:
    from imagebuild.build import Backend, BuildConfig, BuildOptions
"""

from .backend import Backend, squash_build
from .docker_component import DockerImageComponent
from .docker_engine import DockerBuildManager
from .models import (
    AuthConfig,
    BaseImage,
    BuildConfig,
    BuildOptions,
    BuildOutput,
    BuildResult,
    ImageID,
)
from .protocol import BuildManager, ImageComponent, RegistryService
from .registry import (
    DefaultRegistryService,
    IndexInfo,
    RepositoryInfo,
    load_auth_configs,
    resolve_auth_config,
)
from .tagger import Tagger

__all__ = [
    # Orchestration
    "Backend",
    "Tagger",
    "squash_build",
    # Data
    "AuthConfig",
    "BaseImage",
    "BuildConfig",
    "BuildOptions",
    "BuildOutput",
    "BuildResult",
    "ImageID",
    # Collaborator protocols
    "BuildManager",
    "ImageComponent",
    "RegistryService",
    # Registry operations
    "DefaultRegistryService",
    "IndexInfo",
    "RepositoryInfo",
    "load_auth_configs",
    "resolve_auth_config",
    # Docker operations
    "DockerBuildManager",
    "DockerImageComponent",
]
