# Load .env vars from file before everything else
from dotenv import load_dotenv

load_dotenv()

from .logger import setup_logging  # noqa: E402

setup_logging()

from .build import (  # noqa: E402
    AuthConfig,
    Backend,
    BuildConfig,
    BuildOptions,
    BuildOutput,
    BuildResult,
    DefaultRegistryService,
    DockerBuildManager,
    DockerImageComponent,
    ImageComponent,
    Tagger,
)
from .core import ImageBuildError, ProgressWriter  # noqa: E402

__all__ = [
    "AuthConfig",
    "Backend",
    "BuildConfig",
    "BuildOptions",
    "BuildOutput",
    "BuildResult",
    "DefaultRegistryService",
    "DockerBuildManager",
    "DockerImageComponent",
    "ImageBuildError",
    "ImageComponent",
    "ProgressWriter",
    "Tagger",
]
