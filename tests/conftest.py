"""
Test configuration and fixtures for imagebuild tests.

Provides shared fixtures for:
- Image component, build engine and registry doubles
- Progress writers capturing output
- Build option/config factories
- Environment variable management
"""

import io
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from imagebuild.build.models import BaseImage, BuildConfig, BuildOptions, BuildResult
from imagebuild.build.registry import DefaultRegistryService
from imagebuild.core.progress import ProgressWriter


@pytest.fixture
def output_stream() -> io.StringIO:
    """Provide an in-memory stream the progress writer reports to."""
    return io.StringIO()


@pytest.fixture
def progress_writer(output_stream: io.StringIO) -> ProgressWriter:
    """Provide a plain-text progress writer backed by output_stream."""
    return ProgressWriter.from_stream(output_stream)


@pytest.fixture
def mock_image_component():
    """Provide an image component double.

    Returns:
        Mock with async squash/tag/push methods that succeed by default.
    """
    component = Mock()
    component.squash_image = AsyncMock(return_value="sha256:" + "5" * 64)
    component.tag_image_with_reference = AsyncMock(return_value=None)
    component.push_image = AsyncMock(return_value=None)
    return component


@pytest.fixture
def mock_build_manager():
    """Provide a build engine double returning image abc123 built from scratch."""
    manager = Mock()
    manager.build = AsyncMock(return_value=BuildResult(image_id="abc123"))
    return manager


@pytest.fixture
def registry_service() -> DefaultRegistryService:
    return DefaultRegistryService()


@pytest.fixture
def make_config(progress_writer: ProgressWriter):
    """Provide a factory for BuildConfig objects sharing progress_writer."""

    def _make(**options: Any) -> BuildConfig:
        return BuildConfig(
            options=BuildOptions(**options), progress_writer=progress_writer
        )

    return _make


@pytest.fixture
def based_build_result() -> BuildResult:
    """Provide a build result with base image base1."""
    return BuildResult(image_id="abc123", from_image=BaseImage(image_id="base1"))


@pytest.fixture
def mock_docker_client():
    """Provide a docker.DockerClient double with a MagicMock low-level API."""
    client = MagicMock()
    client.api = MagicMock()
    return client


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> Dict[str, str]:
    """Provide patched environment variables for tests.

    Args:
        monkeypatch: Pytest's monkeypatch fixture.

    Returns:
        Dictionary of environment variables set.
    """
    env_vars = {
        "IMAGEBUILD_INSECURE_REGISTRIES": "registry.internal:5000, build-cache",
        "IMAGEBUILD_JSON_PROGRESS": "true",
        "LOG_LEVEL": "ERROR",  # Suppress logs during tests
    }

    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    return env_vars
