"""Tests for environment-driven settings."""

from pathlib import Path

from imagebuild.config import ImageBuildSettings, get_settings


class TestGetSettings:
    def test_defaults(self, monkeypatch):
        for name in ("DOCKER_CONFIG", "IMAGEBUILD_INSECURE_REGISTRIES", "IMAGEBUILD_JSON_PROGRESS"):
            monkeypatch.delenv(name, raising=False)

        assert get_settings() == ImageBuildSettings(
            docker_config_file=None, insecure_registries=(), json_progress=False
        )

    def test_from_environment(self, mock_env_vars, monkeypatch):
        monkeypatch.setenv("DOCKER_CONFIG", "/etc/docker-ci")

        settings = get_settings()

        assert settings.docker_config_file == Path("/etc/docker-ci/config.json")
        assert settings.insecure_registries == ("registry.internal:5000", "build-cache")
        assert settings.json_progress

    def test_blank_registry_entries_are_dropped(self, monkeypatch):
        monkeypatch.setenv("IMAGEBUILD_INSECURE_REGISTRIES", " , cache:5000,,")

        assert get_settings().insecure_registries == ("cache:5000",)

    def test_json_progress_flag_values(self, monkeypatch):
        monkeypatch.setenv("IMAGEBUILD_JSON_PROGRESS", "YES")
        assert get_settings().json_progress

        monkeypatch.setenv("IMAGEBUILD_JSON_PROGRESS", "off")
        assert not get_settings().json_progress
