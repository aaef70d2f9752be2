"""CLI tests for the build command wiring."""

from unittest.mock import AsyncMock, MagicMock, patch

import docker.errors
import pytest
import typer
from typer.testing import CliRunner

from imagebuild.build.models import BuildOutput, ImageID
from imagebuild.cli.commands.build import parse_key_values
from imagebuild.cli.main import app
from imagebuild.core.exceptions import PushError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def patched_console():
    with patch("imagebuild.cli.commands.build.console") as mock_console:
        yield mock_console


@pytest.fixture
def mock_backend():
    backend = MagicMock()
    backend.build = AsyncMock(return_value=BuildOutput(image_id=ImageID("sha256:abc")))
    with patch(
        "imagebuild.cli.commands.build.create_backend", return_value=backend
    ) as create:
        backend.create = create
        yield backend


@pytest.fixture
def mock_auth_configs():
    with patch(
        "imagebuild.cli.commands.build.load_auth_configs", return_value={}
    ) as load:
        yield load


def built_config(backend):
    return backend.build.await_args.args[0]


class TestBuildCommand:
    def test_build_success_prints_image_id(
        self, runner, mock_backend, mock_auth_configs, patched_console, tmp_path
    ):
        result = runner.invoke(
            app,
            [
                "build",
                str(tmp_path),
                "-t",
                "app:dev",
                "--tag",
                "app:latest",
                "--build-arg",
                "VERSION=1.2",
                "--label",
                "team=core",
                "--squash",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "sha256:abc" in result.stdout

        options = built_config(mock_backend).options
        assert options.tags == ["app:dev", "app:latest"]
        assert options.squash
        assert options.build_args == {"VERSION": "1.2"}
        assert options.labels == {"team": "core"}
        assert options.context_path == tmp_path
        assert options.push_as == ""

    def test_push_as_is_forwarded(
        self, runner, mock_backend, mock_auth_configs, patched_console, tmp_path
    ):
        result = runner.invoke(
            app, ["build", str(tmp_path), "--push-as", "registry.example.com/app:1"]
        )

        assert result.exit_code == 0, result.output
        assert built_config(mock_backend).options.push_as == "registry.example.com/app:1"

    def test_auth_configs_come_from_docker_config(
        self, runner, mock_backend, mock_auth_configs, patched_console, tmp_path, monkeypatch
    ):
        monkeypatch.setenv("DOCKER_CONFIG", str(tmp_path))

        runner.invoke(app, ["build", str(tmp_path)])

        mock_auth_configs.assert_called_once_with(tmp_path / "config.json")

    def test_json_flag_selects_json_progress(
        self, runner, mock_backend, mock_auth_configs, patched_console, tmp_path
    ):
        result = runner.invoke(app, ["build", str(tmp_path), "--json"])

        assert result.exit_code == 0, result.output
        writer = built_config(mock_backend).progress_writer
        assert writer.stdout_formatter.json_format
        assert writer.progress_output.json_format

    def test_json_progress_from_environment(
        self, runner, mock_backend, mock_auth_configs, patched_console, tmp_path, mock_env_vars
    ):
        runner.invoke(app, ["build", str(tmp_path)])

        assert built_config(mock_backend).progress_writer.progress_output.json_format

    def test_build_failure_exits_nonzero(
        self, runner, mock_backend, mock_auth_configs, patched_console, tmp_path
    ):
        mock_backend.build.return_value = BuildOutput(
            image_id=ImageID(""), error=RuntimeError("daemon exploded")
        )

        result = runner.invoke(app, ["build", str(tmp_path)])

        assert result.exit_code == 1
        patched_console.print.assert_called_once_with(
            "[red]Error:[/red] daemon exploded"
        )

    def test_push_failure_reports_built_image(
        self, runner, mock_backend, mock_auth_configs, patched_console, tmp_path
    ):
        mock_backend.build.return_value = BuildOutput(
            image_id=ImageID("sha256:abc"), error=PushError("denied")
        )

        result = runner.invoke(
            app, ["build", str(tmp_path), "--push-as", "registry.example.com/app:1"]
        )

        assert result.exit_code == 1
        printed = [call.args[0] for call in patched_console.print.call_args_list]
        assert printed == [
            "[red]Error:[/red] denied",
            "Image was built as sha256:abc",
        ]

    def test_docker_unavailable(
        self, runner, mock_backend, mock_auth_configs, patched_console, tmp_path
    ):
        mock_backend.create.side_effect = docker.errors.DockerException("no daemon")

        result = runner.invoke(app, ["build", str(tmp_path)])

        assert result.exit_code == 1
        mock_backend.build.assert_not_awaited()
        assert "no daemon" in patched_console.print.call_args.args[0]

    def test_malformed_build_arg(
        self, runner, mock_backend, mock_auth_configs, patched_console, tmp_path
    ):
        result = runner.invoke(app, ["build", str(tmp_path), "--build-arg", "VERSION"])

        assert result.exit_code == 2
        mock_backend.create.assert_not_called()

    def test_missing_context(self, runner, mock_backend, tmp_path):
        result = runner.invoke(app, ["build", str(tmp_path / "nope")])

        assert result.exit_code == 2
        mock_backend.create.assert_not_called()


class TestParseKeyValues:
    def test_value_may_contain_equals(self):
        assert parse_key_values(["A=b=c", "EMPTY="], "--build-arg") == {
            "A": "b=c",
            "EMPTY": "",
        }

    def test_empty_key_rejected(self):
        with pytest.raises(typer.BadParameter, match="KEY=VALUE"):
            parse_key_values(["=value"], "--label")


def test_version_command(runner):
    with patch("imagebuild.cli.main.get_version", return_value="0.1.0"):
        result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "imagebuild v0.1.0" in result.stdout


def test_no_args_shows_help(runner):
    result = runner.invoke(app, [])

    assert "Usage" in result.output
