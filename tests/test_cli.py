"""Tests for the command line interface."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
import typer
from typer.testing import CliRunner

from mockdriver import __version__
from mockdriver.cli import app
from mockdriver.cli.options import parse_routes, validate_log_level, validate_port
from mockdriver.core.logging import setup_logging


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    import os

    for key in list(os.environ):
        if key.upper().startswith("MOCKDRIVER_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    yield
    # serve reconfigures logging onto the runner's captured stderr
    setup_logging(json_logs=False, log_level_name="DEBUG")


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "proxy.toml"
    path.write_text(
        '[server]\nport = 9100\n\n[routes]\napi = "https://example.com"\n',
        encoding="utf-8",
    )
    return path


@pytest.mark.unit
class TestOptions:
    """Test option parsing and validation callbacks."""

    def test_parse_routes(self):
        assert parse_routes(["api=https://example.com", "/bank/=http://localhost:9000"]) == {
            "api": "https://example.com",
            "bank": "http://localhost:9000",
        }

    def test_parse_routes_empty(self):
        assert parse_routes(None) == {}

    @pytest.mark.parametrize("value", ["api", "=https://example.com", "api="])
    def test_parse_routes_invalid(self, value):
        with pytest.raises(typer.BadParameter):
            parse_routes([value])

    def test_validate_port(self):
        assert validate_port(None, None, 8080) == 8080  # type: ignore[arg-type]
        assert validate_port(None, None, None) is None  # type: ignore[arg-type]
        with pytest.raises(typer.BadParameter):
            validate_port(None, None, 70000)  # type: ignore[arg-type]

    def test_validate_log_level(self):
        assert validate_log_level(None, None, "debug") == "DEBUG"  # type: ignore[arg-type]
        with pytest.raises(typer.BadParameter):
            validate_log_level(None, None, "LOUD")  # type: ignore[arg-type]


@pytest.mark.unit
class TestVersion:
    def test_version_flag(self, runner):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"mockdriver {__version__}" in result.output


@pytest.mark.unit
class TestRoutesCommand:
    def test_lists_routes_from_config(self, runner, config_file):
        result = runner.invoke(app, ["--config", str(config_file), "routes"])

        assert result.exit_code == 0
        assert "/api" in result.output
        assert "https://example.com" in result.output

    def test_invalid_config_exits(self, runner, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_text('[routes]\napi = "example.com"\n', encoding="utf-8")

        result = runner.invoke(app, ["--config", str(bad), "routes"])

        assert result.exit_code == 1


@pytest.mark.unit
class TestServeCommand:
    """Test the serve command without starting uvicorn."""

    def test_serve_with_cli_routes(self, runner):
        with patch("mockdriver.cli.commands.serve._run_local_server") as run:
            result = runner.invoke(
                app,
                [
                    "serve",
                    "--route",
                    "api=https://example.com",
                    "--route",
                    "bank=http://localhost:9000",
                    "--port",
                    "9001",
                    "--host",
                    "0.0.0.0",
                ],
            )

        assert result.exit_code == 0, result.output
        settings = run.call_args.args[0]
        assert settings.routes == {
            "api": "https://example.com",
            "bank": "http://localhost:9000",
        }
        assert settings.server.host == "0.0.0.0"
        assert settings.server.port == 9001

    def test_cli_overrides_config(self, runner, config_file):
        with patch("mockdriver.cli.commands.serve._run_local_server") as run:
            result = runner.invoke(
                app,
                ["--config", str(config_file), "serve", "--no-interception"],
            )

        assert result.exit_code == 0, result.output
        settings = run.call_args.args[0]
        assert settings.server.port == 9100
        assert settings.routes == {"api": "https://example.com"}
        assert settings.driver.interception_enabled is False

    def test_malformed_route_is_usage_error(self, runner):
        with patch("mockdriver.cli.commands.serve._run_local_server") as run:
            result = runner.invoke(app, ["serve", "--route", "no-separator"])

        assert result.exit_code == 2
        run.assert_not_called()

    def test_invalid_upstream_url_exits(self, runner):
        with patch("mockdriver.cli.commands.serve._run_local_server") as run:
            result = runner.invoke(app, ["serve", "--route", "api=example.com"])

        assert result.exit_code == 1
        run.assert_not_called()

    def test_invalid_port_rejected(self, runner):
        result = runner.invoke(app, ["serve", "--port", "0"])

        assert result.exit_code == 2
