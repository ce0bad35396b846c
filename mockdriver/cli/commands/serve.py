"""Serve command: run the interception proxy with uvicorn."""

from pathlib import Path
from typing import Annotated, Any

import typer
import uvicorn

from mockdriver.api.app import create_app
from mockdriver.config.settings import Settings, get_settings
from mockdriver.core.logging import get_logger, setup_logging
from mockdriver.exceptions import ConfigurationError

from ..helpers import code, get_rich_toolkit, warning
from ..options import parse_routes, validate_log_level, validate_port


def _run_local_server(settings: Settings) -> None:
    """Run the server locally."""
    toolkit = get_rich_toolkit()
    logger = get_logger(__name__)

    if not settings.routes:
        toolkit.print(
            warning("No routes configured; every request will return 404."),
            tag="warning",
        )
    for key, url in settings.routes.items():
        toolkit.print(f"{code('/' + key)} → {url}", tag="route")

    logger.debug(
        "server_starting",
        host=settings.server.host,
        port=settings.server.port,
        url=settings.server_url,
    )

    uvicorn.run(
        app=create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
        access_log=False,
        server_header=False,
    )


def serve(
    ctx: typer.Context,
    route: Annotated[
        list[str] | None,
        typer.Option(
            "--route",
            "-r",
            help="Route as key=upstream_url (repeatable)",
            rich_help_panel="Routes",
        ),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option(
            "--port",
            "-p",
            help="Port to run the server on",
            callback=validate_port,
            rich_help_panel="Server Settings",
        ),
    ] = None,
    host: Annotated[
        str | None,
        typer.Option(
            "--host",
            "-h",
            help="Host to bind the server to",
            rich_help_panel="Server Settings",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
            callback=validate_log_level,
            rich_help_panel="Server Settings",
        ),
    ] = None,
    log_file: Annotated[
        str | None,
        typer.Option(
            "--log-file",
            help="Path to JSON log file",
            rich_help_panel="Server Settings",
        ),
    ] = None,
    interception: Annotated[
        bool | None,
        typer.Option(
            "--interception/--no-interception",
            help="Initial state of the interception flag",
            rich_help_panel="Driver Settings",
        ),
    ] = None,
) -> None:
    """Start the interception proxy."""
    toolkit = get_rich_toolkit()
    config: Path | None = (ctx.obj or {}).get("config_path")

    overrides: dict[str, Any] = {}
    server = {k: v for k, v in {"host": host, "port": port}.items() if v is not None}
    if server:
        overrides["server"] = server
    logging_overrides = {
        k: v for k, v in {"level": log_level, "file": log_file}.items() if v is not None
    }
    if logging_overrides:
        overrides["logging"] = logging_overrides
    if interception is not None:
        overrides["driver"] = {"interception_enabled": interception}

    try:
        cli_routes = parse_routes(route)
        if cli_routes:
            overrides["routes"] = cli_routes

        settings = get_settings(config_path=config, **overrides)

        setup_logging(
            json_logs=settings.logging.json_logs,
            log_level_name=settings.logging.level,
            log_file=settings.logging.file,
        )
        get_logger(__name__).debug(
            "configuration_loaded",
            host=settings.server.host,
            port=settings.server.port,
            log_level=settings.logging.level,
            routes=list(settings.routes),
        )

        _run_local_server(settings)

    except ConfigurationError as e:
        toolkit.print(f"Configuration error: {e.message}", tag="error")
        raise typer.Exit(1) from e
    except OSError as e:
        toolkit.print(
            f"Server startup failed (port/permission issue): {e}", tag="error"
        )
        raise typer.Exit(1) from e
