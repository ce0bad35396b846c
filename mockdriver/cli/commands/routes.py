"""Routes command: show the configured route table."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from mockdriver.config.settings import get_settings
from mockdriver.exceptions import ConfigurationError

from ..helpers import get_rich_toolkit


def routes(ctx: typer.Context) -> None:
    """Show the route keys and the upstream each one forwards to."""
    config: Path | None = (ctx.obj or {}).get("config_path")
    try:
        settings = get_settings(config_path=config)
    except ConfigurationError as e:
        get_rich_toolkit().print(f"Configuration error: {e.message}", tag="error")
        raise typer.Exit(1) from e

    table = Table(title="Routes")
    table.add_column("Prefix", style="cyan")
    table.add_column("Upstream", style="magenta")
    for key, url in sorted(settings.routes.items()):
        table.add_row(f"/{key}", url)

    Console().print(table)
