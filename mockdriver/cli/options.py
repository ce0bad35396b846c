"""Shared CLI option callbacks."""

import typer


def validate_port(
    ctx: typer.Context, param: typer.CallbackParam, value: int | None
) -> int | None:
    """Validate port number."""
    if value is None:
        return None

    if value < 1 or value > 65535:
        raise typer.BadParameter("Port must be between 1 and 65535")

    return value


def validate_log_level(
    ctx: typer.Context, param: typer.CallbackParam, value: str | None
) -> str | None:
    """Validate log level."""
    if value is None:
        return None

    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if value.upper() not in valid_levels:
        raise typer.BadParameter(f"Log level must be one of: {', '.join(valid_levels)}")

    return value.upper()


def parse_routes(values: list[str] | None) -> dict[str, str]:
    """Parse repeated ``key=url`` options into a route mapping."""
    routes: dict[str, str] = {}
    for value in values or []:
        key, sep, url = value.partition("=")
        key = key.strip().strip("/")
        if not sep or not key or not url:
            raise typer.BadParameter(
                f"Route must look like key=https://upstream.example: {value!r}"
            )
        routes[key] = url.strip()
    return routes
