"""CLI commands."""

from .routes import routes
from .serve import serve


__all__ = ["routes", "serve"]
