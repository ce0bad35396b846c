"""FastAPI application for the interception proxy."""

from .app import create_app


__all__ = ["create_app"]
