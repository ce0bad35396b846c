"""Core configuration settings - server, HTTP client, logging and driver."""

import sys
from typing import Literal

from pydantic import BaseModel, Field, field_validator


# === Server Configuration ===


class ServerSettings(BaseModel):
    """Server-specific configuration settings."""

    host: str = Field(
        default="127.0.0.1",
        description="Server host address",
    )

    port: int = Field(
        default=8000,
        description="Server port number",
        ge=1,
        le=65535,
    )


# === HTTP Configuration ===


class HTTPSettings(BaseModel):
    """Upstream HTTP client configuration settings."""

    connect_timeout: float = Field(
        default=5.0,
        description="Connection timeout in seconds",
        gt=0,
    )

    read_timeout: float = Field(
        default=120.0,
        description="Read timeout in seconds",
        gt=0,
    )

    verify: bool = Field(
        default=True,
        description="Verify upstream TLS certificates (SSL_CERT_FILE is honored)",
    )

    compression_enabled: bool = Field(
        default=True,
        description="Enable compression for upstream requests (Accept-Encoding header)",
    )

    accept_encoding: str = Field(
        default="gzip, deflate",
        description="Accept-Encoding header value when compression is enabled",
    )


# === Logging Configuration ===


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    format: Literal["rich", "json", "auto"] = Field(
        default="auto",
        description="Output format: 'rich' for development, 'json' for production, 'auto' to pick by TTY",
    )

    file: str | None = Field(
        default=None,
        description="Path to a JSON log file written in addition to the console",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        upper_v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @property
    def json_logs(self) -> bool:
        """Whether to render JSON; 'auto' picks JSON when stderr is not a TTY."""
        if self.format == "auto":
            return not sys.stderr.isatty()
        return self.format == "json"


# === Driver Configuration ===


class DriverSettings(BaseModel):
    """Interception driver behavior."""

    interception_enabled: bool = Field(
        default=True,
        description="Initial state of the interception flag",
    )

    resolution_timeout: float | None = Field(
        default=None,
        description="Seconds to wait for a request handler decision (None waits forever)",
        gt=0,
    )
