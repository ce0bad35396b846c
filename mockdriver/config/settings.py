import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mockdriver.core.logging import get_logger
from mockdriver.exceptions import ConfigurationError

from .core import DriverSettings, HTTPSettings, LoggingSettings, ServerSettings


__all__ = ["Settings", "get_settings", "find_toml_config_file"]


CONFIG_FILE_ENV = "MOCKDRIVER_CONFIG_FILE"


def find_toml_config_file() -> Path | None:
    """Find the TOML configuration file.

    Searches in the following order:
    1. .mockdriver.toml in current directory
    2. mockdriver.toml in current directory

    Returns:
        Path to the first found configuration file, or None if not found.
    """
    for name in (".mockdriver.toml", "mockdriver.toml"):
        candidate = Path.cwd() / name
        if candidate.exists():
            return candidate
    return None


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Settings(BaseSettings):
    """
    Configuration settings for the interception proxy.

    Settings are loaded from environment variables, .env files, and TOML configuration files.
    Environment variables take precedence over TOML values; explicit overrides
    passed to ``from_config`` take precedence over both.
    """

    model_config = SettingsConfigDict(
        env_prefix="MOCKDRIVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    server: ServerSettings = Field(
        default_factory=ServerSettings,
        description="Server configuration settings",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    http: HTTPSettings = Field(
        default_factory=HTTPSettings,
        description="Upstream HTTP client configuration settings",
    )

    driver: DriverSettings = Field(
        default_factory=DriverSettings,
        description="Interception driver configuration",
    )

    routes: dict[str, str] = Field(
        default_factory=dict,
        description="Route key (path prefix) to upstream base URL",
    )

    @field_validator("routes")
    @classmethod
    def validate_routes(cls, v: dict[str, str]) -> dict[str, str]:
        for key, url in v.items():
            if not key or "/" in key:
                raise ValueError(
                    f"Route key must be a non-empty path segment without '/': {key!r}"
                )
            if not url.startswith(("http://", "https://")):
                raise ValueError(
                    f"Upstream URL for route {key!r} must start with http:// or https://: {url!r}"
                )
        return v

    @property
    def server_url(self) -> str:
        """Get the complete server URL."""
        return f"http://{self.server.host}:{self.server.port}"

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **overrides: Any,
    ) -> "Settings":
        """Create Settings from a TOML file, the environment and overrides."""
        if config_path is None:
            config_path_env = os.environ.get(CONFIG_FILE_ENV)
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if not config_path.exists():
                raise ConfigurationError(f"Config file not found: {config_path}")
            if config_path.suffix.lower() != ".toml":
                raise ConfigurationError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            config_data = cls.load_toml_config(config_path)
            get_logger(__name__).info(
                "config_file_loaded", path=str(config_path), category="config"
            )

        env_data = cls().model_dump(exclude_unset=True)
        merged = _deep_merge(_deep_merge(config_data, env_data), overrides)
        return cls(**merged)


def get_settings(config_path: Path | str | None = None, **overrides: Any) -> Settings:
    """Load settings, wrapping validation failures in ``ConfigurationError``.

    Args:
        config_path: Optional path to configuration file. If None, uses
            MOCKDRIVER_CONFIG_FILE or auto-discovers a config file.
        **overrides: Nested values that win over every other source

    Returns:
        Settings: Configured Settings instance
    """
    try:
        return Settings.from_config(config_path=config_path, **overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration error: {e}") from e
