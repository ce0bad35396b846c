"""Configuration module for the interception proxy."""

from .core import DriverSettings, HTTPSettings, LoggingSettings, ServerSettings
from .settings import Settings, find_toml_config_file, get_settings


__all__ = [
    "DriverSettings",
    "HTTPSettings",
    "LoggingSettings",
    "ServerSettings",
    "Settings",
    "find_toml_config_file",
    "get_settings",
]
