"""HTTP interception proxy for test harnesses and dev-time API mocking."""

from ._version import __version__
from .driver import InterceptionDriver
from .exceptions import DuplicateDriverError


__all__ = ["__version__", "InterceptionDriver", "DuplicateDriverError"]
