"""Interception driver and its building blocks."""

from .driver import InterceptionDriver
from .fetcher import UpstreamFetcher
from .handshake import InterceptedCall, PendingResolution
from .observers import (
    NOOP_OBSERVER,
    LoggingResponseObserver,
    NoopObserver,
    PassThroughObserver,
    RequestObserver,
    ResponseObserver,
)
from .registry import RouteRegistry, ServerRegistry, default_server_registry
from .request_extractor import extract_request, get_original_url
from .response_extractor import extract_upstream_response


__all__ = [
    "InterceptionDriver",
    "InterceptedCall",
    "LoggingResponseObserver",
    "NOOP_OBSERVER",
    "NoopObserver",
    "PassThroughObserver",
    "PendingResolution",
    "RequestObserver",
    "ResponseObserver",
    "RouteRegistry",
    "ServerRegistry",
    "UpstreamFetcher",
    "default_server_registry",
    "extract_request",
    "extract_upstream_response",
    "get_original_url",
]
