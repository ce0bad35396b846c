"""Data models for intercepted requests, responses and routes."""

from .exchange import (
    CanonicalRequest,
    CanonicalResponse,
    HandshakeState,
    InterceptedExchange,
    RealResolution,
    Resolution,
    RouteEntry,
    SyntheticResolution,
)


__all__ = [
    "CanonicalRequest",
    "CanonicalResponse",
    "HandshakeState",
    "InterceptedExchange",
    "RealResolution",
    "Resolution",
    "RouteEntry",
    "SyntheticResolution",
]
