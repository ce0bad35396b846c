"""Canonical request/response models exchanged during interception."""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HandshakeState(str, Enum):
    """Per-request handshake states."""

    PENDING = "pending"
    RESOLVED = "resolved"
    SENT = "sent"
    INACTIVE = "inactive"


class CanonicalResponse(BaseModel):
    """Response as chosen by a request handler or received from upstream."""

    model_config = ConfigDict(frozen=True)

    status: Annotated[int, Field(description="HTTP status code", ge=100, le=599)]
    headers: Annotated[
        dict[str, str], Field(description="Response headers as received")
    ] = {}
    body: Annotated[bytes | str, Field(description="Opaque response body")] = b""
    url: Annotated[
        str | None, Field(description="Upstream URL that produced the response")
    ] = None

    @property
    def body_bytes(self) -> bytes:
        """Body encoded for the wire."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body


FetchReal = Callable[[], Awaitable[CanonicalResponse]]


class CanonicalRequest(BaseModel):
    """Normalized inbound request bound to its upstream fetcher."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    method: Annotated[str, Field(description="HTTP method, upper-cased")]
    url: Annotated[str, Field(description="Original path and query as received")]
    upstream_url: Annotated[str, Field(description="Resolved upstream URL")]
    route_key: Annotated[str, Field(description="Route key that matched")]
    headers: Annotated[
        dict[str, str], Field(description="Request headers, lower-cased keys")
    ] = {}
    body: Annotated[
        Any, Field(description="Raw bytes, text or parsed JSON value")
    ] = None
    fetch_real: FetchReal | None = Field(
        default=None,
        description="Resolver for the real upstream response",
        exclude=True,
        repr=False,
    )

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        return v.upper()

    @field_validator("headers", mode="before")
    @classmethod
    def normalize_headers(cls, v: Any) -> dict[str, str]:
        if v is None:
            return {}
        return {str(k).lower(): str(val) for k, val in dict(v).items()}

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


class SyntheticResolution(BaseModel):
    """Handler answered the request itself."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["synthetic"] = "synthetic"
    response: CanonicalResponse
    interceptor: Any = None


class RealResolution(BaseModel):
    """Handler deferred to the real upstream."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["real"] = "real"
    response: CanonicalResponse
    interceptor: Any = None


Resolution = Annotated[
    SyntheticResolution | RealResolution, Field(discriminator="kind")
]


class InterceptedExchange(BaseModel):
    """A request paired with the response that is about to be sent."""

    model_config = ConfigDict(frozen=True)

    request: CanonicalRequest
    response: CanonicalResponse
    interceptor: Any = None
    kind: Literal["synthetic", "real"]


class RouteEntry(BaseModel):
    """Path prefix mapped to an upstream base URL."""

    model_config = ConfigDict(frozen=True)

    key: Annotated[str, Field(description="Path prefix without slashes", min_length=1)]
    upstream_url: Annotated[str, Field(description="Upstream base URL")]

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        if "/" in v:
            raise ValueError(f"Route key must be a single path segment: {v!r}")
        return v

    @property
    def prefix(self) -> str:
        return f"/{self.key}"

    def resolve(self, original_url: str) -> str:
        """Map ``/{key}/{rest}?{query}`` onto the upstream base URL.

        Only the leading ``/{key}`` is stripped; the remainder, including the
        query string, is appended verbatim.
        """
        remainder = original_url
        if remainder.startswith(self.prefix):
            remainder = remainder[len(self.prefix) :]
        return self.upstream_url + remainder
