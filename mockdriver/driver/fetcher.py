"""Single-use fetcher for the real upstream response."""

import asyncio
import json
from typing import Any

from mockdriver.core.http_client import UpstreamClient
from mockdriver.core.logging import get_logger
from mockdriver.exceptions import UpstreamTransportError
from mockdriver.models import CanonicalResponse

from .response_extractor import extract_upstream_response


logger = get_logger(__name__)

# Requester-specific headers that break the upstream call when forwarded.
STRIPPED_HEADERS = frozenset({"host", "origin", "referer"})
# Framing headers recomputed by the transport for the re-serialized body.
FRAMING_HEADERS = frozenset({"content-length", "transfer-encoding"})


def build_upstream_headers(headers: dict[str, str]) -> dict[str, str]:
    """Drop requester-specific and framing headers."""
    excluded = STRIPPED_HEADERS | FRAMING_HEADERS
    return {k: v for k, v in headers.items() if k.lower() not in excluded}


def serialize_upstream_body(method: str, body: Any) -> bytes | str | None:
    """Serialize the body for non-GET requests.

    Strings and bytes are sent as-is; any other value is JSON-encoded.
    """
    if body is None or method.upper() == "GET":
        return None
    if isinstance(body, str | bytes):
        return body or None
    return json.dumps(body)


class UpstreamFetcher:
    """Lazily performs the real upstream call, at most once.

    Construction does no I/O. The first invocation performs the call;
    later and concurrent invocations return the same response. Transport
    failures become a synthetic 500 response instead of an exception.
    """

    def __init__(
        self,
        client: UpstreamClient,
        url: str,
        method: str,
        headers: dict[str, str],
        body: Any = None,
    ) -> None:
        self.url = url
        self.method = method.upper()
        self._client = client
        self._headers = headers
        self._body = body
        self._result: CanonicalResponse | None = None
        self._lock = asyncio.Lock()
        self.upstream_calls = 0

    @property
    def called(self) -> bool:
        return self.upstream_calls > 0

    async def __call__(self) -> CanonicalResponse:
        async with self._lock:
            if self._result is None:
                self._result = await self._fetch()
            return self._result

    async def _fetch(self) -> CanonicalResponse:
        headers = build_upstream_headers(self._headers)
        body = serialize_upstream_body(self.method, self._body)
        self.upstream_calls += 1

        logger.debug(
            "upstream_request_started",
            method=self.method,
            url=self.url,
            body_size=len(body) if body else 0,
        )
        try:
            response = await self._client.request(
                url=self.url, method=self.method, headers=headers, body=body
            )
        except Exception as e:
            error = UpstreamTransportError(self.url, e)
            logger.warning(
                "upstream_request_failed",
                method=self.method,
                url=self.url,
                error=str(e),
                error_type=type(e).__name__,
            )
            return CanonicalResponse(
                status=error.status_code, body=error.message, url="error"
            )

        logger.debug(
            "upstream_response_received",
            method=self.method,
            url=self.url,
            status=response.status_code,
        )
        return extract_upstream_response(response)
