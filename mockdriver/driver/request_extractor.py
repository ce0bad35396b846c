"""Normalize inbound requests and bind them to their upstream fetcher."""

import json
from typing import Any

from starlette.requests import Request

from mockdriver.core.http_client import UpstreamClient
from mockdriver.core.logging import get_logger
from mockdriver.models import CanonicalRequest, RouteEntry

from .fetcher import UpstreamFetcher
from .handshake import PendingResolution


logger = get_logger(__name__)


def get_original_url(request: Request) -> str:
    """Return the request path and query exactly as the caller sent them.

    Uses the raw (still percent-encoded) path from the ASGI scope when the
    server provides one, relative to any ``root_path`` the app is mounted at.
    """
    scope = request.scope
    raw_path: bytes | None = scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = scope["path"]

    root_path = scope.get("root_path", "")
    if root_path and path.startswith(root_path):
        path = path[len(root_path) :]

    query_string: bytes = scope.get("query_string", b"")
    if query_string:
        return f"{path}?{query_string.decode('latin-1')}"
    return path


async def read_body(request: Request) -> Any:
    """Read the request body.

    Returns None for an empty body, the parsed value for JSON content,
    text for ``text/*`` content and raw bytes otherwise.
    """
    raw = await request.body()
    if not raw:
        return None

    content_type = request.headers.get("content-type", "").lower()
    if "json" in content_type:
        try:
            return json.loads(raw)
        except ValueError:
            logger.debug("request_body_not_json", content_type=content_type)
            return raw
    if content_type.startswith("text/"):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return raw
    return raw


async def extract_request(
    request: Request,
    route: RouteEntry,
    client: UpstreamClient,
) -> tuple[CanonicalRequest, PendingResolution]:
    """Build the canonical request and its pending resolution handle.

    No network I/O happens here; the returned request carries a lazy
    ``fetch_real`` callback bound to the resolved upstream URL.
    """
    original_url = get_original_url(request)
    upstream_url = route.resolve(original_url)
    headers = {k.lower(): v for k, v in request.headers.items()}
    body = await read_body(request)

    fetcher = UpstreamFetcher(
        client=client,
        url=upstream_url,
        method=request.method,
        headers=headers,
        body=body,
    )
    canonical = CanonicalRequest(
        method=request.method,
        url=original_url,
        upstream_url=upstream_url,
        route_key=route.key,
        headers=headers,
        body=body,
        fetch_real=fetcher,
    )
    return canonical, PendingResolution()
