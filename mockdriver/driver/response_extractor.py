"""Normalize upstream client responses."""

import httpx

from mockdriver.models import CanonicalResponse


def extract_upstream_response(response: httpx.Response) -> CanonicalResponse:
    """Build a ``CanonicalResponse`` from an upstream response, unchanged."""
    try:
        url: str | None = str(response.url)
    except RuntimeError:
        # httpx raises when the response is not bound to a request
        url = None

    return CanonicalResponse(
        status=response.status_code,
        headers=dict(response.headers),
        body=response.content,
        url=url,
    )
