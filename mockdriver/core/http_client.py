"""Upstream HTTP client management.

The interception driver talks to upstream APIs through the ``UpstreamClient``
contract: a single ``request`` coroutine that returns an ``httpx.Response``
shaped object or raises a transport error. ``HTTPXUpstreamClient`` fulfils it
with a shared ``httpx.AsyncClient`` built by ``HTTPClientFactory``.
"""

import os
import ssl
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import httpx

from mockdriver.config.settings import Settings
from mockdriver.core.logging import get_logger


logger = get_logger(__name__)


@runtime_checkable
class UpstreamClient(Protocol):
    """Single-call upstream request function."""

    async def request(
        self,
        url: str,
        method: str,
        headers: dict[str, str],
        body: bytes | str | None = None,
    ) -> httpx.Response: ...


class HTTPXUpstreamClient:
    """``UpstreamClient`` backed by an ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient, owns_client: bool = False) -> None:
        self._client = client
        self._owns_client = owns_client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def request(
        self,
        url: str,
        method: str,
        headers: dict[str, str],
        body: bytes | str | None = None,
    ) -> httpx.Response:
        return await self._client.request(
            method=method,
            url=url,
            headers=headers,
            content=body,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
            logger.debug("upstream_client_closed")


class HTTPClientFactory:
    """Factory for creating upstream HTTP clients.

    Provides centralized configuration for HTTP clients with:
    - Consistent timeout configuration
    - Unified connection limits
    - Proxy and CA bundle settings taken from the environment
    """

    @staticmethod
    def create_client(
        *,
        settings: Settings | None = None,
        max_keepalive_connections: int = 100,
        max_connections: int = 1000,
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        """Create an HTTP client for upstream calls.

        Args:
            settings: Optional settings object for timeouts, TLS and compression
            max_keepalive_connections: Max keep-alive connections for reuse
            max_connections: Max total concurrent connections
            **kwargs: Additional httpx.AsyncClient arguments

        Returns:
            Configured httpx.AsyncClient instance
        """
        http_settings = settings.http if settings else None

        timeout = httpx.Timeout(
            connect=http_settings.connect_timeout if http_settings else 5.0,
            read=http_settings.read_timeout if http_settings else 120.0,
            write=30.0,
            pool=30.0,
        )
        limits = httpx.Limits(
            max_keepalive_connections=max_keepalive_connections,
            max_connections=max_connections,
        )

        verify: ssl.SSLContext | bool = True
        if http_settings is None or http_settings.verify:
            verify = _get_ssl_context()
        else:
            logger.warning("ssl_verification_disabled", source="settings")
            verify = False

        default_headers: dict[str, str] = {}
        if http_settings is not None:
            if not http_settings.compression_enabled:
                # "identity" means no compression
                default_headers["accept-encoding"] = "identity"
            elif http_settings.accept_encoding:
                default_headers["accept-encoding"] = http_settings.accept_encoding

        if "headers" in kwargs:
            default_headers.update(kwargs.pop("headers"))

        proxy = _get_proxy_url()
        transport = kwargs.pop("transport", None) or httpx.AsyncHTTPTransport(
            limits=limits,
            verify=verify,
            proxy=proxy,
        )

        logger.info(
            "http_client_created",
            timeout_connect=timeout.connect,
            timeout_read=timeout.read,
            max_connections=max_connections,
            has_proxy=proxy is not None,
            accept_encoding=default_headers.get("accept-encoding", "httpx default"),
        )

        return httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers=default_headers,
            **kwargs,
        )

    @staticmethod
    def create_upstream_client(
        settings: Settings | None = None, **kwargs: Any
    ) -> HTTPXUpstreamClient:
        """Create an upstream client that owns (and closes) its httpx client."""
        client = HTTPClientFactory.create_client(settings=settings, **kwargs)
        return HTTPXUpstreamClient(client, owns_client=True)


def _get_proxy_url() -> str | None:
    """Get proxy URL from environment variables.

    Returns:
        str or None: Proxy URL if any proxy is set
    """
    # For HTTPS requests, prioritize HTTPS_PROXY
    https_proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy")
    all_proxy = os.environ.get("ALL_PROXY")
    http_proxy = os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy")

    proxy_url = https_proxy or all_proxy or http_proxy

    if proxy_url:
        logger.debug("proxy_configured", proxy_url=proxy_url)

    return proxy_url


def _get_ssl_context() -> ssl.SSLContext | bool:
    """Get SSL verification configuration from environment variables.

    Returns:
        An SSL context for a custom CA bundle, True for default
        verification, or False when SSL_VERIFY disables it.
    """
    ca_bundle = os.environ.get("REQUESTS_CA_BUNDLE") or os.environ.get("SSL_CERT_FILE")
    ssl_verify = os.environ.get("SSL_VERIFY", "true").lower()

    if ca_bundle and Path(ca_bundle).exists():
        logger.info("ssl_ca_bundle_configured", ca_bundle_path=ca_bundle)
        return ssl.create_default_context(cafile=ca_bundle)
    elif ssl_verify in ("false", "0", "no"):
        logger.warning("ssl_verification_disabled", source="environment")
        return False
    return True
