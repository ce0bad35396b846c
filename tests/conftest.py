"""Shared test fixtures for mockdriver tests.

Upstream APIs are faked with ``httpx.MockTransport``; the proxy app is driven
in-process through ``httpx.ASGITransport`` so request handlers run on the
same event loop as the test.
"""

import json
from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from starlette.requests import Request

from mockdriver.core.http_client import HTTPXUpstreamClient
from mockdriver.core.logging import setup_logging
from mockdriver.driver import InterceptionDriver, ServerRegistry


UPSTREAM_URL = "https://example.com"


def pytest_configure(config: pytest.Config) -> None:
    """Route all test logging through the application pipeline."""
    setup_logging(json_logs=False, log_level_name="DEBUG")


class FakeUpstream:
    """Records upstream requests and answers them from a handler."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = self.default_handler

    @staticmethod
    def default_handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/users/1":
            return httpx.Response(200, json={"id": 1})
        return httpx.Response(200, text=f"{request.method} {request.url}")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def upstream_httpx(upstream: FakeUpstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream))


@pytest.fixture
def upstream_client(upstream_httpx: httpx.AsyncClient) -> HTTPXUpstreamClient:
    return HTTPXUpstreamClient(upstream_httpx)


@pytest.fixture
def registry() -> ServerRegistry:
    return ServerRegistry()


@pytest.fixture
def app() -> FastAPI:
    return FastAPI()


@pytest.fixture
def driver(
    app: FastAPI, upstream_client: HTTPXUpstreamClient, registry: ServerRegistry
) -> InterceptionDriver:
    return InterceptionDriver(
        app=app,
        routes={"api": UPSTREAM_URL},
        client=upstream_client,
        registry=registry,
    )


@pytest.fixture
async def proxy(
    app: FastAPI, driver: InterceptionDriver
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Client talking to the app the driver is attached to."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Build a Starlette request from raw ASGI scope parts."""

    def _make(
        method: str = "GET",
        path: str = "/api/users/1",
        query: bytes = b"",
        body: bytes | dict[str, Any] = b"",
        headers: dict[str, str] | None = None,
        raw_path: bytes | None = None,
        root_path: str = "",
    ) -> Request:
        if isinstance(body, dict):
            body = json.dumps(body).encode()
        sent = False

        async def receive() -> dict[str, Any]:
            nonlocal sent
            if sent:
                return {"type": "http.disconnect"}
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        scope = {
            "type": "http",
            "method": method,
            "path": path,
            "raw_path": raw_path if raw_path is not None else path.encode(),
            "root_path": root_path,
            "query_string": query,
            "headers": [
                (k.lower().encode(), v.encode()) for k, v in (headers or {}).items()
            ],
        }
        return Request(scope, receive)

    return _make
