"""Tests for the single-use upstream fetcher."""

import asyncio
import json

import httpx
import pytest

from mockdriver.config import HTTPSettings, Settings
from mockdriver.core.http_client import (
    HTTPClientFactory,
    HTTPXUpstreamClient,
    UpstreamClient,
)
from mockdriver.driver import UpstreamFetcher
from mockdriver.driver.fetcher import build_upstream_headers, serialize_upstream_body


@pytest.mark.unit
class TestBuildUpstreamHeaders:
    def test_requester_headers_removed(self):
        """Test host, origin and referer are not forwarded."""
        headers = build_upstream_headers(
            {
                "host": "testserver",
                "origin": "http://localhost:3000",
                "referer": "http://localhost:3000/page",
                "content-length": "12",
                "authorization": "Bearer t",
                "accept": "application/json",
            }
        )

        assert headers == {"authorization": "Bearer t", "accept": "application/json"}


@pytest.mark.unit
class TestSerializeUpstreamBody:
    def test_get_body_dropped(self):
        assert serialize_upstream_body("GET", {"a": 1}) is None

    def test_dict_json_encoded(self):
        assert json.loads(serialize_upstream_body("POST", {"a": 1})) == {"a": 1}

    def test_list_json_encoded(self):
        assert serialize_upstream_body("PATCH", [1, 2]) == "[1, 2]"

    def test_string_sent_as_is(self):
        assert serialize_upstream_body("PUT", "raw text") == "raw text"

    def test_bytes_sent_as_is(self):
        assert serialize_upstream_body("POST", b"\x00\x01") == b"\x00\x01"

    def test_missing_body(self):
        assert serialize_upstream_body("DELETE", None) is None


@pytest.mark.unit
class TestUpstreamFetcher:
    """Test upstream calls made through the fetcher."""

    def make_fetcher(self, upstream_client, **kwargs):
        params = {
            "url": "https://example.com/users/1",
            "method": "GET",
            "headers": {"host": "testserver", "accept": "application/json"},
        }
        params.update(kwargs)
        return UpstreamFetcher(client=upstream_client, **params)

    async def test_lazy_until_called(self, upstream, upstream_client):
        """Test construction performs no upstream call."""
        fetcher = self.make_fetcher(upstream_client)

        assert not fetcher.called
        assert upstream.requests == []

    async def test_fetches_real_response(self, upstream, upstream_client):
        fetcher = self.make_fetcher(upstream_client)

        response = await fetcher()

        assert response.status == 200
        assert json.loads(response.body) == {"id": 1}
        assert str(upstream.last.url) == "https://example.com/users/1"
        assert upstream.last.headers["host"] == "example.com"
        assert upstream.last.headers["accept"] == "application/json"

    async def test_called_at_most_once(self, upstream, upstream_client):
        """Test repeated and concurrent calls share one upstream request."""
        fetcher = self.make_fetcher(upstream_client)

        results = await asyncio.gather(fetcher(), fetcher(), fetcher())
        again = await fetcher()

        assert len(upstream.requests) == 1
        assert fetcher.upstream_calls == 1
        assert all(r is results[0] for r in results)
        assert again is results[0]

    async def test_post_body_json_encoded(self, upstream, upstream_client):
        fetcher = self.make_fetcher(
            upstream_client,
            url="https://example.com/users",
            method="POST",
            body={"name": "x"},
        )

        await fetcher()

        assert upstream.last.method == "POST"
        assert json.loads(upstream.last.content) == {"name": "x"}

    async def test_transport_error_becomes_500(self, upstream, upstream_client):
        """Test transport failures are reported as a synthetic 500."""

        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        upstream.handler = fail
        fetcher = self.make_fetcher(upstream_client)

        response = await fetcher()

        assert response.status == 500
        assert response.body == "upstream request failed: connection refused"
        assert response.url == "error"

    async def test_non_httpx_error_becomes_500(self):
        """Test any client failure is converted, not raised."""

        class BrokenClient:
            async def request(self, url, method, headers, body=None):
                raise RuntimeError("boom")

        fetcher = UpstreamFetcher(
            client=BrokenClient(), url="https://example.com", method="GET", headers={}
        )

        response = await fetcher()

        assert response.status == 500
        assert "boom" in response.body

    async def test_upstream_error_status_passed_through(self, upstream, upstream_client):
        """Test upstream 4xx/5xx are real responses, not transport errors."""
        upstream.handler = lambda request: httpx.Response(404, text="no such user")
        fetcher = self.make_fetcher(upstream_client)

        response = await fetcher()

        assert response.status == 404
        assert response.body == b"no such user"


@pytest.mark.unit
class TestHTTPXUpstreamClient:
    async def test_request_forwards_arguments(self, upstream, upstream_httpx):
        client = HTTPXUpstreamClient(upstream_httpx)

        response = await client.request(
            url="https://example.com/echo",
            method="PUT",
            headers={"x-test": "1"},
            body="payload",
        )

        assert response.status_code == 200
        assert upstream.last.method == "PUT"
        assert upstream.last.headers["x-test"] == "1"
        assert upstream.last.content == b"payload"

    async def test_owned_client_closed(self, upstream_httpx):
        borrowed = HTTPXUpstreamClient(upstream_httpx)
        owned = HTTPXUpstreamClient(httpx.AsyncClient(), owns_client=True)

        await borrowed.aclose()
        await owned.aclose()

        assert not upstream_httpx.is_closed
        assert owned.client.is_closed
        await upstream_httpx.aclose()

    def test_satisfies_protocol(self, upstream_client):
        assert isinstance(upstream_client, UpstreamClient)


@pytest.mark.unit
class TestHTTPClientFactory:
    """Test upstream client construction from settings."""

    async def test_settings_applied(self, upstream):
        settings = Settings(
            http=HTTPSettings(connect_timeout=2.0, read_timeout=10.0)
        )

        async with HTTPClientFactory.create_client(
            settings=settings, transport=httpx.MockTransport(upstream)
        ) as client:
            await client.get("https://example.com/ping")

        assert client.timeout.connect == 2.0
        assert client.timeout.read == 10.0
        assert upstream.last.headers["accept-encoding"] == "gzip, deflate"

    async def test_compression_disabled(self, upstream):
        settings = Settings(http=HTTPSettings(compression_enabled=False))

        async with HTTPClientFactory.create_client(
            settings=settings, transport=httpx.MockTransport(upstream)
        ) as client:
            await client.get("https://example.com/ping")

        assert upstream.last.headers["accept-encoding"] == "identity"

    async def test_upstream_client_owns_httpx_client(self):
        upstream_client = HTTPClientFactory.create_upstream_client()

        await upstream_client.aclose()

        assert upstream_client.client.is_closed
