"""Interception driver: runs the per-request handshake on a FastAPI app."""

import asyncio
import inspect
from collections.abc import Callable, Mapping
from functools import partial
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import Response

from mockdriver.core.http_client import (
    HTTPClientFactory,
    HTTPXUpstreamClient,
    UpstreamClient,
)
from mockdriver.core.logging import get_logger
from mockdriver.exceptions import (
    HandshakeTimeoutError,
    InactiveDriverError,
    RequestHandlerError,
    ResponseHandlerError,
)
from mockdriver.models import (
    CanonicalResponse,
    HandshakeState,
    InterceptedExchange,
    Resolution,
    RouteEntry,
    SyntheticResolution,
)

from .handshake import InterceptedCall
from .observers import NOOP_OBSERVER, RequestObserver, ResponseObserver
from .registry import RouteRegistry, ServerRegistry, default_server_registry
from .request_extractor import extract_request, get_original_url


logger = get_logger(__name__)

ROUTE_NAME_PREFIX = "mockdriver:"
PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

Teardown = Callable[[], None]


class InterceptionDriver:
    """Intercepts every request under the configured route prefixes.

    For each ``key -> upstream_url`` pair, all methods on ``/key`` and
    ``/key/*`` are routed through the handshake: the request observer
    decides on a synthetic or real response, the response observer sees
    the chosen exchange, and status and body are written to the caller.
    Response headers are not forwarded; the body has already been decoded
    by the upstream client, so transfer and encoding headers would not
    match it.

    Only one driver may be attached to an app at a time.
    """

    def __init__(
        self,
        *,
        app: FastAPI,
        routes: Mapping[str, str],
        client: UpstreamClient | httpx.AsyncClient | None = None,
        registry: ServerRegistry | None = None,
        resolution_timeout: float | None = None,
        active: bool = True,
    ) -> None:
        """Attach a driver to ``app``.

        Args:
            app: Server instance the routes are registered on
            routes: Route key (path prefix) to upstream base URL
            client: Upstream client; an httpx client is wrapped, None creates one
            registry: Registry of claimed apps, the process default if None
            resolution_timeout: Seconds to wait for a handler decision, None waits forever
            active: Initial state of the interception flag

        Raises:
            DuplicateDriverError: If ``app`` already has a driver
        """
        logger.debug("driver_instantiating", routes=list(routes))

        self._routes = RouteRegistry(routes)
        self._registry = registry if registry is not None else default_server_registry
        self._registry.claim(app, owner=self)

        self._app = app
        self._client, self._owns_client = _as_upstream_client(client)
        self._resolution_timeout = resolution_timeout
        self._active = active
        self._request_observer: RequestObserver = NOOP_OBSERVER
        self._response_observer: ResponseObserver = NOOP_OBSERVER
        self._handler_tasks: set[asyncio.Task[Any]] = set()

        for entry in self._routes:
            self._register_route(entry)

    @property
    def app(self) -> FastAPI:
        return self._app

    @property
    def routes(self) -> RouteRegistry:
        return self._routes

    @property
    def active(self) -> bool:
        return self._active

    @property
    def request_observer(self) -> RequestObserver:
        return self._request_observer

    @property
    def response_observer(self) -> ResponseObserver:
        return self._response_observer

    def set_interception(self, active: bool) -> None:
        """Toggle interception; inactive routes answer ``500 driver not active``."""
        self._active = active
        logger.info("interception_toggled", active=active)

    def on_request(self, handler: RequestObserver) -> Teardown:
        """Install the request handler.

        Returns:
            Teardown that deactivates interception, releases the app and
            resets the handler to a no-op. Calling it again has no effect.
        """
        self._request_observer = handler
        logger.debug("request_handler_installed", handler=repr(handler))

        def teardown() -> None:
            self._active = False
            self._registry.release(self._app, owner=self)
            self._request_observer = NOOP_OBSERVER
            logger.debug("request_handler_removed")

        return teardown

    def on_response(self, handler: ResponseObserver) -> Teardown:
        """Install the response handler.

        Returns:
            Teardown that resets the handler to a no-op
        """
        self._response_observer = handler
        logger.debug("response_handler_installed", handler=repr(handler))

        def teardown() -> None:
            self._response_observer = NOOP_OBSERVER
            logger.debug("response_handler_removed")

        return teardown

    async def aclose(self) -> None:
        """Release the app and close the upstream client if this driver created it."""
        self._active = False
        self._registry.release(self._app, owner=self)
        if self._owns_client and isinstance(self._client, HTTPXUpstreamClient):
            await self._client.aclose()

    def _register_route(self, entry: RouteEntry) -> None:
        name = f"{ROUTE_NAME_PREFIX}{entry.key}"
        # Routes left behind by a torn-down driver would shadow ours.
        self._app.router.routes[:] = [
            route
            for route in self._app.router.routes
            if getattr(route, "name", None) != name
        ]

        async def intercept(request: Request) -> Response:
            return await self.handle(entry, request)

        for path in (entry.prefix, f"{entry.prefix}/{{path:path}}"):
            self._app.add_api_route(
                path,
                intercept,
                methods=PROXY_METHODS,
                name=name,
                include_in_schema=False,
                response_model=None,
            )
        logger.info("route_registered", prefix=entry.prefix, upstream=entry.upstream_url)

    async def handle(self, route: RouteEntry, request: Request) -> Response:
        """Run the interception handshake for one inbound request."""
        log = logger.bind(
            route=route.key, method=request.method, url=get_original_url(request)
        )
        log.info("request_entered")

        if not self._active:
            error = InactiveDriverError()
            log.info("request_rejected", state=HandshakeState.INACTIVE.value)
            return Response(content=error.message, status_code=error.status_code)

        canonical, pending = await extract_request(request, route, self._client)
        call = InterceptedCall(canonical, pending)
        log = log.bind(upstream_url=canonical.upstream_url)
        log.debug("upstream_url_resolved")

        self._dispatch_request(call, log)
        resolution = await self._await_resolution(call, log)
        call.state = HandshakeState.RESOLVED

        exchange = InterceptedExchange(
            request=canonical,
            response=resolution.response,
            interceptor=resolution.interceptor,
            kind=resolution.kind,
        )
        await self._notify_response(exchange, log)

        call.state = HandshakeState.SENT
        log.info(
            "response_sent", status=resolution.response.status, kind=resolution.kind
        )
        return Response(
            content=resolution.response.body_bytes,
            status_code=resolution.response.status,
        )

    def _dispatch_request(self, call: InterceptedCall, log: Any) -> None:
        observer = self._request_observer
        try:
            result = observer(call)
        except Exception as e:
            self._fail_request(call, e, log)
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._handler_tasks.add(task)
            task.add_done_callback(partial(self._on_handler_done, call, log))

    def _on_handler_done(
        self, call: InterceptedCall, log: Any, task: asyncio.Task[Any]
    ) -> None:
        self._handler_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._fail_request(call, exc, log)

    def _fail_request(
        self, call: InterceptedCall, exc: BaseException, log: Any
    ) -> None:
        error = RequestHandlerError(exc)
        log.error("request_handler_failed", error=str(exc), exc_info=exc)
        if not call.resolved:
            call.resolve(
                SyntheticResolution(
                    response=CanonicalResponse(
                        status=error.status_code, body=error.message
                    )
                )
            )

    async def _await_resolution(self, call: InterceptedCall, log: Any) -> Resolution:
        try:
            return await call.pending.wait(self._resolution_timeout)
        except HandshakeTimeoutError as e:
            log.warning("handshake_timed_out", timeout=self._resolution_timeout)
            if not call.resolved:
                call.resolve(
                    SyntheticResolution(
                        response=CanonicalResponse(status=e.status_code, body=e.message)
                    )
                )
            return await call.pending.wait()

    async def _notify_response(self, exchange: InterceptedExchange, log: Any) -> None:
        observer = self._response_observer
        try:
            result = observer(exchange)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            error = ResponseHandlerError(e)
            log.error("response_handler_failed", error=error.message, exc_info=e)


def _as_upstream_client(
    client: UpstreamClient | httpx.AsyncClient | None,
) -> tuple[UpstreamClient, bool]:
    if client is None:
        return HTTPClientFactory.create_upstream_client(), True
    if isinstance(client, httpx.AsyncClient):
        return HTTPXUpstreamClient(client), False
    return client, False
