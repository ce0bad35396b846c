"""Request and response observer capabilities.

A driver holds one ``RequestObserver`` (decides how each call is answered)
and one ``ResponseObserver`` (sees each exchange before it is sent). Both
slots default to ``NOOP_OBSERVER``. Observers may be plain callables or
coroutine functions.
"""

from collections.abc import Awaitable
from typing import Any, Protocol

from mockdriver.core.logging import get_logger
from mockdriver.models import InterceptedExchange

from .handshake import InterceptedCall


logger = get_logger(__name__)


class RequestObserver(Protocol):
    def __call__(self, call: InterceptedCall) -> Awaitable[None] | None: ...


class ResponseObserver(Protocol):
    def __call__(self, exchange: InterceptedExchange) -> Awaitable[None] | None: ...


class NoopObserver:
    """Observer that ignores whatever it is given."""

    def __call__(self, _: Any) -> None:
        return None

    def __repr__(self) -> str:
        return "NoopObserver()"


NOOP_OBSERVER = NoopObserver()


class PassThroughObserver:
    """Request observer that defers every call to the real upstream."""

    def __init__(self, interceptor: Any = "pass-through") -> None:
        self.interceptor = interceptor

    async def __call__(self, call: InterceptedCall) -> None:
        await call.pass_through(interceptor=self.interceptor)

    def __repr__(self) -> str:
        return f"PassThroughObserver(interceptor={self.interceptor!r})"


class LoggingResponseObserver:
    """Response observer that logs every exchange."""

    def __init__(self, log: Any = None) -> None:
        self._logger = log or logger

    def __call__(self, exchange: InterceptedExchange) -> None:
        request = exchange.request
        self._logger.info(
            "exchange_completed",
            method=request.method,
            route=request.route_key,
            url=request.url,
            upstream_url=request.upstream_url,
            status=exchange.response.status,
            kind=exchange.kind,
            interceptor=exchange.interceptor,
            body_size=len(exchange.response.body),
        )

    def __repr__(self) -> str:
        return "LoggingResponseObserver()"
