"""Single-resolution handshake between a request handler and the driver."""

import asyncio
from typing import Any

from mockdriver.exceptions import HandshakeAlreadyResolvedError, HandshakeTimeoutError
from mockdriver.models import (
    CanonicalRequest,
    CanonicalResponse,
    HandshakeState,
    RealResolution,
    Resolution,
    SyntheticResolution,
)


class PendingResolution:
    """Future that a request handler resolves exactly once."""

    def __init__(self) -> None:
        self._future: asyncio.Future[Resolution] = (
            asyncio.get_running_loop().create_future()
        )

    @property
    def resolved(self) -> bool:
        return self._future.done()

    def resolve(self, resolution: Resolution) -> None:
        """Resolve the handshake.

        Raises:
            HandshakeAlreadyResolvedError: If it was already resolved
        """
        if self._future.done():
            raise HandshakeAlreadyResolvedError()
        self._future.set_result(resolution)

    async def wait(self, timeout: float | None = None) -> Resolution:
        """Suspend until resolved.

        Raises:
            HandshakeTimeoutError: If ``timeout`` elapses first; the
                handshake itself stays pending
        """
        # Shielded so a cancelled waiter leaves the handshake pending.
        if timeout is None:
            return await asyncio.shield(self._future)
        try:
            return await asyncio.wait_for(asyncio.shield(self._future), timeout)
        except asyncio.TimeoutError as e:
            raise HandshakeTimeoutError(timeout) from e


class InterceptedCall:
    """What a request handler receives: the request plus ways to answer it.

    A handler answers exactly once, either synthetically with
    :meth:`respond` or by deferring to the real upstream with
    :meth:`pass_through`. :meth:`fetch_real` gives access to the upstream
    response without resolving, for handlers that want to rewrite it.
    """

    def __init__(self, request: CanonicalRequest, pending: PendingResolution) -> None:
        self.request = request
        self.pending = pending
        self.state = HandshakeState.PENDING

    @property
    def resolved(self) -> bool:
        return self.pending.resolved

    def resolve(self, resolution: Resolution) -> None:
        self.pending.resolve(resolution)

    def respond(
        self,
        response: CanonicalResponse | None = None,
        *,
        status: int = 200,
        body: bytes | str = b"",
        headers: dict[str, str] | None = None,
        interceptor: Any = None,
    ) -> CanonicalResponse:
        """Resolve with a synthetic response; the upstream is never called."""
        if response is None:
            response = CanonicalResponse(status=status, body=body, headers=headers or {})
        self.resolve(SyntheticResolution(response=response, interceptor=interceptor))
        return response

    async def fetch_real(self) -> CanonicalResponse:
        """Get the real upstream response (fetched at most once)."""
        if self.request.fetch_real is None:
            raise RuntimeError("request is not bound to an upstream fetcher")
        return await self.request.fetch_real()

    async def pass_through(self, interceptor: Any = None) -> CanonicalResponse:
        """Resolve with the real upstream response."""
        response = await self.fetch_real()
        self.resolve(RealResolution(response=response, interceptor=interceptor))
        return response

    def __repr__(self) -> str:
        return (
            f"InterceptedCall(method={self.request.method!r}, "
            f"url={self.request.url!r}, state={self.state.value!r})"
        )
