"""Custom exceptions for the interception driver."""

from typing import Any


class MockDriverError(Exception):
    """Base exception for interception driver errors."""

    def __init__(
        self,
        message: str,
        error_type: str = "internal_server_error",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or {}


class ConfigurationError(MockDriverError):
    """Raised when configuration loading or validation fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, error_type="configuration_error")


class DuplicateDriverError(MockDriverError):
    """A server instance already has an interception driver attached."""

    def __init__(self, message: str = "server instance already has a driver") -> None:
        super().__init__(message=message, error_type="duplicate_driver_error")


class InactiveDriverError(MockDriverError):
    """Interception is switched off; the caller gets a fixed 500."""

    def __init__(self, message: str = "driver not active") -> None:
        super().__init__(
            message=message, error_type="inactive_driver_error", status_code=500
        )


class UpstreamTransportError(MockDriverError):
    """The upstream could not be reached or the transfer failed."""

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(
            message=f"upstream request failed: {cause}",
            error_type="upstream_transport_error",
            status_code=500,
            details={"url": url, "cause": type(cause).__name__},
        )


class RequestHandlerError(MockDriverError):
    """The request handler raised before resolving the handshake."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(
            message=f"request handler failed: {cause}",
            error_type="request_handler_error",
            status_code=500,
            details={"cause": type(cause).__name__},
        )


class ResponseHandlerError(MockDriverError):
    """The response handler raised while observing an exchange."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(
            message=f"response handler failed: {cause}",
            error_type="response_handler_error",
            details={"cause": type(cause).__name__},
        )


class HandshakeAlreadyResolvedError(MockDriverError):
    """A pending resolution was resolved more than once."""

    def __init__(self, message: str = "handshake already resolved") -> None:
        super().__init__(message=message, error_type="handshake_resolved_error")


class HandshakeTimeoutError(MockDriverError):
    """The request handler did not resolve within the configured timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(
            message="interception handshake timed out",
            error_type="timeout_error",
            status_code=504,
            details={"timeout": timeout},
        )
