"""FastAPI application factory for the interception proxy."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from mockdriver._version import __version__
from mockdriver.config.settings import Settings, get_settings
from mockdriver.core.http_client import HTTPClientFactory, UpstreamClient
from mockdriver.core.logging import get_logger
from mockdriver.driver import (
    InterceptionDriver,
    LoggingResponseObserver,
    PassThroughObserver,
    ServerRegistry,
)

from .routes.health import router as health_router


logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    client: UpstreamClient | httpx.AsyncClient | None = None,
    registry: ServerRegistry | None = None,
    install_default_observers: bool = True,
) -> FastAPI:
    """Create the proxy app with an interception driver attached.

    The driver is available as ``app.state.driver``. With the default
    observers installed the app is a logging pass-through proxy until a
    harness installs its own handlers.

    Args:
        settings: Settings to use, loaded from the environment if None
        client: Upstream client; one is created from settings if None
        registry: Server registry for the driver, process default if None
        install_default_observers: Install pass-through and logging observers
    """
    if settings is None:
        settings = get_settings()

    owned_client = None
    if client is None:
        owned_client = HTTPClientFactory.create_upstream_client(settings)
        client = owned_client

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "app_startup",
            version=__version__,
            routes=settings.routes,
            interception=app.state.driver.active,
        )
        yield
        await app.state.driver.aclose()
        if owned_client is not None:
            await owned_client.aclose()
        logger.info("app_shutdown")

    app = FastAPI(
        title="mockdriver",
        description="HTTP interception proxy for test harnesses and API mocking",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(health_router)

    driver = InterceptionDriver(
        app=app,
        routes=settings.routes,
        client=client,
        registry=registry,
        resolution_timeout=settings.driver.resolution_timeout,
        active=settings.driver.interception_enabled,
    )
    if install_default_observers:
        driver.on_request(PassThroughObserver())
        driver.on_response(LoggingResponseObserver())

    app.state.driver = driver
    app.state.settings = settings
    return app
