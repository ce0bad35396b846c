"""Health check endpoint."""

from typing import Any

from fastapi import APIRouter, Request, Response

from mockdriver._version import __version__
from mockdriver.core.logging import get_logger


router = APIRouter()
logger = get_logger(__name__)


@router.get("/health")
async def health(request: Request, response: Response) -> dict[str, Any]:
    """Report process liveness, configured routes and the interception flag."""
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"

    driver = getattr(request.app.state, "driver", None)
    logger.debug("health_check_request")

    return {
        "status": "pass",
        "version": __version__,
        "routes": driver.routes.keys() if driver else [],
        "interception": driver.active if driver else False,
    }
