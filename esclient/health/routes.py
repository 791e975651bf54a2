"""
FastAPI route exposing an Elasticsearch health check.

The response body is the serialized CheckState. The HTTP status follows the
severity: 200 for OK, 429 for WARNING and 500 for CRITICAL.
"""

from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from esclient.health.checker import HealthChecker
from esclient.health.state import CheckState, HealthStatus

STATUS_CODES = {
    HealthStatus.OK: 200,
    HealthStatus.WARNING: 429,
    HealthStatus.CRITICAL: 500,
}


def create_health_router(
    checker: HealthChecker,
    path: str = "/health",
    state: Optional[CheckState] = None,
) -> APIRouter:
    """
    Build a router that runs the checker on every request.

    Args:
        checker: The health checker to run
        path: Route path
        state: Optional shared state; the latest outcome and its success and
            failure times are kept across requests

    Returns:
        APIRouter with a single GET route
    """
    router = APIRouter()
    check_state = state or CheckState(name=checker.name)

    @router.get(path)
    async def health() -> JSONResponse:
        await checker.check(check_state)
        status_code = STATUS_CODES.get(check_state.status, 500)
        return JSONResponse(status_code=status_code, content=check_state.to_dict())

    return router
