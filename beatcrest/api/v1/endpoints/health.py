"""Health check endpoints for liveness and readiness checks."""

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from beatcrest.api.v1.dependencies import get_repositories
from beatcrest.core.config import get_settings
from beatcrest.schemas.health import (
    HealthResponse,
    ReadinessErrorResponse,
    ReadinessResponse,
)

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse(version=get_settings().app_version)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Firestore not configured", "model": ReadinessErrorResponse}},
)
async def readiness_check(request: Request) -> ReadinessResponse | JSONResponse:
    """Return 200 once the repositories are wired to Firestore; 503 otherwise."""
    try:
        get_repositories(request)
    except HTTPException as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content=ReadinessErrorResponse(message=exc.detail).model_dump(),
        )
    return ReadinessResponse()
