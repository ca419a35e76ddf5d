"""Health check endpoints."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from app.config import settings
from app.core.database import check_db_connection
from app.core.redis import check_redis_connection
from app.core.usage import UsageRuleConfigError, validate_usage_rules

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response with per-dependency status."""

    status: str
    checks: dict[str, bool]


def _usage_rules_ok() -> bool:
    try:
        validate_usage_rules()
    except UsageRuleConfigError:
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Basic health check",
)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", version=settings.app_version)


@router.get(
    "/health/live",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Returns OK while the process is able to serve requests.",
)
async def liveness() -> HealthResponse:
    return HealthResponse(status="ok", version=settings.app_version)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description=(
        "Checks the database, Redis and the delete-protection rule table. "
        "Redis only backs token revocation, so its absence degrades but does not fail readiness."
    ),
    responses={
        status.HTTP_503_SERVICE_UNAVAILABLE: {
            "description": "Database unreachable or delete-protection rules misconfigured",
        }
    },
)
async def readiness(response: Response) -> ReadinessResponse:
    checks = {
        "database": await check_db_connection(),
        "redis": await check_redis_connection(),
        "usage_rules": _usage_rules_ok(),
    }

    if not (checks["database"] and checks["usage_rules"]):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        status_str = "unavailable"
    elif not checks["redis"]:
        status_str = "degraded"
    else:
        status_str = "ok"

    return ReadinessResponse(status=status_str, checks=checks)
