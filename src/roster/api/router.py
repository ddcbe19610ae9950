"""Root API router: probes, service info and the versioned API.

The probes and ``/info`` sit outside ``/api/v1`` and outside the gate, so
they are neither rate limited nor authenticated.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from roster.api.dependencies import DBSession
from roster.config import settings
from roster.core.auth import get_router as get_auth_router
from roster.core.cache import redis_client
from roster.modules import discover_modules


API_PREFIX = "/api/v1"
APP_VERSION = "0.1.0"


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Readiness with one entry per dependency, ``"ok"`` or the error."""

    status: str
    checks: dict[str, str]


class RateLimitInfo(BaseModel):
    backend: str
    requests: int
    window_seconds: int


class InfoResponse(BaseModel):
    """Public description of this roster deployment."""

    app: str
    version: str
    environment: str
    api_prefix: str
    rate_limit: RateLimitInfo
    allowed_origins: list[str]


api_router = APIRouter()

# Probes and info (no /api/v1 prefix)
health_router = APIRouter(tags=["health"])


async def _check_rate_limit_store() -> str:
    # The in-memory store lives in this process and cannot be down
    if settings.rate_limit_backend != "redis":
        return "ok"
    try:
        async with redis_client() as client:
            await client.ping()
    except RedisError as e:
        return str(e)
    return "ok"


@health_router.get(
    "/health/live",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Returns 200 if the process is running.",
)
async def liveness() -> HealthResponse:
    return HealthResponse(status="alive")


@health_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Checks the database and, with the redis backend, the rate limit store.",
)
async def readiness(db: DBSession) -> JSONResponse:
    """Report 503 while users or rate limit counters cannot be reached."""
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as e:
        checks["database"] = str(e)

    checks["rate_limit_store"] = await _check_rate_limit_store()

    ready = all(v == "ok" for v in checks.values())
    body = ReadinessResponse(status="ready" if ready else "degraded", checks=checks)
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(),
    )


@health_router.get(
    "/info",
    response_model=InfoResponse,
    summary="Service info",
    description="Version, API prefix, rate limit policy and allowed CORS origins.",
)
async def info() -> InfoResponse:
    return InfoResponse(
        app=settings.app_name,
        version=APP_VERSION,
        environment=settings.environment,
        api_prefix=API_PREFIX,
        rate_limit=RateLimitInfo(
            backend=settings.rate_limit_backend,
            requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window,
        ),
        allowed_origins=settings.allowed_origin_list,
    )


# Versioned API: auth plus every discovered module
v1_router = APIRouter(prefix=API_PREFIX)
v1_router.include_router(get_auth_router())

for module_router in discover_modules():
    v1_router.include_router(module_router)

api_router.include_router(health_router)
api_router.include_router(v1_router)
