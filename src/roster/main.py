"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from roster.api import get_api_router
from roster.config import settings
from roster.core.auth import RequestContextMiddleware, RequestIdMiddleware
from roster.core.cache.redis import close_redis_pool
from roster.core.cors import CORSHeadersMiddleware, CorsPolicy
from roster.core.database import async_engine
from roster.core.errors import register_exception_handlers
from roster.core.logging import RequestLoggingMiddleware
from roster.core.rate_limit import build_rate_limiter


# Configure structlog
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        (
            structlog.processors.JSONRenderer()
            if settings.is_production
            else structlog.dev.ConsoleRenderer()
        ),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
        rate_limit_backend=settings.rate_limit_backend,
    )

    yield

    # Shutdown
    logger.info("application_shutdown")

    # Close Redis connection pool (only opened by the redis rate limit store)
    await close_redis_pool()
    logger.info("redis_pool_closed")

    await async_engine.dispose()
    logger.info("database_engine_disposed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant administration API for users, companies, teams and invitations",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
        # Disable docs in production
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    # One limiter per process; the gate dependency reads it from app.state
    app.state.rate_limiter = build_rate_limiter()

    # Middleware added last runs first: CORS wraps everything so error
    # responses and preflights get CORS headers too.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(CORSHeadersMiddleware, policy=CorsPolicy.from_settings())

    register_exception_handlers(app)

    app.include_router(get_api_router())

    return app
