"""Async database session management."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from roster.config import settings


def _connect_args() -> dict[str, Any]:
    """asyncpg connection arguments: timeouts and optional TLS."""
    args: dict[str, Any] = {
        "timeout": settings.database_connect_timeout,
        "command_timeout": settings.database_query_timeout,
    }
    if settings.database_ssl:
        args["ssl"] = "require"
    return args


# Create async engine
async_engine = create_async_engine(
    settings.async_database_url,
    pool_size=settings.database_pool_size,
    echo=settings.database_echo,
    pool_pre_ping=True,  # Verify connections before use
    connect_args=_connect_args(),
)

# Create async session factory
async_session_factory = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session.

    The request's work is committed when the handler returns and rolled back
    if it raises, so multi-step mutations never leave partial effects.

    Usage:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
