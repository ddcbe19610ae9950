"""Pytest configuration and shared fixtures.

Integration fixtures (``db``, ``client`` and the user fixtures) need a
PostgreSQL database at ``TEST_DATABASE_URL``; tests using them are skipped
when it cannot be reached. ``api_client`` runs the full app against a
mocked session and needs no external services.
"""

import os
from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from roster.config import settings
from roster.core.auth.backend import sign_access_token
from roster.core.auth.service import claims_for
from roster.core.database import Base, get_db
from roster.main import create_app

# Import all models to ensure they're registered with Base.metadata
from roster.modules.companies.models import Company
from roster.modules.invitations.models import Invitation  # noqa: F401
from roster.modules.teams.models import Team, UserTeam  # noqa: F401
from roster.modules.users.models import RefreshToken, User  # noqa: F401
from tests.factories import CompanyFactory, TeamFactory, UserFactory


# Test database URL - defaults to the configured database with a _test suffix
TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    settings.async_database_url.rsplit("/", 1)[0] + "/roster_test",
)


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine with a fresh schema."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=NullPool,
        echo=False,
    )

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, SQLAlchemyError) as exc:
        await engine.dispose()
        pytest.skip(f"test database unavailable: {exc}")

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a transactional database session for tests.

    Each test runs in its own transaction that is rolled back
    after the test completes, ensuring test isolation.
    """
    async with engine.connect() as conn:
        await conn.begin()

        session_factory = async_sessionmaker(
            bind=conn,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
            join_transaction_mode="create_savepoint",
        )
        async with session_factory() as session:
            yield session

        await conn.rollback()


@pytest.fixture
async def app(db: AsyncSession) -> AsyncGenerator[FastAPI, None]:
    """Create test application instance bound to the test session."""
    application = create_app()

    # Override database dependency
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    application.dependency_overrides[get_db] = override_get_db

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def mock_session() -> MagicMock:
    """A stand-in session whose ``execute`` succeeds and returns nothing."""
    session = MagicMock(spec=AsyncSession)
    session.execute = AsyncMock()
    return session


@pytest.fixture
async def api_client(mock_session: MagicMock) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the full app with the database mocked out."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield mock_session

    application.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=application),
        base_url="http://test",
    ) as client:
        yield client
    application.dependency_overrides.clear()


@pytest.fixture
def anyio_backend() -> str:
    """Specify the async backend for anyio."""
    return "asyncio"


# ============================================================
# Company, Team and User Fixtures
# ============================================================


async def _persist(db: AsyncSession, instance):  # type: ignore[no-untyped-def]
    db.add(instance)
    await db.flush()
    await db.refresh(instance)
    return instance


@pytest.fixture
async def company(db: AsyncSession) -> Company:
    """A persisted company."""
    return await _persist(db, CompanyFactory.build(name="Acme Clinic"))


@pytest.fixture
async def other_company(db: AsyncSession) -> Company:
    """A second persisted company."""
    return await _persist(db, CompanyFactory.build(name="Globex Health"))


@pytest.fixture
async def admin(db: AsyncSession, company: Company) -> User:
    """An active company admin of ``company``."""
    return await _persist(
        db,
        UserFactory.build(name="Acme Admin", isadmin=True, company_id=company.id),
    )


@pytest.fixture
async def member(db: AsyncSession, company: Company) -> User:
    """A regular user of ``company``."""
    return await _persist(db, UserFactory.build(name="Acme Member", company_id=company.id))


@pytest.fixture
async def other_admin(db: AsyncSession, other_company: Company) -> User:
    """A company admin of ``other_company``."""
    return await _persist(
        db,
        UserFactory.build(name="Globex Admin", isadmin=True, company_id=other_company.id),
    )


@pytest.fixture
async def other_member(db: AsyncSession, other_company: Company) -> User:
    """A regular user of ``other_company``."""
    return await _persist(
        db,
        UserFactory.build(name="Globex Member", company_id=other_company.id),
    )


@pytest.fixture
async def super_admin(db: AsyncSession) -> User:
    """A super admin without a company."""
    return await _persist(
        db,
        UserFactory.build(name="Root Admin", isadmin=True, is_super_admin=True),
    )


@pytest.fixture
async def default_team(db: AsyncSession) -> Team:
    """The team every registered user joins."""
    return await _persist(db, TeamFactory.build(name=settings.default_team_name))


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    """Build bearer headers carrying a user's current claims."""

    def _headers(user: User) -> dict[str, str]:
        token = sign_access_token(claims_for(user))
        return {"Authorization": f"Bearer {token}"}

    return _headers
