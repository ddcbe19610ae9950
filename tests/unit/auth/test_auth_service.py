"""Unit tests for AuthService with mocked repositories."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from roster.config import settings
from roster.core.auth.backend import (
    sign_refresh_token,
    verify_access_token,
    verify_refresh_token,
    verify_session_token,
)
from roster.core.auth.service import AuthService, claims_for
from roster.core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from roster.modules.teams.models import Team
from tests.factories import TEST_PASSWORD, UserFactory


@pytest.fixture
def users() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def tokens() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def teams() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(users: AsyncMock, tokens: AsyncMock, teams: AsyncMock) -> AuthService:
    return AuthService(users=users, tokens=tokens, teams=teams)


class TestLogin:
    """Tests for credential checks and token issuing."""

    async def test_login_issues_pair_and_stores_refresh_token(
        self, service: AuthService, users: AsyncMock, tokens: AsyncMock
    ):
        """A successful login signs both tokens and upserts the refresh token."""
        user = UserFactory.build()
        users.repo.get_by_email.return_value = user

        result_user, pair = await service.login(user.email, TEST_PASSWORD)

        assert result_user is user
        assert pair.refresh_token is not None
        assert pair.expires_in == settings.access_token_expire_minutes * 60
        claims = verify_access_token(pair.access_token)
        assert claims is not None
        assert claims.id == user.id
        tokens.upsert.assert_awaited_once()
        stored_user_id, stored_token, _ = tokens.upsert.await_args.args
        assert stored_user_id == user.id
        assert stored_token == pair.refresh_token

    @pytest.mark.parametrize(
        "user_kwargs,password",
        [
            ({}, "wrong-password"),
            ({"active": False}, TEST_PASSWORD),
        ],
        ids=["wrong-password", "inactive"],
    )
    async def test_login_rejects(self, service: AuthService, users: AsyncMock, user_kwargs, password):
        """Wrong passwords and inactive accounts get the same 401."""
        users.repo.get_by_email.return_value = UserFactory.build(**user_kwargs)

        with pytest.raises(UnauthorizedError) as exc_info:
            await service.login("someone@example.com", password)

        assert exc_info.value.message == "Invalid email or password"

    async def test_login_unknown_email(self, service: AuthService, users: AsyncMock):
        users.repo.get_by_email.return_value = None

        with pytest.raises(UnauthorizedError):
            await service.login("nobody@example.com", TEST_PASSWORD)


class TestRegister:
    """Tests for self-registration."""

    async def test_register_joins_default_team(
        self, service: AuthService, users: AsyncMock, teams: AsyncMock
    ):
        user = UserFactory.build()
        users.create_account.return_value = user
        teams.get_by_name.return_value = Team(id=7, name="DefaultTeam")

        result_user, pair = await service.register(user.email, TEST_PASSWORD, user.name)

        assert result_user is user
        assert pair.refresh_token is not None
        users.create_account.assert_awaited_once_with(
            name=user.name,
            email=user.email,
            password=TEST_PASSWORD,
        )
        teams.upsert_member.assert_awaited_once_with(7, user.id, "member")

    async def test_register_without_default_team(
        self, service: AuthService, users: AsyncMock, teams: AsyncMock
    ):
        """Registration still succeeds when the default team is missing."""
        users.create_account.return_value = UserFactory.build()
        teams.get_by_name.return_value = None

        await service.register("new@example.com", TEST_PASSWORD, "New User")

        teams.upsert_member.assert_not_awaited()


class TestRefresh:
    """Tests for exchanging refresh tokens."""

    async def test_refresh_returns_access_token_only(
        self, service: AuthService, users: AsyncMock, tokens: AsyncMock
    ):
        """The refresh token is not rotated."""
        user = UserFactory.build()
        refresh = sign_refresh_token(user.id, user.email)
        tokens.find_by_token.return_value = MagicMock(user_id=user.id)
        users.repo.get_active_by_id.return_value = user

        result_user, pair = await service.refresh(refresh)

        assert result_user is user
        assert pair.refresh_token is None
        assert verify_access_token(pair.access_token) is not None
        tokens.upsert.assert_not_awaited()

    async def test_refresh_rejects_invalid_jwt(self, service: AuthService, tokens: AsyncMock):
        with pytest.raises(UnauthorizedError) as exc_info:
            await service.refresh("garbage")

        assert exc_info.value.message == "Invalid or expired refresh token"
        tokens.find_by_token.assert_not_awaited()

    async def test_refresh_rejects_unstored_token(self, service: AuthService, tokens: AsyncMock):
        """A valid JWT that was replaced by a newer login is rejected."""
        tokens.find_by_token.return_value = None

        with pytest.raises(UnauthorizedError):
            await service.refresh(sign_refresh_token(uuid4(), "x@example.com"))

    async def test_refresh_rejects_token_of_other_user(self, service: AuthService, tokens: AsyncMock):
        tokens.find_by_token.return_value = MagicMock(user_id=uuid4())

        with pytest.raises(UnauthorizedError):
            await service.refresh(sign_refresh_token(uuid4(), "x@example.com"))

    async def test_refresh_inactive_user(
        self, service: AuthService, users: AsyncMock, tokens: AsyncMock
    ):
        user_id = uuid4()
        tokens.find_by_token.return_value = MagicMock(user_id=user_id)
        users.repo.get_active_by_id.return_value = None

        with pytest.raises(NotFoundError) as exc_info:
            await service.refresh(sign_refresh_token(user_id, "x@example.com"))

        assert exc_info.value.message == "User not found or inactive"


class TestLogout:
    """Tests for revoking refresh tokens."""

    async def test_logout_deletes_token(self, service: AuthService, tokens: AsyncMock):
        refresh = sign_refresh_token(uuid4(), "x@example.com")

        await service.logout(refresh)

        tokens.delete_by_token.assert_awaited_once_with(refresh)

    async def test_logout_rejects_invalid_token(self, service: AuthService, tokens: AsyncMock):
        with pytest.raises(UnauthorizedError) as exc_info:
            await service.logout("garbage")

        assert exc_info.value.message == "Invalid refresh token"
        tokens.delete_by_token.assert_not_awaited()

    async def test_logout_all(self, service: AuthService, tokens: AsyncMock):
        user_id = uuid4()
        tokens.delete_all_for_user.return_value = 1

        assert await service.logout_all(user_id) == 1
        tokens.delete_all_for_user.assert_awaited_once_with(user_id)


class TestVerifyAndSetup:
    """Tests for verify, setup and cookie sessions."""

    async def test_verify_returns_current_row(self, service: AuthService, users: AsyncMock):
        user = UserFactory.build()
        users.repo.get_by_id.return_value = user

        assert await service.verify(claims_for(user)) is user

    async def test_verify_deactivated(self, service: AuthService, users: AsyncMock):
        user = UserFactory.build(active=False)
        users.repo.get_by_id.return_value = user

        with pytest.raises(ForbiddenError) as exc_info:
            await service.verify(claims_for(user))

        assert exc_info.value.message == "Account is deactivated"

    async def test_verify_deleted_user(self, service: AuthService, users: AsyncMock):
        users.repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await service.verify(claims_for(UserFactory.build()))

    async def test_setup_provisions_and_purges(self, service: AuthService, tokens: AsyncMock):
        tokens.purge_expired.return_value = 3

        assert await service.setup() == 3
        tokens.ensure_table.assert_awaited_once()

    async def test_start_session_signs_cookie(self, service: AuthService, users: AsyncMock):
        user = UserFactory.build()
        users.repo.get_by_email.return_value = user

        result_user, cookie = await service.start_session(user.email, TEST_PASSWORD)

        assert result_user is user
        claims = verify_session_token(cookie)
        assert claims is not None
        assert claims.user_id == user.id

    async def test_issued_refresh_token_names_user(self, service: AuthService, users: AsyncMock):
        user = UserFactory.build()
        users.repo.get_by_email.return_value = user

        with patch("roster.core.auth.service.get_token_expiration") as expiration:
            _, pair = await service.login(user.email, TEST_PASSWORD)

        claims = verify_refresh_token(pair.refresh_token)
        assert claims is not None
        assert claims.id == user.id
        expiration.assert_called_once_with()
