"""Authentication service for login, registration, and token management."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from roster.config import settings
from roster.core.auth.backend import (
    get_token_expiration,
    sign_access_token,
    sign_refresh_token,
    sign_session_token,
    verify_password,
    verify_refresh_token,
)
from roster.core.auth.schemas import AccessClaims, TokenPair
from roster.core.constants import TEAM_ROLE_MEMBER
from roster.core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from roster.modules.teams.repos import TeamRepo
from roster.modules.users.models import User
from roster.modules.users.repos import RefreshTokenRepo
from roster.modules.users.services import UserSvc


logger = structlog.get_logger()

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
INVALID_REFRESH_MESSAGE = "Invalid or expired refresh token"


def claims_for(user: User) -> AccessClaims:
    """Access token claims for a user row."""
    return AccessClaims(
        id=user.id,
        email=user.email,
        name=user.name,
        isadmin=user.isadmin,
        is_super_admin=user.is_super_admin,
        company_id=user.company_id,
    )


def access_token_lifetime() -> int:
    """Access token lifetime in seconds."""
    return settings.access_token_expire_minutes * 60


class AuthService:
    """Service for authentication operations.

    Handles registration, login, token refresh, logout and the cookie
    session used by server-rendered callers. Each user has at most one live
    refresh token; issuing a new one replaces the previous one.
    """

    def __init__(
        self,
        users: UserSvc,
        tokens: RefreshTokenRepo,
        teams: TeamRepo,
    ) -> None:
        self.users = users
        self.token_repo = tokens
        self.teams = teams

    async def register(self, email: str, password: str, name: str) -> tuple[User, TokenPair]:
        """Register a new user and sign them in.

        The user joins the default team when it exists.

        Args:
            email: Lowercased email address
            password: Plain text password
            name: Display name

        Returns:
            Tuple of (user, token_pair)

        Raises:
            ConflictError: If the email is already registered
        """
        user = await self.users.create_account(name=name, email=email, password=password)

        default_team = await self.teams.get_by_name(settings.default_team_name)
        if default_team:
            await self.teams.upsert_member(default_team.id, user.id, TEAM_ROLE_MEMBER)

        token_pair = await self._issue_tokens(user)
        logger.info(
            "user_registered",
            user_id=str(user.id),
            joined_default_team=default_team is not None,
        )
        return user, token_pair

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials of an active user.

        Raises:
            UnauthorizedError: If the user is unknown, inactive or the
                password does not match
        """
        user = await self.users.repo.get_by_email(email)
        if not user or not user.active or not verify_password(password, user.password):
            logger.info("login_failed", email=email)
            raise UnauthorizedError(
                INVALID_CREDENTIALS_MESSAGE,
                error_code="invalid_credentials",
            )
        return user

    async def login(self, email: str, password: str) -> tuple[User, TokenPair]:
        """Authenticate and issue a token pair.

        Returns:
            Tuple of (user, token_pair)
        """
        user = await self.authenticate(email, password)
        token_pair = await self._issue_tokens(user)
        logger.info("user_logged_in", user_id=str(user.id))
        return user, token_pair

    async def refresh(self, refresh_token: str) -> tuple[User, TokenPair]:
        """Issue a new access token from a stored refresh token.

        The refresh token itself is not rotated.

        Raises:
            UnauthorizedError: If the token fails verification or is not
                the user's stored token
            NotFoundError: If the user is gone or inactive
        """
        claims = verify_refresh_token(refresh_token)
        if claims is None:
            raise UnauthorizedError(INVALID_REFRESH_MESSAGE, error_code="invalid_refresh_token")

        stored = await self.token_repo.find_by_token(refresh_token)
        if stored is None or stored.user_id != claims.id:
            raise UnauthorizedError(INVALID_REFRESH_MESSAGE, error_code="invalid_refresh_token")

        user = await self.users.repo.get_active_by_id(claims.id)
        if user is None:
            raise NotFoundError("User not found or inactive", resource="user")

        token_pair = TokenPair(
            access_token=sign_access_token(claims_for(user)),
            expires_in=access_token_lifetime(),
        )
        return user, token_pair

    async def logout(self, refresh_token: str) -> None:
        """Revoke one refresh token.

        Raises:
            UnauthorizedError: If the token fails verification
        """
        claims = verify_refresh_token(refresh_token)
        if claims is None:
            raise UnauthorizedError("Invalid refresh token", error_code="invalid_refresh_token")

        await self.token_repo.delete_by_token(refresh_token)
        logger.info("user_logged_out", user_id=str(claims.id))

    async def logout_all(self, user_id: UUID) -> int:
        """Revoke every refresh token of a user.

        Returns:
            Number of tokens revoked
        """
        revoked = await self.token_repo.delete_all_for_user(user_id)
        logger.info("user_logged_out_everywhere", user_id=str(user_id), revoked=revoked)
        return revoked

    async def verify(self, claims: AccessClaims) -> User:
        """Re-read the user behind a verified access token.

        Raises:
            NotFoundError: If the user no longer exists
            ForbiddenError: If the account is deactivated
        """
        user = await self.users.repo.get_by_id(claims.id)
        if user is None:
            raise NotFoundError("User not found", resource="user", resource_id=str(claims.id))
        if not user.active:
            raise ForbiddenError("Account is deactivated", error_code="account_inactive")
        return user

    async def setup(self) -> int:
        """Provision the refresh token store and purge expired tokens.

        Returns:
            Number of expired tokens removed
        """
        await self.token_repo.ensure_table()
        purged = await self.token_repo.purge_expired()
        logger.info("refresh_tokens_purged", purged=purged)
        return purged

    async def start_session(self, email: str, password: str) -> tuple[User, str]:
        """Authenticate and sign a session cookie value.

        Returns:
            Tuple of (user, session token)
        """
        user = await self.authenticate(email, password)
        logger.info("session_started", user_id=str(user.id))
        return user, sign_session_token(user.id)

    async def _issue_tokens(self, user: User) -> TokenPair:
        """Sign a token pair and store the refresh token, replacing the old one."""
        access_token = sign_access_token(claims_for(user))
        refresh_token = sign_refresh_token(user.id, user.email)

        await self.token_repo.upsert(user.id, refresh_token, get_token_expiration())

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=access_token_lifetime(),
        )


# Type alias for dependency injection
AuthSvc = Annotated[AuthService, Depends(AuthService)]
