"""User and refresh token repositories for database operations."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, ClassVar
from uuid import UUID, uuid4

from fastapi import Depends
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from roster.api.dependencies import DBSession
from roster.core.auth.backend import hash_token
from roster.core.database import storage_errors
from roster.core.utils.pagination import page_offset
from roster.modules.teams.models import UserTeam
from roster.modules.users.models import RefreshToken, User


class UserStatusFilter(StrEnum):
    """Status filter accepted by user listings."""

    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"
    ADMIN = "admin"


class UserRepository:
    """Repository for User database operations.

    Handles all database interactions for the User model. Methods that
    take a ``company_id`` restrict results to that company when it is set.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User instance to create

        Returns:
            The created user with ID populated

        Raises:
            StorageError: If the email or slug is already taken
        """
        self.session.add(user)
        with storage_errors():
            await self.session.flush()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: UUID, company_id: UUID | None = None) -> User | None:
        """Get a user by ID.

        Args:
            user_id: The user's UUID
            company_id: Optional company for scoping

        Returns:
            User if found, None otherwise
        """
        stmt = select(User).where(User.id == user_id)
        if company_id:
            stmt = stmt.where(User.company_id == company_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID only if the account is active."""
        result = await self.session.execute(
            select(User).where(User.id == user_id, User.active.is_(True))
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email address (case-insensitive).

        Args:
            email: The user's email

        Returns:
            User if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str) -> bool:
        """Check whether a slug is already used."""
        result = await self.session.execute(
            select(func.count()).select_from(User).where(User.slug == slug)
        )
        return result.scalar_one() > 0

    async def list_page(
        self,
        company_id: UUID | None = None,
        search: str | None = None,
        status: UserStatusFilter = UserStatusFilter.ALL,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[tuple[User, int]], int]:
        """List users with their team counts.

        Args:
            company_id: Restrict to one company when set
            search: Case-insensitive substring of name or email
            status: Status filter
            page: Page number (1-indexed)
            limit: Number of items per page

        Returns:
            Tuple of ((user, team_count) list, total count)
        """
        filters = []
        if company_id:
            filters.append(User.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if status is UserStatusFilter.ACTIVE:
            filters.append(User.active.is_(True))
        elif status is UserStatusFilter.INACTIVE:
            filters.append(User.active.is_(False))
        elif status is UserStatusFilter.ADMIN:
            filters.append(User.isadmin.is_(True))

        # Count total
        count_stmt = select(func.count()).select_from(User).where(*filters)
        total = (await self.session.execute(count_stmt)).scalar_one()

        # Get paginated results
        team_count = (
            select(func.count())
            .select_from(UserTeam)
            .where(UserTeam.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        stmt = (
            select(User, team_count.label("team_count"))
            .where(*filters)
            .order_by(User.created_at.desc(), User.name)
            .offset(page_offset(page, limit))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        rows = [(user, count) for user, count in result.all()]

        return rows, total

    async def update(self, user: User) -> User:
        """Update a user.

        Args:
            user: User instance with updated fields

        Returns:
            The updated user

        Raises:
            StorageError: If the new email or slug is already taken
        """
        with storage_errors():
            await self.session.flush()
        await self.session.refresh(user)
        return user

    async def delete_unless_last_admin(
        self,
        user_id: UUID,
        company_id: UUID | None = None,
    ) -> int:
        """Delete a user unless it is the last active admin.

        Active admin rows are locked first so that two concurrent deletes
        of different admins serialize; the DELETE itself then checks in
        the same statement that another active admin remains.

        Args:
            user_id: The user to delete
            company_id: Optional company for scoping

        Returns:
            Number of users deleted (0 or 1)
        """
        await self.session.execute(
            select(User.id)
            .where(User.isadmin.is_(True), User.active.is_(True))
            .with_for_update()
        )

        other_admins = (
            select(func.count())
            .select_from(User)
            .where(User.isadmin.is_(True), User.active.is_(True), User.id != user_id)
            .scalar_subquery()
        )
        stmt = delete(User).where(
            User.id == user_id,
            or_(~and_(User.isadmin.is_(True), User.active.is_(True)), other_admins > 0),
        )
        if company_id:
            stmt = stmt.where(User.company_id == company_id)

        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount


class RefreshTokenRepository:
    """Repository for the one-per-user refresh token store.

    Tokens are only ever stored and compared as SHA-256 hashes. The table
    is created on first use if it does not exist yet.
    """

    _table_ready: ClassVar[bool] = False

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def ensure_table(self) -> None:
        """Create the refresh token table if it is missing (idempotent)."""
        if RefreshTokenRepository._table_ready:
            return

        def _create(sync_session) -> None:  # type: ignore[no-untyped-def]
            RefreshToken.__table__.create(sync_session.connection(), checkfirst=True)

        await self.session.run_sync(_create)
        RefreshTokenRepository._table_ready = True

    async def upsert(self, user_id: UUID, token: str, expires_at: datetime) -> None:
        """Store a user's refresh token, replacing any previous one.

        A single INSERT ... ON CONFLICT statement, so concurrent logins for
        the same user resolve without application locking.

        Args:
            user_id: The token owner
            token: The plain refresh token
            expires_at: When the token expires
        """
        await self.ensure_table()
        token_hash = hash_token(token)
        stmt = pg_insert(RefreshToken).values(
            id=uuid4(),
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[RefreshToken.user_id],
            set_={
                "token_hash": token_hash,
                "expires_at": expires_at,
                "updated_at": func.now(),
            },
        )
        await self.session.execute(stmt)

    async def find_by_token(self, token: str) -> RefreshToken | None:
        """Find a non-expired refresh token.

        Args:
            token: The plain refresh token

        Returns:
            RefreshToken if found and not expired, None otherwise
        """
        await self.ensure_table()
        stmt = select(RefreshToken).where(
            RefreshToken.token_hash == hash_token(token),
            RefreshToken.expires_at > datetime.now(UTC),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_by_token(self, token: str) -> int:
        """Delete a refresh token.

        Returns:
            Number of tokens deleted
        """
        await self.ensure_table()
        result = await self.session.execute(
            delete(RefreshToken).where(RefreshToken.token_hash == hash_token(token))
        )
        return result.rowcount

    async def delete_all_for_user(self, user_id: UUID) -> int:
        """Delete every refresh token of a user.

        Args:
            user_id: The user's UUID

        Returns:
            Number of tokens deleted
        """
        await self.ensure_table()
        result = await self.session.execute(
            delete(RefreshToken).where(RefreshToken.user_id == user_id)
        )
        return result.rowcount

    async def purge_expired(self) -> int:
        """Delete expired tokens.

        Returns:
            Number of tokens deleted
        """
        await self.ensure_table()
        result = await self.session.execute(
            delete(RefreshToken).where(RefreshToken.expires_at <= datetime.now(UTC))
        )
        return result.rowcount


# Type aliases for dependency injection
UserRepo = Annotated[UserRepository, Depends(UserRepository)]
RefreshTokenRepo = Annotated[RefreshTokenRepository, Depends(RefreshTokenRepository)]
