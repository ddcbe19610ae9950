"""User service for business logic."""

from collections.abc import Sequence
from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends

from roster.core.auth.backend import hash_password, verify_password
from roster.core.constants import DEFAULT_USER_SETTINGS, MAX_SLUG_ATTEMPTS
from roster.core.database import StorageError
from roster.core.errors import (
    BadRequestError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from roster.core.permissions import TenantScope
from roster.core.utils.text import generate_user_slug
from roster.modules.teams.models import Team
from roster.modules.teams.repos import TeamRepo
from roster.modules.users.models import User
from roster.modules.users.repos import UserRepo, UserStatusFilter
from roster.modules.users.schemas import (
    PasswordChange,
    PasswordReset,
    ProfileUpdate,
    UserCreate,
    UserUpdate,
)


logger = structlog.get_logger()

EMAIL_EXISTS_MESSAGE = "User with this email already exists"
EMAIL_TAKEN_MESSAGE = "Email already taken"
SLUG_TAKEN_MESSAGE = "Slug already taken"


def conflict_from_storage(err: StorageError, email_message: str = EMAIL_EXISTS_MESSAGE) -> Exception:
    """Translate a storage failure on the users table into an API error."""
    if err.is_unique("uq_users_email"):
        return ConflictError(email_message, field="email", error_code="email_exists")
    if err.is_unique("uq_users_slug"):
        return ConflictError(SLUG_TAKEN_MESSAGE, field="slug", error_code="slug_exists")
    if err.constraint == "fk_users_company_id_companies":
        return NotFoundError("Company not found", resource="company")
    return DatabaseError(details={"kind": err.kind.value})


class UserService:
    """Service for user management operations.

    Contains business logic for admin user management, the caller's own
    profile and settings, and team memberships. Every admin operation takes
    the caller's :class:`TenantScope` and applies it before touching storage.
    """

    def __init__(self, repo: UserRepo, teams: TeamRepo) -> None:
        self.repo = repo
        self.teams = teams

    # ============================================================
    # Shared helpers
    # ============================================================

    async def unique_slug(self, name: str) -> str:
        """Generate a user slug that is not taken yet.

        Raises:
            ConflictError: If no free slug was found after several attempts
        """
        for _ in range(MAX_SLUG_ATTEMPTS):
            slug = generate_user_slug(name)
            if not await self.repo.slug_exists(slug):
                return slug
        raise ConflictError(
            "Could not generate a unique slug",
            field="slug",
            error_code="slug_exists",
        )

    async def create_account(
        self,
        *,
        name: str,
        email: str,
        password: str,
        isadmin: bool = False,
        is_super_admin: bool = False,
        company_id: UUID | None = None,
        slug: str | None = None,
        active: bool = True,
        email_message: str = EMAIL_EXISTS_MESSAGE,
    ) -> User:
        """Persist a new user with a hashed password and a unique slug.

        Args:
            name: Display name
            email: Lowercased email
            password: Plain text password
            isadmin: Company admin flag
            is_super_admin: Super admin flag
            company_id: Company to place the user in
            slug: Explicit slug, generated from the name when omitted
            active: Whether the account can log in
            email_message: Conflict message for a taken email

        Returns:
            The created user

        Raises:
            ConflictError: If the email or slug is taken
        """
        if await self.repo.get_by_email(email):
            raise ConflictError(email_message, field="email", error_code="email_exists")

        if slug is None:
            slug = await self.unique_slug(name)
        elif await self.repo.slug_exists(slug):
            raise ConflictError(SLUG_TAKEN_MESSAGE, field="slug", error_code="slug_exists")

        user = User(
            name=name,
            email=email.lower(),
            password=hash_password(password),
            slug=slug,
            isadmin=isadmin,
            is_super_admin=is_super_admin,
            active=active,
            company_id=company_id,
            settings={},
        )
        try:
            return await self.repo.create(user)
        except StorageError as err:
            raise conflict_from_storage(err, email_message) from err

    async def get_user(self, scope: TenantScope, user_id: UUID) -> User:
        """Get a user the caller is allowed to see.

        Regular admins get the same 403 whether the id belongs to another
        company or does not exist at all.

        Raises:
            ForbiddenError: If the user is outside the caller's company
            NotFoundError: If a super admin asks for an unknown id
        """
        user = await self.repo.get_by_id(user_id)
        scope.ensure_can_access(user.company_id if user else None)
        if user is None:
            raise NotFoundError("User not found", resource="user", resource_id=str(user_id))
        return user

    async def _save(self, user: User, email_message: str = EMAIL_EXISTS_MESSAGE) -> User:
        try:
            return await self.repo.update(user)
        except StorageError as err:
            raise conflict_from_storage(err, email_message) from err

    async def _ensure_email_free(self, user: User, email: str, message: str) -> None:
        if email == user.email:
            return
        existing = await self.repo.get_by_email(email)
        if existing and existing.id != user.id:
            raise ConflictError(message, field="email", error_code="email_exists")

    # ============================================================
    # Admin user management
    # ============================================================

    async def list_users(
        self,
        scope: TenantScope,
        *,
        search: str | None = None,
        status: UserStatusFilter = UserStatusFilter.ALL,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[tuple[User, int]], int]:
        """List users visible to the caller with their team counts.

        Raises:
            ForbiddenError: If a regular admin has no company
        """
        return await self.repo.list_page(
            company_id=scope.company_filter(),
            search=search,
            status=status,
            page=page,
            limit=limit,
        )

    async def create_user(self, scope: TenantScope, data: UserCreate) -> User:
        """Create a user on behalf of an admin.

        Regular admins always create users in their own company and can
        never grant super admin.
        """
        company_id = scope.assign_company(
            data.company_id,
            provided="company_id" in data.model_fields_set,
        )
        user = await self.create_account(
            name=data.name,
            email=data.email,
            password=data.password,
            isadmin=data.isadmin,
            is_super_admin=data.is_super_admin and scope.unscoped,
            company_id=company_id,
            slug=data.slug,
            active=data.active,
        )
        logger.info("user_created", user_id=str(user.id), created_by=str(scope.user_id))
        return user

    async def update_user(self, scope: TenantScope, user_id: UUID, data: UserUpdate) -> User:
        """Apply an admin's partial update to a user.

        Raises:
            BadRequestError: If the payload is empty
            ConflictError: If the new email or slug is taken
        """
        fields = data.model_dump(exclude_unset=True)
        if not fields:
            raise BadRequestError("No fields to update", error_code="no_fields")

        user = await self.get_user(scope, user_id)

        if data.email is not None:
            await self._ensure_email_free(user, data.email, EMAIL_EXISTS_MESSAGE)
            user.email = data.email
        if data.slug is not None and data.slug != user.slug:
            if await self.repo.slug_exists(data.slug):
                raise ConflictError(SLUG_TAKEN_MESSAGE, field="slug", error_code="slug_exists")
            user.slug = data.slug
        if data.name is not None:
            user.name = data.name
        if data.isadmin is not None:
            user.isadmin = data.isadmin
        if data.active is not None:
            user.active = data.active
        if data.is_super_admin is not None and scope.unscoped:
            user.is_super_admin = data.is_super_admin

        user.company_id = scope.assign_company(
            data.company_id,
            provided="company_id" in fields,
            current=user.company_id,
        )

        user = await self._save(user)
        logger.info("user_updated", user_id=str(user.id), fields=sorted(fields))
        return user

    async def delete_user(self, scope: TenantScope, user_id: UUID) -> User:
        """Delete a user.

        The last-admin check and the delete are one conditional statement,
        so two admins deleting each other concurrently cannot both succeed.

        Raises:
            BadRequestError: If deleting yourself or the last active admin
        """
        if user_id == scope.user_id:
            raise BadRequestError("Cannot delete your own account", error_code="self_delete")

        user = await self.get_user(scope, user_id)
        deleted = await self.repo.delete_unless_last_admin(user_id, scope.company_filter())
        if not deleted:
            raise BadRequestError(
                "Cannot delete the last active admin user",
                error_code="last_admin",
            )

        logger.info("user_deleted", user_id=str(user_id), deleted_by=str(scope.user_id))
        return user

    async def toggle_status(self, scope: TenantScope, user_id: UUID) -> User:
        """Flip a user's active flag.

        Raises:
            BadRequestError: If the caller targets their own account
        """
        if user_id == scope.user_id:
            raise BadRequestError(
                "Cannot change the status of your own account",
                error_code="self_toggle",
            )

        user = await self.get_user(scope, user_id)
        user.active = not user.active
        user = await self._save(user)
        logger.info("user_status_toggled", user_id=str(user.id), active=user.active)
        return user

    async def reset_password(self, scope: TenantScope, user_id: UUID, data: PasswordReset) -> User:
        """Set another user's password."""
        user = await self.get_user(scope, user_id)
        user.password = hash_password(data.password)
        user = await self._save(user)
        logger.info("user_password_reset", user_id=str(user.id), reset_by=str(scope.user_id))
        return user

    # ============================================================
    # Team memberships
    # ============================================================

    async def get_user_teams(
        self,
        scope: TenantScope,
        user_id: UUID,
    ) -> list[tuple[Team, str, datetime]]:
        """Teams of a user the caller may see."""
        await self.get_user(scope, user_id)
        return await self.teams.teams_for_user(user_id)

    async def replace_user_teams(
        self,
        scope: TenantScope,
        user_id: UUID,
        team_ids: Sequence[int],
    ) -> list[tuple[Team, str, datetime]]:
        """Replace a user's memberships with ``team_ids``.

        Raises:
            NotFoundError: If any team does not exist
        """
        await self.get_user(scope, user_id)

        missing = sorted(set(team_ids) - await self.teams.existing_ids(team_ids))
        if missing:
            raise NotFoundError("Team not found", resource="team", details={"team_ids": missing})

        try:
            await self.teams.replace_user_teams(user_id, team_ids)
        except StorageError as err:
            raise NotFoundError("Team not found", resource="team") from err

        logger.info("user_teams_replaced", user_id=str(user_id), team_ids=list(team_ids))
        return await self.teams.teams_for_user(user_id)

    # ============================================================
    # Own profile and settings
    # ============================================================

    async def get_profile(self, user_id: UUID) -> User:
        """Get the caller's own user row.

        Raises:
            NotFoundError: If the account no longer exists
        """
        user = await self.repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found", resource="user", resource_id=str(user_id))
        return user

    async def update_profile(self, user_id: UUID, data: ProfileUpdate) -> User:
        """Update the caller's name and email.

        Raises:
            ConflictError: If the email belongs to someone else
        """
        user = await self.get_profile(user_id)
        await self._ensure_email_free(user, data.email, EMAIL_TAKEN_MESSAGE)
        user.name = data.name
        user.email = data.email
        user = await self._save(user, EMAIL_TAKEN_MESSAGE)
        logger.info("profile_updated", user_id=str(user.id))
        return user

    async def change_password(self, user_id: UUID, data: PasswordChange) -> None:
        """Change the caller's password after checking the current one.

        Raises:
            ValidationError: If the current password is wrong
        """
        user = await self.get_profile(user_id)
        if not verify_password(data.current_password, user.password):
            raise ValidationError.for_field("current_password", "Current password is incorrect")

        user.password = hash_password(data.new_password)
        await self._save(user)
        logger.info("password_changed", user_id=str(user.id))

    async def get_settings(self, user_id: UUID) -> dict[str, Any]:
        """The caller's settings merged over the defaults."""
        user = await self.get_profile(user_id)
        return {**DEFAULT_USER_SETTINGS, **(user.settings or {})}

    async def update_settings(self, user_id: UUID, values: dict[str, Any]) -> dict[str, Any]:
        """Merge ``values`` into the caller's settings and store the result."""
        user = await self.get_profile(user_id)
        merged = {**DEFAULT_USER_SETTINGS, **(user.settings or {}), **values}
        # Assign a new dict so the JSON column is flagged dirty
        user.settings = merged
        await self._save(user)
        return merged

    async def toggle_setting(self, user_id: UUID, key: str) -> dict[str, Any]:
        """Flip a boolean setting.

        Raises:
            BadRequestError: If the setting is unknown or not a boolean
        """
        current = await self.get_settings(user_id)
        value = current.get(key)
        if not isinstance(value, bool):
            raise BadRequestError(
                f"Setting {key} is not a boolean value",
                error_code="setting_not_boolean",
            )
        return await self.update_settings(user_id, {key: not value})


# Type alias for dependency injection
UserSvc = Annotated[UserService, Depends(UserService)]
