"""User API routes.

Admin endpoints are scoped to the caller's company; super admins see every
user. The ``/me`` endpoints only need a valid token.
"""

from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, Query, status

from roster.api.schemas import MessageData, SuccessResponse, ok
from roster.core.auth.dependencies import AdminClaims, AuthClaims
from roster.core.permissions import TenantScope
from roster.core.utils.pagination import Pagination
from roster.modules.teams.models import Team
from roster.modules.teams.schemas import TeamMembership
from roster.modules.users.repos import UserStatusFilter
from roster.modules.users.schemas import (
    PasswordChange,
    PasswordReset,
    ProfileUpdate,
    UserCreate,
    UserDetailResponse,
    UserListItem,
    UserListResponse,
    UserTeamsUpdate,
    UserUpdate,
)
from roster.modules.users.services import UserSvc


router = APIRouter(prefix="/users", tags=["users"])


def _memberships(rows: list[tuple[Team, str, datetime]]) -> list[TeamMembership]:
    return [
        TeamMembership(
            id=team.id,
            name=team.name,
            description=team.description,
            created_at=team.created_at,
            updated_at=team.updated_at,
            role=role,
            joined_at=joined_at,
        )
        for team, role, joined_at in rows
    ]


# ============================================================
# Collection
# ============================================================


@router.get(
    "",
    response_model=SuccessResponse[UserListResponse],
    summary="List users",
    description="Paginated user list with team counts, scoped to the caller's company.",
)
async def list_users(
    claims: AdminClaims,
    service: UserSvc,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    search: str | None = None,
    status_filter: Annotated[UserStatusFilter, Query(alias="status")] = UserStatusFilter.ALL,
) -> SuccessResponse[UserListResponse]:
    """List users."""
    rows, total = await service.list_users(
        TenantScope.from_claims(claims),
        search=search,
        status=status_filter,
        page=page,
        limit=limit,
    )
    items = [
        UserListItem.model_validate(user).model_copy(update={"team_count": team_count})
        for user, team_count in rows
    ]
    return ok(UserListResponse(items=items, pagination=Pagination.build(page, limit, total)))


@router.post(
    "",
    response_model=SuccessResponse[UserDetailResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(
    data: UserCreate,
    claims: AdminClaims,
    service: UserSvc,
) -> SuccessResponse[UserDetailResponse]:
    """Create a user in the caller's company (or any, for super admins)."""
    user = await service.create_user(TenantScope.from_claims(claims), data)
    return ok(UserDetailResponse.model_validate(user))


# ============================================================
# Own profile
# ============================================================


@router.get(
    "/me",
    response_model=SuccessResponse[UserDetailResponse],
    summary="Get current user",
)
async def get_me(claims: AuthClaims, service: UserSvc) -> SuccessResponse[UserDetailResponse]:
    """Get the caller's profile."""
    user = await service.get_profile(claims.id)
    return ok(UserDetailResponse.model_validate(user))


@router.put(
    "/me",
    response_model=SuccessResponse[UserDetailResponse],
    summary="Update current user",
)
async def update_me(
    data: ProfileUpdate,
    claims: AuthClaims,
    service: UserSvc,
) -> SuccessResponse[UserDetailResponse]:
    """Update the caller's name and email."""
    user = await service.update_profile(claims.id, data)
    return ok(UserDetailResponse.model_validate(user))


@router.put(
    "/me/password",
    response_model=SuccessResponse[MessageData],
    summary="Change password",
)
async def change_my_password(
    data: PasswordChange,
    claims: AuthClaims,
    service: UserSvc,
) -> SuccessResponse[MessageData]:
    """Change the caller's password."""
    await service.change_password(claims.id, data)
    return ok(MessageData(message="Password updated successfully"))


@router.get(
    "/me/settings",
    response_model=SuccessResponse[dict[str, Any]],
    summary="Get settings",
)
async def get_my_settings(claims: AuthClaims, service: UserSvc) -> SuccessResponse[dict[str, Any]]:
    """The caller's settings merged over defaults."""
    return ok(await service.get_settings(claims.id))


@router.put(
    "/me/settings",
    response_model=SuccessResponse[dict[str, Any]],
    summary="Update settings",
    description="Merge the given keys into the stored settings.",
)
async def update_my_settings(
    values: Annotated[dict[str, Any], Body()],
    claims: AuthClaims,
    service: UserSvc,
) -> SuccessResponse[dict[str, Any]]:
    """Merge settings."""
    return ok(await service.update_settings(claims.id, values))


@router.post(
    "/me/settings/{key}/toggle",
    response_model=SuccessResponse[dict[str, Any]],
    summary="Toggle a boolean setting",
)
async def toggle_my_setting(
    key: str,
    claims: AuthClaims,
    service: UserSvc,
) -> SuccessResponse[dict[str, Any]]:
    """Flip a boolean setting."""
    return ok(await service.toggle_setting(claims.id, key))


# ============================================================
# Single user
# ============================================================


@router.get(
    "/{user_id}",
    response_model=SuccessResponse[UserDetailResponse],
    summary="Get user",
)
async def get_user(
    user_id: UUID,
    claims: AdminClaims,
    service: UserSvc,
) -> SuccessResponse[UserDetailResponse]:
    """Get a user with their company."""
    user = await service.get_user(TenantScope.from_claims(claims), user_id)
    return ok(UserDetailResponse.model_validate(user))


@router.put(
    "/{user_id}",
    response_model=SuccessResponse[UserDetailResponse],
    summary="Update user",
)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    claims: AdminClaims,
    service: UserSvc,
) -> SuccessResponse[UserDetailResponse]:
    """Partially update a user."""
    user = await service.update_user(TenantScope.from_claims(claims), user_id, data)
    return ok(UserDetailResponse.model_validate(user))


@router.delete(
    "/{user_id}",
    response_model=SuccessResponse[MessageData],
    summary="Delete user",
)
async def delete_user(
    user_id: UUID,
    claims: AdminClaims,
    service: UserSvc,
) -> SuccessResponse[MessageData]:
    """Delete a user."""
    user = await service.delete_user(TenantScope.from_claims(claims), user_id)
    return ok(MessageData(message=f"User {user.email} deleted successfully"))


@router.post(
    "/{user_id}/toggle-status",
    response_model=SuccessResponse[UserDetailResponse],
    summary="Activate or deactivate user",
)
async def toggle_user_status(
    user_id: UUID,
    claims: AdminClaims,
    service: UserSvc,
) -> SuccessResponse[UserDetailResponse]:
    """Flip a user's active flag."""
    user = await service.toggle_status(TenantScope.from_claims(claims), user_id)
    return ok(UserDetailResponse.model_validate(user))


@router.put(
    "/{user_id}/password",
    response_model=SuccessResponse[MessageData],
    summary="Set user password",
)
async def reset_user_password(
    user_id: UUID,
    data: PasswordReset,
    claims: AdminClaims,
    service: UserSvc,
) -> SuccessResponse[MessageData]:
    """Set another user's password."""
    await service.reset_password(TenantScope.from_claims(claims), user_id, data)
    return ok(MessageData(message="Password updated successfully"))


@router.get(
    "/{user_id}/teams",
    response_model=SuccessResponse[list[TeamMembership]],
    summary="List user teams",
)
async def get_user_teams(
    user_id: UUID,
    claims: AdminClaims,
    service: UserSvc,
) -> SuccessResponse[list[TeamMembership]]:
    """Teams the user belongs to."""
    rows = await service.get_user_teams(TenantScope.from_claims(claims), user_id)
    return ok(_memberships(rows))


@router.put(
    "/{user_id}/teams",
    response_model=SuccessResponse[list[TeamMembership]],
    summary="Replace user teams",
)
async def replace_user_teams(
    user_id: UUID,
    data: UserTeamsUpdate,
    claims: AdminClaims,
    service: UserSvc,
) -> SuccessResponse[list[TeamMembership]]:
    """Replace every team membership of a user."""
    rows = await service.replace_user_teams(TenantScope.from_claims(claims), user_id, data.team_ids)
    return ok(_memberships(rows))
