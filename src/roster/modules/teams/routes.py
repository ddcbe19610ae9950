"""Team API routes."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, status

from roster.api.schemas import MessageData, SuccessResponse, ok
from roster.core.auth.dependencies import AdminClaims, AuthClaims
from roster.core.permissions import TenantScope
from roster.modules.teams.schemas import (
    MemberRoleUpdate,
    TeamCreate,
    TeamMember,
    TeamResponse,
    TeamUpdate,
    TeamWithCount,
)
from roster.modules.teams.services import TeamSvc
from roster.modules.users.models import User


router = APIRouter(prefix="/teams", tags=["teams"])


def _members(rows: list[tuple[User, str, datetime]]) -> list[TeamMember]:
    return [
        TeamMember(
            id=user.id,
            name=user.name,
            email=user.email,
            slug=user.slug,
            active=user.active,
            role=role,
            joined_at=joined_at,
        )
        for user, role, joined_at in rows
    ]


@router.get(
    "",
    response_model=SuccessResponse[list[TeamWithCount]],
    summary="List teams",
)
async def list_teams(_claims: AuthClaims, service: TeamSvc) -> SuccessResponse[list[TeamWithCount]]:
    """All teams with member counts."""
    rows = await service.list_teams()
    return ok(
        [
            TeamWithCount.model_validate(team).model_copy(update={"member_count": count})
            for team, count in rows
        ]
    )


@router.post(
    "",
    response_model=SuccessResponse[TeamResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create team",
)
async def create_team(
    data: TeamCreate,
    _claims: AdminClaims,
    service: TeamSvc,
) -> SuccessResponse[TeamResponse]:
    """Create a team."""
    team = await service.create_team(data)
    return ok(TeamResponse.model_validate(team))


@router.get(
    "/{team_id}",
    response_model=SuccessResponse[TeamResponse],
    summary="Get team",
)
async def get_team(team_id: int, _claims: AuthClaims, service: TeamSvc) -> SuccessResponse[TeamResponse]:
    """Get a team."""
    return ok(TeamResponse.model_validate(await service.get_team(team_id)))


@router.put(
    "/{team_id}",
    response_model=SuccessResponse[TeamResponse],
    summary="Update team",
)
async def update_team(
    team_id: int,
    data: TeamUpdate,
    _claims: AdminClaims,
    service: TeamSvc,
) -> SuccessResponse[TeamResponse]:
    """Partially update a team."""
    team = await service.update_team(team_id, data)
    return ok(TeamResponse.model_validate(team))


@router.delete(
    "/{team_id}",
    response_model=SuccessResponse[MessageData],
    summary="Delete team",
    description="Only teams without members can be deleted.",
)
async def delete_team(
    team_id: int,
    _claims: AdminClaims,
    service: TeamSvc,
) -> SuccessResponse[MessageData]:
    """Delete an empty team."""
    team = await service.delete_team(team_id)
    return ok(MessageData(message=f"Team {team.name} deleted successfully"))


@router.get(
    "/{team_id}/members",
    response_model=SuccessResponse[list[TeamMember]],
    summary="List team members",
)
async def list_members(
    team_id: int,
    _claims: AuthClaims,
    service: TeamSvc,
) -> SuccessResponse[list[TeamMember]]:
    """Members with role and join time."""
    return ok(_members(await service.list_members(team_id)))


@router.put(
    "/{team_id}/members/{user_id}",
    response_model=SuccessResponse[list[TeamMember]],
    summary="Add member or change role",
)
async def set_member(
    team_id: int,
    user_id: UUID,
    data: MemberRoleUpdate,
    claims: AdminClaims,
    service: TeamSvc,
) -> SuccessResponse[list[TeamMember]]:
    """Upsert a membership."""
    rows = await service.set_member(TenantScope.from_claims(claims), team_id, user_id, data.role)
    return ok(_members(rows))


@router.delete(
    "/{team_id}/members/{user_id}",
    response_model=SuccessResponse[MessageData],
    summary="Remove member",
)
async def remove_member(
    team_id: int,
    user_id: UUID,
    claims: AdminClaims,
    service: TeamSvc,
) -> SuccessResponse[MessageData]:
    """Remove a user from a team."""
    await service.remove_member(TenantScope.from_claims(claims), team_id, user_id)
    return ok(MessageData(message="Member removed"))
