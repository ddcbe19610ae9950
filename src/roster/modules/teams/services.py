"""Team service for business logic."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from roster.core.database import StorageError
from roster.core.errors import BadRequestError, ConflictError, DatabaseError, NotFoundError
from roster.core.permissions import TenantScope
from roster.modules.teams.models import Team
from roster.modules.teams.repos import TeamRepo
from roster.modules.teams.schemas import TeamCreate, TeamUpdate
from roster.modules.users.models import User
from roster.modules.users.repos import UserRepo


logger = structlog.get_logger()

NAME_EXISTS_MESSAGE = "A team with this name already exists"


def _conflict_from_storage(err: StorageError) -> Exception:
    if err.is_unique("uq_teams_name"):
        return ConflictError(NAME_EXISTS_MESSAGE, field="name", error_code="team_exists")
    return DatabaseError(details={"kind": err.kind.value})


class TeamService:
    """Service for teams and their memberships.

    Teams are shared across companies. Adding or removing a member is
    subject to the caller's company scope, like every other user write.
    """

    def __init__(self, repo: TeamRepo, users: UserRepo) -> None:
        self.repo = repo
        self.users = users

    async def list_teams(self) -> list[tuple[Team, int]]:
        """All teams with their member counts."""
        return await self.repo.list_with_member_counts()

    async def get_team(self, team_id: int) -> Team:
        """Get a team by ID.

        Raises:
            NotFoundError: If the team does not exist
        """
        team = await self.repo.get_by_id(team_id)
        if not team:
            raise NotFoundError("Team not found", resource="team", resource_id=str(team_id))
        return team

    async def create_team(self, data: TeamCreate) -> Team:
        """Create a team.

        Raises:
            ConflictError: If the name is taken
        """
        if await self.repo.get_by_name(data.name):
            raise ConflictError(NAME_EXISTS_MESSAGE, field="name", error_code="team_exists")

        try:
            team = await self.repo.create(Team(name=data.name, description=data.description))
        except StorageError as err:
            raise _conflict_from_storage(err) from err

        logger.info("team_created", team_id=team.id, name=team.name)
        return team

    async def update_team(self, team_id: int, data: TeamUpdate) -> Team:
        """Apply a partial update.

        Raises:
            BadRequestError: If the payload has no fields
            ConflictError: If the new name is taken
        """
        fields = data.model_dump(exclude_unset=True)
        if not fields:
            raise BadRequestError("No fields to update", error_code="no_fields")

        team = await self.get_team(team_id)
        if data.name is not None and data.name != team.name:
            if await self.repo.get_by_name(data.name):
                raise ConflictError(NAME_EXISTS_MESSAGE, field="name", error_code="team_exists")
            team.name = data.name
        if "description" in fields:
            team.description = data.description

        try:
            team = await self.repo.update(team)
        except StorageError as err:
            raise _conflict_from_storage(err) from err

        logger.info("team_updated", team_id=team.id, fields=sorted(fields))
        return team

    async def delete_team(self, team_id: int) -> Team:
        """Delete a team that has no members.

        Raises:
            NotFoundError: If the team does not exist
            BadRequestError: If the team still has members
        """
        team = await self.get_team(team_id)
        if not await self.repo.delete_if_empty(team_id):
            raise BadRequestError(
                "Cannot delete team with existing members",
                error_code="team_not_empty",
            )
        logger.info("team_deleted", team_id=team_id, name=team.name)
        return team

    async def list_members(self, team_id: int) -> list[tuple[User, str, datetime]]:
        """Members of a team with their role and join time."""
        await self.get_team(team_id)
        return await self.repo.members(team_id)

    async def _member_in_scope(self, scope: TenantScope, user_id: UUID) -> User:
        user = await self.users.get_by_id(user_id)
        scope.ensure_can_access(user.company_id if user else None)
        if user is None:
            raise NotFoundError("User not found", resource="user", resource_id=str(user_id))
        return user

    async def set_member(
        self,
        scope: TenantScope,
        team_id: int,
        user_id: UUID,
        role: str,
    ) -> list[tuple[User, str, datetime]]:
        """Add a user to a team or change their role."""
        await self.get_team(team_id)
        await self._member_in_scope(scope, user_id)

        try:
            await self.repo.upsert_member(team_id, user_id, role)
        except StorageError as err:
            raise NotFoundError("Team or user not found") from err

        logger.info("team_member_set", team_id=team_id, user_id=str(user_id), role=role)
        return await self.repo.members(team_id)

    async def remove_member(self, scope: TenantScope, team_id: int, user_id: UUID) -> None:
        """Remove a user from a team.

        Raises:
            NotFoundError: If the user is not a member
        """
        await self.get_team(team_id)
        await self._member_in_scope(scope, user_id)

        if not await self.repo.remove_member(team_id, user_id):
            raise NotFoundError("User is not a member of this team", resource="team_member")

        logger.info("team_member_removed", team_id=team_id, user_id=str(user_id))


# Type alias for dependency injection
TeamSvc = Annotated[TeamService, Depends(TeamService)]
