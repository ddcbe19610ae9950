"""Team repository for database operations."""

from collections.abc import Sequence
from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete, exists, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from roster.api.dependencies import DBSession
from roster.core.constants import TEAM_ROLE_MEMBER
from roster.core.database import storage_errors
from roster.modules.teams.models import Team, UserTeam
from roster.modules.users.models import User


class TeamRepository:
    """Repository for Team and membership database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, team: Team) -> Team:
        """Create a new team.

        Raises:
            StorageError: If the name is already taken
        """
        self.session.add(team)
        with storage_errors():
            await self.session.flush()
        await self.session.refresh(team)
        return team

    async def get_by_id(self, team_id: int) -> Team | None:
        result = await self.session.execute(select(Team).where(Team.id == team_id))
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Team | None:
        result = await self.session.execute(select(Team).where(Team.name == name))
        return result.scalar_one_or_none()

    async def list_with_member_counts(self) -> list[tuple[Team, int]]:
        """All teams ordered by name with their member counts."""
        member_count = (
            select(func.count())
            .select_from(UserTeam)
            .where(UserTeam.team_id == Team.id)
            .correlate(Team)
            .scalar_subquery()
        )
        result = await self.session.execute(
            select(Team, member_count.label("member_count")).order_by(Team.name)
        )
        return [(team, count) for team, count in result.all()]

    async def existing_ids(self, team_ids: Sequence[int]) -> set[int]:
        """The subset of ``team_ids`` that exist."""
        if not team_ids:
            return set()
        result = await self.session.execute(select(Team.id).where(Team.id.in_(team_ids)))
        return set(result.scalars().all())

    async def update(self, team: Team) -> Team:
        """Persist changes to a team.

        Raises:
            StorageError: If the new name is already taken
        """
        with storage_errors():
            await self.session.flush()
        await self.session.refresh(team)
        return team

    async def delete_if_empty(self, team_id: int) -> int:
        """Delete a team only if it has no members, in one statement.

        Returns:
            Number of teams deleted (0 or 1)
        """
        has_members = exists().where(UserTeam.team_id == team_id)
        result = await self.session.execute(
            delete(Team)
            .where(Team.id == team_id, ~has_members)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # ============================================================
    # Memberships
    # ============================================================

    async def members(self, team_id: int) -> list[tuple[User, str, datetime]]:
        """Members of a team with their role and join time, by name."""
        result = await self.session.execute(
            select(User, UserTeam.role, UserTeam.joined_at)
            .join(UserTeam, UserTeam.user_id == User.id)
            .where(UserTeam.team_id == team_id)
            .order_by(User.name)
        )
        return [(user, role, joined_at) for user, role, joined_at in result.all()]

    async def teams_for_user(self, user_id: UUID) -> list[tuple[Team, str, datetime]]:
        """Teams a user belongs to with role and join time, by name."""
        result = await self.session.execute(
            select(Team, UserTeam.role, UserTeam.joined_at)
            .join(UserTeam, UserTeam.team_id == Team.id)
            .where(UserTeam.user_id == user_id)
            .order_by(Team.name)
        )
        return [(team, role, joined_at) for team, role, joined_at in result.all()]

    async def upsert_member(
        self,
        team_id: int,
        user_id: UUID,
        role: str = TEAM_ROLE_MEMBER,
    ) -> None:
        """Add a user to a team, or update their role if already a member.

        Raises:
            StorageError: If the team or user does not exist
        """
        stmt = pg_insert(UserTeam).values(user_id=user_id, team_id=team_id, role=role)
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserTeam.user_id, UserTeam.team_id],
            set_={"role": role},
        )
        with storage_errors():
            await self.session.execute(stmt)

    async def remove_member(self, team_id: int, user_id: UUID) -> int:
        """Remove a user from a team.

        Returns:
            Number of memberships removed (0 or 1)
        """
        result = await self.session.execute(
            delete(UserTeam).where(UserTeam.team_id == team_id, UserTeam.user_id == user_id)
        )
        return result.rowcount

    async def replace_user_teams(self, user_id: UUID, team_ids: Sequence[int]) -> None:
        """Replace every membership of a user with plain memberships.

        The delete and inserts share one savepoint, so a failure leaves the
        previous memberships in place.

        Raises:
            StorageError: If a team does not exist
        """
        async with self.session.begin_nested():
            await self.session.execute(delete(UserTeam).where(UserTeam.user_id == user_id))
            if team_ids:
                with storage_errors():
                    await self.session.execute(
                        pg_insert(UserTeam),
                        [
                            {"user_id": user_id, "team_id": team_id, "role": TEAM_ROLE_MEMBER}
                            for team_id in dict.fromkeys(team_ids)
                        ],
                    )


# Type alias for dependency injection
TeamRepo = Annotated[TeamRepository, Depends(TeamRepository)]
