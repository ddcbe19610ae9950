"""Unit tests for TeamService with mocked repositories."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from roster.core.database import StorageError, StorageErrorKind
from roster.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from roster.core.permissions import TenantScope
from roster.modules.teams.models import Team
from roster.modules.teams.schemas import TeamCreate, TeamUpdate
from roster.modules.teams.services import TeamService
from tests.factories import UserFactory


COMPANY = uuid4()


@pytest.fixture
def repo() -> AsyncMock:
    repo = AsyncMock()
    repo.get_by_id.return_value = Team(id=1, name="Nursing")
    repo.get_by_name.return_value = None
    repo.create.side_effect = lambda team: team
    repo.update.side_effect = lambda team: team
    return repo


@pytest.fixture
def users() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(repo: AsyncMock, users: AsyncMock) -> TeamService:
    return TeamService(repo=repo, users=users)


@pytest.fixture
def scope() -> TenantScope:
    return TenantScope(user_id=uuid4(), is_super_admin=False, company_id=COMPANY)


class TestTeams:
    """Tests for team CRUD."""

    async def test_get_missing_team(self, service: TeamService, repo: AsyncMock):
        repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError) as exc_info:
            await service.get_team(99)

        assert exc_info.value.message == "Team not found"

    async def test_create_team(self, service: TeamService):
        team = await service.create_team(TeamCreate(name="Radiology", description="Imaging"))

        assert team.name == "Radiology"
        assert team.description == "Imaging"

    async def test_create_duplicate_name(self, service: TeamService, repo: AsyncMock):
        repo.get_by_name.return_value = Team(id=2, name="Radiology")

        with pytest.raises(ConflictError) as exc_info:
            await service.create_team(TeamCreate(name="Radiology"))

        assert exc_info.value.message == "A team with this name already exists"

    async def test_create_race_maps_unique_violation(self, service: TeamService, repo: AsyncMock):
        repo.create.side_effect = StorageError(StorageErrorKind.UNIQUE_VIOLATION, "uq_teams_name")

        with pytest.raises(ConflictError):
            await service.create_team(TeamCreate(name="Radiology"))

    async def test_update_requires_fields(self, service: TeamService):
        with pytest.raises(BadRequestError):
            await service.update_team(1, TeamUpdate())

    async def test_update_clears_description(self, service: TeamService, repo: AsyncMock):
        repo.get_by_id.return_value = Team(id=1, name="Nursing", description="Care")

        team = await service.update_team(1, TeamUpdate(description=None))

        assert team.description is None
        assert team.name == "Nursing"

    async def test_delete_team_with_members(self, service: TeamService, repo: AsyncMock):
        repo.delete_if_empty.return_value = 0

        with pytest.raises(BadRequestError) as exc_info:
            await service.delete_team(1)

        assert exc_info.value.message == "Cannot delete team with existing members"

    async def test_delete_empty_team(self, service: TeamService, repo: AsyncMock):
        repo.delete_if_empty.return_value = 1

        team = await service.delete_team(1)

        assert team.name == "Nursing"
        repo.delete_if_empty.assert_awaited_once_with(1)


class TestMembers:
    """Tests for scoped membership changes."""

    async def test_set_member_in_own_company(
        self, service: TeamService, repo: AsyncMock, users: AsyncMock, scope: TenantScope
    ):
        user = UserFactory.build(company_id=COMPANY)
        users.get_by_id.return_value = user
        repo.members.return_value = [(user, "lead", None)]

        members = await service.set_member(scope, 1, user.id, "lead")

        repo.upsert_member.assert_awaited_once_with(1, user.id, "lead")
        assert members[0][1] == "lead"

    async def test_set_member_other_company(
        self, service: TeamService, repo: AsyncMock, users: AsyncMock, scope: TenantScope
    ):
        users.get_by_id.return_value = UserFactory.build(company_id=uuid4())

        with pytest.raises(ForbiddenError):
            await service.set_member(scope, 1, uuid4(), "member")

        repo.upsert_member.assert_not_awaited()

    async def test_remove_non_member(
        self, service: TeamService, repo: AsyncMock, users: AsyncMock, scope: TenantScope
    ):
        users.get_by_id.return_value = UserFactory.build(company_id=COMPANY)
        repo.remove_member.return_value = 0

        with pytest.raises(NotFoundError) as exc_info:
            await service.remove_member(scope, 1, uuid4())

        assert exc_info.value.message == "User is not a member of this team"

    async def test_members_of_missing_team(self, service: TeamService, repo: AsyncMock):
        repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await service.list_members(5)
