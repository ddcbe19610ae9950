"""Pydantic schemas for team operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from roster.core.constants import MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH, MAX_ROLE_LENGTH, TEAM_ROLE_MEMBER


class TeamCreate(BaseModel):
    """Schema for creating a team."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)


class TeamUpdate(BaseModel):
    """Schema for partially updating a team."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)


class TeamResponse(BaseModel):
    """Schema for team response data."""

    id: int
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TeamWithCount(TeamResponse):
    """Team row in listings."""

    member_count: int = 0


class TeamMembership(TeamResponse):
    """A team the user belongs to, with the user's role in it."""

    role: str
    joined_at: datetime


class TeamMember(BaseModel):
    """A member of a team."""

    id: UUID
    name: str
    email: str
    slug: str
    active: bool
    role: str
    joined_at: datetime


class MemberRoleUpdate(BaseModel):
    """Schema for adding a member or changing their role."""

    role: str = Field(TEAM_ROLE_MEMBER, min_length=1, max_length=MAX_ROLE_LENGTH)
