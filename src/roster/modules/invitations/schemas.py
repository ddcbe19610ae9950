"""Pydantic schemas for invitation operations."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

from roster.core.constants import (
    INVITATION_ROLE_MEMBER,
    MAX_USER_NAME_LENGTH,
    MIN_USER_NAME_LENGTH,
)
from roster.modules.invitations.models import InvitationStatus
from roster.modules.users.schemas import password_field, passwords_match


InvitationRole = Literal["member", "admin"]


class InvitationCreate(BaseModel):
    """Schema for issuing an invitation.

    ``company_id`` is only read for super admins; regular admins always
    invite into their own company.
    """

    email: EmailStr
    role: InvitationRole = INVITATION_ROLE_MEMBER
    company_id: UUID | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class InvitationResponse(BaseModel):
    """Schema for invitation data shown to admins."""

    id: UUID
    email: str
    company_id: UUID
    company_name: str | None = None
    role: str
    token: str
    status: InvitationStatus
    invited_by: UUID | None
    expires_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ExistingUser(BaseModel):
    """Account already registered under the invited email."""

    id: UUID
    name: str
    has_company: bool


class InvitationPublic(BaseModel):
    """What the invitee sees when opening an invitation link."""

    email: str
    company_id: UUID
    company_name: str | None = None
    role: str
    status: InvitationStatus
    expires_at: datetime
    existing_user: ExistingUser | None = None


class InvitationAccept(BaseModel):
    """Schema for accepting an invitation as a new user."""

    name: str = Field(..., min_length=MIN_USER_NAME_LENGTH, max_length=MAX_USER_NAME_LENGTH)
    password: str = password_field()
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def confirm_matches(cls, v: str, info: ValidationInfo) -> str:
        return passwords_match(v, info)


class InvitationListQuery(BaseModel):
    """Query parameters for listing invitations."""

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    status: InvitationStatus | None = None
