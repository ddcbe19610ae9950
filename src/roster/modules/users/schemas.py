"""Pydantic schemas for user operations."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

from roster.core.auth.schemas import TokenPair
from roster.core.constants import (
    MAX_PASSWORD_LENGTH,
    MAX_SLUG_LENGTH,
    MAX_USER_NAME_LENGTH,
    MIN_PASSWORD_LENGTH,
    MIN_USER_NAME_LENGTH,
)
from roster.core.utils.pagination import Pagination
from roster.core.utils.text import is_valid_slug
from roster.modules.users.repos import UserStatusFilter


# ============================================================
# Field Helpers
# ============================================================

def password_field() -> Any:
    return Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)


def name_field() -> Any:
    return Field(..., min_length=MIN_USER_NAME_LENGTH, max_length=MAX_USER_NAME_LENGTH)


def passwords_match(confirm: str, info: ValidationInfo, field: str = "password") -> str:
    """Check a confirmation field against an earlier password field.

    The error is attached to the confirmation field. When the password
    itself failed validation there is nothing to compare against.

    Raises:
        ValueError: If the two values differ
    """
    password = info.data.get(field)
    if password is not None and confirm != password:
        raise ValueError("Passwords must match")
    return confirm


def _lower_email(v: str) -> str:
    return v.strip().lower()


# ============================================================
# User Schemas
# ============================================================


class CompanySummary(BaseModel):
    """Company reference embedded in user responses."""

    id: UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    """Schema for user response data. Never includes the password."""

    id: UUID
    name: str
    email: EmailStr
    slug: str
    isadmin: bool
    is_super_admin: bool
    active: bool
    company_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserDetailResponse(UserResponse):
    """User with the company they belong to."""

    company: CompanySummary | None = None


class UserListItem(UserResponse):
    """User row in listings."""

    team_count: int = 0


class UserListResponse(BaseModel):
    """Schema for listing users."""

    items: list[UserListItem]
    pagination: Pagination


class UserListQuery(BaseModel):
    """Query parameters for listing users."""

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    search: str | None = None
    status: UserStatusFilter = UserStatusFilter.ALL


class UserCreate(BaseModel):
    """Schema for an admin creating a user."""

    name: str = name_field()
    email: EmailStr
    password: str = password_field()
    slug: str | None = Field(None, min_length=1, max_length=MAX_SLUG_LENGTH)
    isadmin: bool = False
    is_super_admin: bool = False
    active: bool = True
    company_id: UUID | None = None

    _normalize_email = field_validator("email")(_lower_email)

    @field_validator("slug")
    @classmethod
    def slug_format(cls, v: str | None) -> str | None:
        """Validate slug characters."""
        if v is not None and not is_valid_slug(v):
            raise ValueError("Slug can only contain lowercase letters, numbers, and hyphens")
        return v


class UserUpdate(BaseModel):
    """Schema for an admin updating a user. Only sent fields change."""

    name: str | None = Field(None, min_length=MIN_USER_NAME_LENGTH, max_length=MAX_USER_NAME_LENGTH)
    email: EmailStr | None = None
    slug: str | None = Field(None, min_length=1, max_length=MAX_SLUG_LENGTH)
    isadmin: bool | None = None
    is_super_admin: bool | None = None
    active: bool | None = None
    company_id: UUID | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return _lower_email(v) if v is not None else None

    @field_validator("slug")
    @classmethod
    def slug_format(cls, v: str | None) -> str | None:
        """Validate slug characters."""
        if v is not None and not is_valid_slug(v):
            raise ValueError("Slug can only contain lowercase letters, numbers, and hyphens")
        return v


class ProfileUpdate(BaseModel):
    """Schema for a user updating their own profile."""

    name: str = name_field()
    email: EmailStr

    _normalize_email = field_validator("email")(_lower_email)


class PasswordChange(BaseModel):
    """Schema for a user changing their own password."""

    current_password: str = Field(..., min_length=1)
    new_password: str = password_field()
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def confirm_matches(cls, v: str, info: ValidationInfo) -> str:
        return passwords_match(v, info, field="new_password")


class PasswordReset(BaseModel):
    """Schema for an admin setting another user's password."""

    password: str = password_field()
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def confirm_matches(cls, v: str, info: ValidationInfo) -> str:
        return passwords_match(v, info)


class UserTeamsUpdate(BaseModel):
    """Schema for replacing a user's team memberships."""

    team_ids: list[int] = Field(default_factory=list)


# ============================================================
# Authentication Schemas
# ============================================================


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    _normalize_email = field_validator("email")(_lower_email)


class RegisterRequest(BaseModel):
    """Schema for self-registration."""

    email: EmailStr
    password: str = password_field()
    name: str = name_field()
    confirm_password: str

    _normalize_email = field_validator("email")(_lower_email)

    @field_validator("confirm_password")
    @classmethod
    def confirm_matches(cls, v: str, info: ValidationInfo) -> str:
        return passwords_match(v, info)


class RefreshTokenRequest(BaseModel):
    """Schema for refreshing or revoking with a refresh token."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    refresh_token: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    """User and tokens returned by register, login and refresh."""

    user: UserDetailResponse
    tokens: TokenPair


class TokenStatus(BaseModel):
    """Validity of the presented access token."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    valid: bool
    expires_at: datetime | None


class VerifyResponse(BaseModel):
    """Fresh user row and token status for /auth/verify."""

    user: UserDetailResponse
    token: TokenStatus


class ApiTokenResponse(BaseModel):
    """Access token minted from the session cookie."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str
    expires_in: int
