"""User database models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roster.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_SLUG_LENGTH,
    SHA256_HEX_LENGTH,
)
from roster.core.database.base import Base, TimestampMixin, UUIDMixin
from roster.modules.companies.models import Company


class User(Base, UUIDMixin, TimestampMixin):
    """User model representing an account.

    Attributes:
        name: Display name
        email: Unique email address, stored lowercased
        password: Bcrypt-hashed password
        slug: Unique URL-safe handle
        isadmin: Whether the user administers their company
        is_super_admin: Whether the user administers every company
        active: Whether the user can log in
        settings: Per-user UI preferences
        company_id: The company the user belongs to, if any
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
    )
    password: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(
        String(MAX_SLUG_LENGTH),
        nullable=False,
        unique=True,
    )
    isadmin: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    is_super_admin: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    settings: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        default=dict,
        nullable=False,
    )
    company_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("companies.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Relationships
    company: Mapped[Company | None] = relationship(
        Company,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, company_id={self.company_id})>"


class RefreshToken(Base, UUIDMixin, TimestampMixin):
    """Refresh token issued to API clients.

    A user holds at most one refresh token; logging in again replaces it.
    Only the SHA-256 hash of the token is stored.

    Attributes:
        user_id: The user this token belongs to
        token_hash: SHA-256 hash of the refresh token
        expires_at: When the token expires
    """

    __tablename__ = "api_refresh_tokens"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    token_hash: Mapped[str] = mapped_column(
        String(SHA256_HEX_LENGTH),
        nullable=False,
        unique=True,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<RefreshToken(id={self.id}, user_id={self.user_id})>"
