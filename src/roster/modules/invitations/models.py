"""Invitation database models."""

from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roster.core.constants import MAX_EMAIL_LENGTH, MAX_ROLE_LENGTH, SHA256_HEX_LENGTH
from roster.core.database.base import Base, TimestampMixin, UUIDMixin
from roster.modules.companies.models import Company


class InvitationStatus(StrEnum):
    """Invitation lifecycle. Only ``pending`` can transition."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REVOKED = "revoked"


class Invitation(Base, UUIDMixin, TimestampMixin):
    """Invitation for an email address to join a company.

    Attributes:
        email: Invitee email, stored lowercased
        company_id: Company the invitee will join
        role: "member" or "admin"
        token: 64-character hex token sent to the invitee
        status: Lifecycle state
        invited_by: The admin who issued the invitation
        expires_at: When a pending invitation stops being usable
    """

    __tablename__ = "invitations"

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        index=True,
    )
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(MAX_ROLE_LENGTH),
        nullable=False,
    )
    token: Mapped[str] = mapped_column(
        String(SHA256_HEX_LENGTH),
        nullable=False,
        unique=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InvitationStatus.PENDING.value,
    )
    invited_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Relationships
    company: Mapped[Company] = relationship(
        Company,
        lazy="selectin",
    )

    @property
    def company_name(self) -> str | None:
        return self.company.name if self.company else None

    @property
    def is_pending(self) -> bool:
        return self.status == InvitationStatus.PENDING

    def is_past_expiry(self, now: datetime | None = None) -> bool:
        """Whether the expiry time has passed, regardless of status."""
        return self.expires_at <= (now or datetime.now(UTC))

    def __repr__(self) -> str:
        return f"<Invitation(id={self.id}, email={self.email}, status={self.status})>"
