"""Team database models."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from roster.core.constants import MAX_NAME_LENGTH, MAX_ROLE_LENGTH, TEAM_ROLE_MEMBER
from roster.core.database.base import Base, TimestampMixin


class Team(Base, TimestampMixin):
    """Team model, a cross-company group of users.

    Teams use integer ids. A team that still has members cannot be deleted.
    """

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
        unique=True,
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name={self.name})>"


class UserTeam(Base):
    """Membership of a user in a team, with the member's role."""

    __tablename__ = "user_teams"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(MAX_ROLE_LENGTH),
        nullable=False,
        default=TEAM_ROLE_MEMBER,
        server_default=TEAM_ROLE_MEMBER,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<UserTeam(user_id={self.user_id}, team_id={self.team_id}, role={self.role})>"
