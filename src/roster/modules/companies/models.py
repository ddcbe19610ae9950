"""Company database models."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from roster.core.constants import MAX_NAME_LENGTH
from roster.core.database.base import Base, TimestampMixin, UUIDMixin


class Company(Base, UUIDMixin, TimestampMixin):
    """Company model, the isolation boundary for regular admins.

    Users reference a company through a nullable foreign key. Deleting a
    company unlinks its users instead of deleting them.
    """

    __tablename__ = "companies"

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
        return f"<Company(id={self.id}, name={self.name})>"
