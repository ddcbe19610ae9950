"""Factories for Company and Team models."""

from datetime import UTC, datetime
from uuid import uuid4

from polyfactory import Use
from polyfactory.factories.sqlalchemy_factory import SQLAlchemyFactory

from roster.modules.companies.models import Company
from roster.modules.teams.models import Team


class CompanyFactory(SQLAlchemyFactory[Company]):
    """Factory for generating Company test data."""

    __model__ = Company

    created_at = Use(lambda: datetime.now(UTC))
    updated_at = Use(lambda: datetime.now(UTC))

    @classmethod
    def name(cls) -> str:
        """Generate a unique company name."""
        return f"{cls.__faker__.company()} {uuid4().hex[:6]}"

    @classmethod
    def description(cls) -> str | None:
        return cls.__faker__.catch_phrase()


class TeamFactory(SQLAlchemyFactory[Team]):
    """Factory for generating Team test data.

    Team ids come from the database sequence, so they are left unset.
    """

    __model__ = Team
    __set_primary_key__ = False

    created_at = Use(lambda: datetime.now(UTC))
    updated_at = Use(lambda: datetime.now(UTC))

    @classmethod
    def name(cls) -> str:
        """Generate a unique team name."""
        return f"Team {uuid4().hex[:8]}"

    @classmethod
    def description(cls) -> str | None:
        return None
