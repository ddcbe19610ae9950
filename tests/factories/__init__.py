"""Test factories for generating test data."""

from tests.factories.company import CompanyFactory, TeamFactory
from tests.factories.user import (
    TEST_PASSWORD,
    InvitationFactory,
    UserCreateFactory,
    UserFactory,
)


__all__ = [
    "TEST_PASSWORD",
    "CompanyFactory",
    "InvitationFactory",
    "TeamFactory",
    "UserCreateFactory",
    "UserFactory",
]
