#!/usr/bin/env python
"""
Generate demo/seed data for development.

Scenarios:
    default  Create the tables and the default team new users join
    demo     Everything in default plus demo companies, teams and users

Seeding is idempotent: rows that already exist (matched by name or email)
are left untouched.
"""

import argparse
import asyncio
import sys

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roster.config import settings
from roster.core.auth.backend import hash_password
from roster.core.database import Base, async_engine, async_session_factory
from roster.core.utils.text import generate_user_slug
from roster.modules.companies.models import Company
from roster.modules.invitations.models import Invitation  # noqa: F401
from roster.modules.teams.models import Team, UserTeam
from roster.modules.users.models import RefreshToken, User  # noqa: F401


DEMO_PASSWORD = "123456"

DEMO_COMPANIES = [
    {"name": "Acme Clinic", "description": "Demo outpatient clinic"},
    {"name": "Globex Health", "description": "Demo hospital group"},
]

DEMO_TEAMS = [
    {"name": "Nursing", "description": "Nursing and patient care team"},
    {"name": "PhysicalTherapy", "description": "Physical therapy and rehabilitation team"},
    {"name": "Radiology", "description": "Radiology and imaging team"},
    {"name": "ManipulationTherapy", "description": "Manipulation therapy and chiropractic team"},
]

DEMO_USERS = [
    {
        "name": "Admin",
        "email": "admin@nextmail.com",
        "isadmin": True,
        "is_super_admin": True,
        "company": None,
        "teams": {"Nursing": "lead", "PhysicalTherapy": "lead", "Radiology": "lead", "ManipulationTherapy": "lead"},
    },
    {
        "name": "User",
        "email": "user@nextmail.com",
        "isadmin": False,
        "is_super_admin": False,
        "company": "Acme Clinic",
        "teams": {"Nursing": "lead", "PhysicalTherapy": "member"},
    },
    {
        "name": "Acme Admin",
        "email": "acme-admin@nextmail.com",
        "isadmin": True,
        "is_super_admin": False,
        "company": "Acme Clinic",
        "teams": {},
    },
    {
        "name": "Globex Admin",
        "email": "globex-admin@nextmail.com",
        "isadmin": True,
        "is_super_admin": False,
        "company": "Globex Health",
        "teams": {},
    },
]


async def create_tables() -> None:
    """Create every table that does not exist yet."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Tables ready")


async def ensure_team(session: AsyncSession, name: str, description: str | None) -> Team:
    result = await session.execute(select(Team).where(Team.name == name))
    team = result.scalar_one_or_none()
    if team:
        print(f"Team already exists: {name}")
        return team
    team = Team(name=name, description=description)
    session.add(team)
    await session.flush()
    print(f"Created team: {name}")
    return team


async def ensure_company(session: AsyncSession, name: str, description: str | None) -> Company:
    result = await session.execute(select(Company).where(Company.name == name))
    company = result.scalar_one_or_none()
    if company:
        print(f"Company already exists: {name}")
        return company
    company = Company(name=name, description=description)
    session.add(company)
    await session.flush()
    print(f"Created company: {name}")
    return company


async def seed_default() -> None:
    """Create the tables and the default team."""
    await create_tables()
    async with async_session_factory() as session:
        await ensure_team(session, settings.default_team_name, "Team every new user joins")
        await session.commit()


async def seed_demo() -> None:
    """Create demo companies, teams and users."""
    await seed_default()

    async with async_session_factory() as session:
        companies = {
            data["name"]: await ensure_company(session, data["name"], data["description"])
            for data in DEMO_COMPANIES
        }
        teams = {
            data["name"]: await ensure_team(session, data["name"], data["description"])
            for data in DEMO_TEAMS
        }

        for data in DEMO_USERS:
            result = await session.execute(select(User).where(User.email == data["email"]))
            if result.scalar_one_or_none():
                print(f"User already exists: {data['email']}")
                continue

            company = companies.get(data["company"]) if data["company"] else None
            user = User(
                name=data["name"],
                email=data["email"],
                password=hash_password(DEMO_PASSWORD),
                slug=generate_user_slug(data["name"]),
                isadmin=data["isadmin"],
                is_super_admin=data["is_super_admin"],
                active=True,
                settings={},
                company_id=company.id if company else None,
            )
            session.add(user)
            await session.flush()

            for team_name, role in data["teams"].items():
                session.add(UserTeam(user_id=user.id, team_id=teams[team_name].id, role=role))
            print(f"Created user: {data['email']} (password: {DEMO_PASSWORD})")

        await session.commit()


async def main(scenario: str) -> None:
    """Run the seeding based on scenario."""
    if scenario == "default":
        await seed_default()
    elif scenario == "demo":
        await seed_demo()
    else:
        print(f"Unknown scenario: {scenario}")
        print("Available scenarios: default, demo")
        sys.exit(1)
    await async_engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed database with demo data")
    parser.add_argument(
        "--scenario",
        "-s",
        default="default",
        help="Seed scenario to run (default, demo)",
    )
    args = parser.parse_args()

    asyncio.run(main(args.scenario))
