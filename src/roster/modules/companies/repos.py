"""Company repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete, func, select, update

from roster.api.dependencies import DBSession
from roster.core.database import storage_errors
from roster.core.utils.pagination import page_offset
from roster.modules.companies.models import Company
from roster.modules.users.models import User


class CompanyRepository:
    """Repository for Company database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, company: Company) -> Company:
        """Create a new company.

        Args:
            company: Company instance to create

        Returns:
            The created company with ID populated

        Raises:
            StorageError: If the name is already taken
        """
        self.session.add(company)
        with storage_errors():
            await self.session.flush()
        await self.session.refresh(company)
        return company

    async def get_by_id(self, company_id: UUID) -> Company | None:
        """Get a company by ID."""
        result = await self.session.execute(
            select(Company).where(Company.id == company_id)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Company | None:
        """Get a company by exact name."""
        result = await self.session.execute(select(Company).where(Company.name == name))
        return result.scalar_one_or_none()

    async def list_page(
        self,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> tuple[list[Company], int]:
        """List companies ordered by name.

        Args:
            search: Case-insensitive substring of name or description
            page: Page number (1-indexed)
            limit: Page size, or None for every company

        Returns:
            Tuple of (companies, total count)
        """
        filters = []
        if search:
            pattern = f"%{search}%"
            filters.append(
                Company.name.ilike(pattern) | Company.description.ilike(pattern)
            )

        count_stmt = select(func.count()).select_from(Company).where(*filters)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = select(Company).where(*filters).order_by(Company.name)
        if limit is not None:
            stmt = stmt.offset(page_offset(page, limit)).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def update(self, company: Company) -> Company:
        """Persist changes to a company.

        Raises:
            StorageError: If the new name is already taken
        """
        with storage_errors():
            await self.session.flush()
        await self.session.refresh(company)
        return company

    async def delete_and_unlink_users(self, company_id: UUID) -> int:
        """Unlink every user from a company, then delete it.

        Both statements run inside one savepoint so either both take
        effect or neither does.

        Args:
            company_id: The company to delete

        Returns:
            Number of companies deleted (0 or 1)
        """
        async with self.session.begin_nested():
            await self.session.execute(
                update(User)
                .where(User.company_id == company_id)
                .values(company_id=None)
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(
                delete(Company).where(Company.id == company_id)
            )
        return result.rowcount


# Type alias for dependency injection
CompanyRepo = Annotated[CompanyRepository, Depends(CompanyRepository)]
