"""Company service for business logic."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from roster.core.constants import DEFAULT_PAGE_SIZE
from roster.core.database import StorageError
from roster.core.errors import BadRequestError, ConflictError, DatabaseError, NotFoundError
from roster.modules.companies.models import Company
from roster.modules.companies.repos import CompanyRepo
from roster.modules.companies.schemas import CompanyCreate, CompanyUpdate


logger = structlog.get_logger()

NAME_EXISTS_MESSAGE = "A company with this name already exists"


def _conflict_from_storage(err: StorageError) -> Exception:
    if err.is_unique("uq_companies_name"):
        return ConflictError(NAME_EXISTS_MESSAGE, field="name", error_code="company_exists")
    return DatabaseError(details={"kind": err.kind.value})


class CompanyService:
    """Service for company management. Only super admins reach it."""

    def __init__(self, repo: CompanyRepo) -> None:
        self.repo = repo

    async def list_companies(
        self,
        search: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[Company], int]:
        """List companies ordered by name, optionally filtered."""
        return await self.repo.list_page(search=search, page=page, limit=limit)

    async def get_company(self, company_id: UUID) -> Company:
        """Get a company by ID.

        Raises:
            NotFoundError: If the company does not exist
        """
        company = await self.repo.get_by_id(company_id)
        if not company:
            raise NotFoundError(
                "Company not found",
                resource="company",
                resource_id=str(company_id),
            )
        return company

    async def create_company(self, data: CompanyCreate) -> Company:
        """Create a company.

        Raises:
            ConflictError: If the name is taken
        """
        if await self.repo.get_by_name(data.name):
            raise ConflictError(NAME_EXISTS_MESSAGE, field="name", error_code="company_exists")

        try:
            company = await self.repo.create(
                Company(name=data.name, description=data.description)
            )
        except StorageError as err:
            raise _conflict_from_storage(err) from err

        logger.info("company_created", company_id=str(company.id), name=company.name)
        return company

    async def update_company(self, company_id: UUID, data: CompanyUpdate) -> Company:
        """Apply a partial update.

        Raises:
            BadRequestError: If the payload has no fields
            NotFoundError: If the company does not exist
            ConflictError: If the new name is taken
        """
        fields = data.model_dump(exclude_unset=True)
        if not fields:
            raise BadRequestError("No fields to update", error_code="no_fields")

        company = await self.get_company(company_id)

        if data.name is not None and data.name != company.name:
            if await self.repo.get_by_name(data.name):
                raise ConflictError(NAME_EXISTS_MESSAGE, field="name", error_code="company_exists")
            company.name = data.name
        if "description" in fields:
            company.description = data.description

        try:
            company = await self.repo.update(company)
        except StorageError as err:
            raise _conflict_from_storage(err) from err

        logger.info("company_updated", company_id=str(company.id), fields=sorted(fields))
        return company

    async def delete_company(self, company_id: UUID) -> Company:
        """Delete a company after unlinking its users.

        Raises:
            NotFoundError: If the company does not exist
        """
        company = await self.get_company(company_id)
        await self.repo.delete_and_unlink_users(company_id)
        logger.info("company_deleted", company_id=str(company_id), name=company.name)
        return company


# Type alias for dependency injection
CompanySvc = Annotated[CompanyService, Depends(CompanyService)]
