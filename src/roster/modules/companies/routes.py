"""Company API routes. Every endpoint requires a super admin."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from roster.api.schemas import SuccessResponse, ok
from roster.core.auth.dependencies import SuperAdminClaims
from roster.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from roster.core.utils.pagination import Page, Pagination
from roster.modules.companies.schemas import (
    CompanyCreate,
    CompanyDeleted,
    CompanyResponse,
    CompanyUpdate,
)
from roster.modules.companies.services import CompanySvc


router = APIRouter(prefix="/companies", tags=["companies"])


@router.get(
    "",
    response_model=SuccessResponse[Page[CompanyResponse]],
    summary="List companies",
    description="Paginated list ordered by name, searching name and description.",
)
async def list_companies(
    _claims: SuperAdminClaims,
    service: CompanySvc,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
    search: str | None = None,
) -> SuccessResponse[Page[CompanyResponse]]:
    """List companies."""
    companies, total = await service.list_companies(search=search, page=page, limit=limit)
    return ok(
        Page[CompanyResponse](
            items=[CompanyResponse.model_validate(c) for c in companies],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.post(
    "",
    response_model=SuccessResponse[CompanyResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create company",
)
async def create_company(
    data: CompanyCreate,
    _claims: SuperAdminClaims,
    service: CompanySvc,
) -> SuccessResponse[CompanyResponse]:
    """Create a company."""
    company = await service.create_company(data)
    return ok(CompanyResponse.model_validate(company))


@router.get(
    "/{company_id}",
    response_model=SuccessResponse[CompanyResponse],
    summary="Get company",
)
async def get_company(
    company_id: UUID,
    _claims: SuperAdminClaims,
    service: CompanySvc,
) -> SuccessResponse[CompanyResponse]:
    """Get a company."""
    return ok(CompanyResponse.model_validate(await service.get_company(company_id)))


@router.put(
    "/{company_id}",
    response_model=SuccessResponse[CompanyResponse],
    summary="Update company",
    description="Partial update. An empty description clears it.",
)
async def update_company(
    company_id: UUID,
    data: CompanyUpdate,
    _claims: SuperAdminClaims,
    service: CompanySvc,
) -> SuccessResponse[CompanyResponse]:
    """Update a company."""
    company = await service.update_company(company_id, data)
    return ok(CompanyResponse.model_validate(company))


@router.delete(
    "/{company_id}",
    response_model=SuccessResponse[CompanyDeleted],
    summary="Delete company",
    description="Users of the company are kept and unlinked.",
)
async def delete_company(
    company_id: UUID,
    _claims: SuperAdminClaims,
    service: CompanySvc,
) -> SuccessResponse[CompanyDeleted]:
    """Delete a company."""
    company = await service.delete_company(company_id)
    return ok(
        CompanyDeleted(
            deleted=CompanyResponse.model_validate(company),
            message=f"Company {company.name} deleted successfully",
        )
    )
