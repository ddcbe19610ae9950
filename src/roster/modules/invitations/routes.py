"""Invitation API routes.

Admins issue, list and revoke invitations. The ``/token/{token}`` endpoints
are used by the invitee and do not require an admin.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from roster.api.schemas import SuccessResponse, ok
from roster.core.auth.dependencies import AdminClaims, ApiGate, AuthClaims
from roster.core.permissions import TenantScope
from roster.core.utils.pagination import Page, Pagination
from roster.modules.invitations.models import InvitationStatus
from roster.modules.invitations.schemas import (
    ExistingUser,
    InvitationAccept,
    InvitationCreate,
    InvitationPublic,
    InvitationResponse,
)
from roster.modules.invitations.services import InvitationSvc
from roster.modules.users.schemas import UserDetailResponse


router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.get(
    "",
    response_model=SuccessResponse[Page[InvitationResponse]],
    summary="List invitations",
)
async def list_invitations(
    claims: AdminClaims,
    service: InvitationSvc,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    search: str | None = None,
    status_filter: Annotated[InvitationStatus | None, Query(alias="status")] = None,
) -> SuccessResponse[Page[InvitationResponse]]:
    """List invitations in the caller's company, newest first.

    ``search`` matches the invited email or the company name.
    """
    invitations, total = await service.list_invitations(
        TenantScope.from_claims(claims),
        search=search,
        status=status_filter,
        page=page,
        limit=limit,
    )
    return ok(
        Page[InvitationResponse](
            items=[InvitationResponse.model_validate(i) for i in invitations],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.post(
    "",
    response_model=SuccessResponse[InvitationResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create invitation",
)
async def create_invitation(
    data: InvitationCreate,
    claims: AdminClaims,
    service: InvitationSvc,
) -> SuccessResponse[InvitationResponse]:
    """Issue an invitation."""
    invitation = await service.create_invitation(TenantScope.from_claims(claims), data)
    return ok(InvitationResponse.model_validate(invitation))


@router.post(
    "/{invitation_id}/revoke",
    response_model=SuccessResponse[InvitationResponse],
    summary="Revoke invitation",
)
async def revoke_invitation(
    invitation_id: UUID,
    claims: AdminClaims,
    service: InvitationSvc,
) -> SuccessResponse[InvitationResponse]:
    """Revoke a pending invitation."""
    invitation = await service.revoke_invitation(TenantScope.from_claims(claims), invitation_id)
    return ok(InvitationResponse.model_validate(invitation))


# ============================================================
# Invitee endpoints
# ============================================================


@router.get(
    "/token/{token}",
    response_model=SuccessResponse[InvitationPublic],
    dependencies=[Depends(ApiGate(require_auth=False))],
    summary="Read invitation",
    description="Expired pending invitations are marked expired on read.",
)
async def get_invitation(token: str, service: InvitationSvc) -> SuccessResponse[InvitationPublic]:
    """Public view of an invitation."""
    invitation = await service.get_by_token(token)
    existing = await service.existing_user_for(invitation)
    return ok(
        InvitationPublic(
            email=invitation.email,
            company_id=invitation.company_id,
            company_name=invitation.company_name,
            role=invitation.role,
            status=InvitationStatus(invitation.status),
            expires_at=invitation.expires_at,
            existing_user=(
                ExistingUser(
                    id=existing.id,
                    name=existing.name,
                    has_company=existing.company_id is not None,
                )
                if existing
                else None
            ),
        )
    )


@router.post(
    "/token/{token}/accept",
    response_model=SuccessResponse[UserDetailResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(ApiGate(require_auth=False))],
    summary="Accept invitation",
    description="Create an account for the invited email and join the company.",
)
async def accept_invitation(
    token: str,
    data: InvitationAccept,
    service: InvitationSvc,
) -> SuccessResponse[UserDetailResponse]:
    """Accept as a new user."""
    user = await service.accept(token, data)
    return ok(UserDetailResponse.model_validate(user))


@router.post(
    "/token/{token}/join",
    response_model=SuccessResponse[UserDetailResponse],
    summary="Join company",
    description="Attach the signed-in user, who must not have a company yet.",
)
async def join_company(
    token: str,
    claims: AuthClaims,
    service: InvitationSvc,
) -> SuccessResponse[UserDetailResponse]:
    """Accept as an existing user."""
    user = await service.join(token, claims.id)
    return ok(UserDetailResponse.model_validate(user))
