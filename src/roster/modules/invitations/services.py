"""Invitation service for business logic.

An invitation moves one way: ``pending`` to ``accepted``, ``expired`` or
``revoked``. Expiry is applied lazily the first time an expired pending
invitation is read and is committed at once, so a rejected accept keeps
it. Accepting claims the invitation with a conditional UPDATE before any
user row is written, so a token can only be used once even under
concurrent requests.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from roster.core.constants import (
    INVITATION_EXPIRE_DAYS,
    INVITATION_ROLE_ADMIN,
    INVITATION_TOKEN_BYTES,
)
from roster.core.database import StorageError
from roster.core.errors import (
    BadRequestError,
    ConflictError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
)
from roster.core.permissions import TenantScope
from roster.modules.invitations.models import Invitation, InvitationStatus
from roster.modules.invitations.repos import InvitationRepo
from roster.modules.invitations.schemas import InvitationAccept, InvitationCreate
from roster.modules.users.models import User
from roster.modules.users.services import UserSvc


logger = structlog.get_logger()

NO_COMPANY_MESSAGE = "You must be associated with a company to view invitations"


def generate_invitation_token() -> str:
    """64-character hex token from 32 random bytes."""
    return secrets.token_hex(INVITATION_TOKEN_BYTES)


def _not_usable(invitation: Invitation) -> BadRequestError:
    if invitation.status == InvitationStatus.EXPIRED or (
        invitation.is_pending and invitation.is_past_expiry()
    ):
        message = "This invitation has expired."
    else:
        message = f"This invitation has been {invitation.status}."
    return BadRequestError(message, error_code=f"invitation_{invitation.status}")


class InvitationService:
    """Service for issuing, reading, accepting and revoking invitations."""

    def __init__(self, repo: InvitationRepo, users: UserSvc) -> None:
        self.repo = repo
        self.users = users

    # ============================================================
    # Admin operations
    # ============================================================

    async def list_invitations(
        self,
        scope: TenantScope,
        *,
        search: str | None = None,
        status: InvitationStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Invitation], int]:
        """List invitations visible to the caller, newest first."""
        return await self.repo.list_page(
            company_id=scope.company_filter(NO_COMPANY_MESSAGE),
            search=search,
            status=status,
            page=page,
            limit=limit,
        )

    async def create_invitation(self, scope: TenantScope, data: InvitationCreate) -> Invitation:
        """Issue an invitation for an email into a company.

        Raises:
            ConflictError: If the email already belongs to a user with a
                company or already has a pending invitation
            NotFoundError: If the company does not exist
        """
        company_id = scope.invitation_company(data.company_id)

        existing_user = await self.users.repo.get_by_email(data.email)
        if existing_user and existing_user.company_id is not None:
            raise ConflictError(
                "User already belongs to a company",
                field="email",
                error_code="user_has_company",
            )

        if await self.repo.find_pending(data.email, company_id):
            raise ConflictError(
                "An invitation has already been sent to this email",
                field="email",
                error_code="invitation_pending",
            )

        invitation = Invitation(
            email=data.email,
            company_id=company_id,
            role=data.role,
            token=generate_invitation_token(),
            status=InvitationStatus.PENDING.value,
            invited_by=scope.user_id,
            expires_at=datetime.now(UTC) + timedelta(days=INVITATION_EXPIRE_DAYS),
        )
        try:
            invitation = await self.repo.create(invitation)
        except StorageError as err:
            if err.constraint == "fk_invitations_company_id_companies":
                raise NotFoundError("Company not found", resource="company") from err
            raise DatabaseError(details={"kind": err.kind.value}) from err

        logger.info(
            "invitation_created",
            invitation_id=str(invitation.id),
            company_id=str(company_id),
            role=invitation.role,
            invited_by=str(scope.user_id),
        )
        return invitation

    async def revoke_invitation(self, scope: TenantScope, invitation_id: UUID) -> Invitation:
        """Revoke a pending invitation.

        Raises:
            ForbiddenError: If the invitation is outside the caller's company
            NotFoundError: If a super admin asks for an unknown id
            BadRequestError: If the invitation is no longer pending
        """
        invitation = await self.repo.get_by_id(invitation_id)
        scope.ensure_can_access(
            invitation.company_id if invitation else None,
            resource="invitation",
        )
        if invitation is None:
            raise NotFoundError(
                "Invitation not found",
                resource="invitation",
                resource_id=str(invitation_id),
            )

        if not await self.repo.transition(invitation, InvitationStatus.REVOKED):
            raise _not_usable(invitation)

        logger.info("invitation_revoked", invitation_id=str(invitation.id))
        return invitation

    # ============================================================
    # Invitee operations
    # ============================================================

    async def get_by_token(self, token: str) -> Invitation:
        """Read an invitation by token, expiring it if its time has passed.

        Raises:
            NotFoundError: If the token is unknown
        """
        invitation = await self.repo.get_by_token(token)
        if invitation is None:
            raise NotFoundError("Invalid invitation token.", resource="invitation")

        if invitation.is_pending and invitation.is_past_expiry():
            if await self.repo.expire(invitation):
                logger.info("invitation_expired", invitation_id=str(invitation.id))

        return invitation

    async def existing_user_for(self, invitation: Invitation) -> User | None:
        """The account already registered under the invited email, if any."""
        return await self.users.repo.get_by_email(invitation.email)

    async def _claim(self, token: str) -> Invitation:
        invitation = await self.get_by_token(token)
        if not invitation.is_pending:
            raise _not_usable(invitation)
        if not await self.repo.transition(
            invitation,
            InvitationStatus.ACCEPTED,
            require_unexpired=True,
        ):
            raise _not_usable(invitation)
        return invitation

    async def accept(self, token: str, data: InvitationAccept) -> User:
        """Accept an invitation, creating the invitee's account.

        A user that already exists without a company is attached to the
        invitation's company instead, keeping their password.

        Raises:
            NotFoundError: If the token is unknown
            BadRequestError: If the invitation is not pending
            ConflictError: If the email belongs to a user with a company
        """
        invitation = await self._claim(token)
        isadmin = invitation.role == INVITATION_ROLE_ADMIN

        existing = await self.existing_user_for(invitation)
        if existing is not None:
            if existing.company_id is not None:
                raise ConflictError(
                    "A user with this email already exists and belongs to a company.",
                    field="email",
                    error_code="user_has_company",
                )
            existing.name = data.name
            existing.company_id = invitation.company_id
            existing.isadmin = isadmin
            user = await self.users.repo.update(existing)
        else:
            user = await self.users.create_account(
                name=data.name,
                email=invitation.email,
                password=data.password,
                isadmin=isadmin,
                company_id=invitation.company_id,
            )

        logger.info(
            "invitation_accepted",
            invitation_id=str(invitation.id),
            user_id=str(user.id),
            created=existing is None,
        )
        return user

    async def join(self, token: str, user_id: UUID) -> User:
        """Attach an existing, signed-in user without a company.

        Raises:
            NotFoundError: If the token or user is unknown
            ForbiddenError: If the invitation was sent to another email
            ConflictError: If the user already has a company
            BadRequestError: If the invitation is not pending
        """
        invitation = await self.get_by_token(token)
        user = await self.users.get_profile(user_id)

        if user.email != invitation.email:
            raise ForbiddenError(
                "This invitation was sent to a different email address",
                error_code="invitation_email_mismatch",
            )
        if user.company_id is not None:
            raise ConflictError(
                "You already belong to a company.",
                field="email",
                error_code="user_has_company",
            )

        invitation = await self._claim(token)
        user.company_id = invitation.company_id
        user.isadmin = invitation.role == INVITATION_ROLE_ADMIN
        user = await self.users.repo.update(user)

        logger.info(
            "invitation_joined",
            invitation_id=str(invitation.id),
            user_id=str(user.id),
        )
        return user


# Type alias for dependency injection
InvitationSvc = Annotated[InvitationService, Depends(InvitationService)]
