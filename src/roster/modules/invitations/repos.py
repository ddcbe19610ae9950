"""Invitation repository for database operations."""

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, or_, select, update

from roster.api.dependencies import DBSession
from roster.core.database import storage_errors
from roster.core.utils.pagination import page_offset
from roster.modules.companies.models import Company
from roster.modules.invitations.models import Invitation, InvitationStatus


class InvitationRepository:
    """Repository for Invitation database operations.

    Status changes are conditional UPDATE statements that only match
    pending rows, so a terminal state is never overwritten.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation.

        Raises:
            StorageError: If the token collides or the company does not exist
        """
        self.session.add(invitation)
        with storage_errors():
            await self.session.flush()
        await self.session.refresh(invitation)
        return invitation

    async def get_by_id(
        self,
        invitation_id: UUID,
        company_id: UUID | None = None,
    ) -> Invitation | None:
        """Get an invitation by ID, optionally scoped to a company."""
        stmt = select(Invitation).where(Invitation.id == invitation_id)
        if company_id:
            stmt = stmt.where(Invitation.company_id == company_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_token(self, token: str) -> Invitation | None:
        result = await self.session.execute(
            select(Invitation).where(Invitation.token == token)
        )
        return result.scalar_one_or_none()

    async def find_pending(self, email: str, company_id: UUID) -> Invitation | None:
        """Find a live pending invitation for an email into a company."""
        result = await self.session.execute(
            select(Invitation).where(
                Invitation.email == email.lower(),
                Invitation.company_id == company_id,
                Invitation.status == InvitationStatus.PENDING.value,
                Invitation.expires_at > datetime.now(UTC),
            )
        )
        return result.scalars().first()

    async def list_page(
        self,
        company_id: UUID | None = None,
        search: str | None = None,
        status: InvitationStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Invitation], int]:
        """List invitations, newest first.

        Args:
            company_id: Restrict to one company when set
            search: Case-insensitive substring of the email or company name
            status: Restrict to one status when set
            page: Page number (1-indexed)
            limit: Number of items per page

        Returns:
            Tuple of (invitations, total count)
        """
        filters = []
        if company_id:
            filters.append(Invitation.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(Invitation.email.ilike(pattern), Company.name.ilike(pattern)))
        if status:
            filters.append(Invitation.status == status.value)

        count_stmt = (
            select(func.count())
            .select_from(Invitation)
            .join(Company, Invitation.company_id == Company.id)
            .where(*filters)
        )
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(Invitation)
            .join(Company, Invitation.company_id == Company.id)
            .where(*filters)
            .order_by(Invitation.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def transition(
        self,
        invitation: Invitation,
        new_status: InvitationStatus,
        *,
        require_unexpired: bool = False,
    ) -> bool:
        """Move a pending invitation to ``new_status``.

        Args:
            invitation: The invitation to update
            new_status: Target status
            require_unexpired: Also require ``expires_at`` to be in the future

        Returns:
            True if this call performed the transition
        """
        stmt = update(Invitation).where(
            Invitation.id == invitation.id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        if require_unexpired:
            stmt = stmt.where(Invitation.expires_at > datetime.now(UTC))

        result = await self.session.execute(
            stmt.values(status=new_status.value, updated_at=func.now()).execution_options(
                synchronize_session=False
            )
        )
        await self.session.refresh(invitation)
        return result.rowcount == 1

    async def expire(self, invitation: Invitation) -> bool:
        """Mark a pending invitation expired and commit immediately.

        The expiry is saved on its own so it survives the rollback of a
        request that then rejects the invitation.

        Returns:
            True if this call performed the transition
        """
        expired = await self.transition(invitation, InvitationStatus.EXPIRED)
        if expired:
            await self.session.commit()
        return expired


# Type alias for dependency injection
InvitationRepo = Annotated[InvitationRepository, Depends(InvitationRepository)]
