"""Company isolation policy.

Regular admins only see and change rows belonging to their own company.
Super admins are unscoped. Every service that reads or mutates users or
invitations asks a :class:`TenantScope` built from the caller's verified
claims before touching storage.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from roster.core.errors import ForbiddenError, ValidationError


if TYPE_CHECKING:
    from roster.core.auth.schemas import AccessClaims


NO_COMPANY_MESSAGE = "You must be associated with a company to view users"


@dataclass(frozen=True)
class TenantScope:
    """The caller's company scope.

    Attributes:
        user_id: The caller's user id
        is_super_admin: Whether company scoping is bypassed
        company_id: The caller's company, if any
    """

    user_id: UUID
    is_super_admin: bool
    company_id: UUID | None

    @classmethod
    def from_claims(cls, claims: "AccessClaims") -> "TenantScope":
        """Build the scope from verified access token claims."""
        return cls(
            user_id=claims.id,
            is_super_admin=claims.is_super_admin,
            company_id=claims.company_id,
        )

    @property
    def unscoped(self) -> bool:
        return self.is_super_admin

    def company_filter(self, message: str = NO_COMPANY_MESSAGE) -> UUID | None:
        """Company id to filter queries by, or None for super admins.

        Args:
            message: Error message when a regular admin has no company

        Returns:
            The company id, or None when unscoped

        Raises:
            ForbiddenError: If a regular admin has no company
        """
        if self.unscoped:
            return None
        if self.company_id is None:
            raise ForbiddenError(message, error_code="company_required")
        return self.company_id

    def ensure_can_access(
        self,
        target_company_id: UUID | None,
        resource: str = "user",
    ) -> None:
        """Reject access to a row outside the caller's company.

        Args:
            target_company_id: The row's company
            resource: Resource name used in the error message

        Raises:
            ForbiddenError: If the row belongs to another company
        """
        company_id = self.company_filter()
        if company_id is None:
            return
        if target_company_id != company_id:
            raise ForbiddenError(
                f"You do not have permission to access this {resource}",
                error_code="tenant_forbidden",
            )

    def assign_company(
        self,
        requested: UUID | None,
        *,
        provided: bool,
        current: UUID | None = None,
    ) -> UUID | None:
        """Company a created or edited user ends up in.

        Super admins may set or clear the company. Regular admins always
        place users in their own company, whatever was submitted.

        Args:
            requested: Submitted company id
            provided: Whether the payload contained a company id at all
            current: The user's existing company when editing

        Returns:
            The company id to store
        """
        if self.unscoped:
            return requested if provided else current
        return self.company_filter()

    def invitation_company(self, requested: UUID | None) -> UUID:
        """Company an invitation is issued for.

        Raises:
            ValidationError: If a super admin did not pick a company
        """
        if not self.unscoped:
            if self.company_id is None:
                raise ForbiddenError(
                    "You must be associated with a company to invite users",
                    error_code="company_required",
                )
            return self.company_id
        if requested is None:
            raise ValidationError.for_field("company_id", "Company is required.")
        return requested
