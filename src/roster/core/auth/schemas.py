"""Authentication schemas for token handling."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer
from pydantic.alias_generators import to_camel


class AccessClaims(BaseModel):
    """Identity, role and tenant claims carried by an access token.

    Attributes:
        id: The user's UUID
        email: The user's email
        name: The user's display name
        isadmin: Whether the user is a company admin
        is_super_admin: Whether the user bypasses company scoping
        company_id: The user's company, if any
        iat: Issued-at time (set on decode)
        exp: Expiration time (set on decode)
        iss: Issuer (set on decode)
        aud: Audience (set on decode)
    """

    id: UUID
    email: str
    name: str
    isadmin: bool = False
    is_super_admin: bool = False
    company_id: UUID | None = None

    iat: datetime | None = None
    exp: datetime | None = None
    iss: str | None = None
    aud: str | None = None

    @property
    def is_admin(self) -> bool:
        """Admin or super admin."""
        return self.isadmin or self.is_super_admin

    def identity(self) -> dict[str, object]:
        """Claims without the registered JWT fields."""
        return self.model_dump(exclude={"iat", "exp", "iss", "aud"})


class RefreshClaims(BaseModel):
    """Claims carried by a refresh token."""

    id: UUID
    email: str
    exp: datetime | None = None


class SessionClaims(BaseModel):
    """Claims carried by the session cookie."""

    user_id: UUID
    exp: datetime


class TokenPair(BaseModel):
    """Tokens returned to API clients.

    Serialized with camelCase keys (``accessToken``, ``refreshToken``,
    ``expiresIn``). The refresh token is omitted on refresh responses.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str
    refresh_token: str | None = None
    expires_in: int = Field(..., description="Access token lifetime in seconds")

    @model_serializer(mode="wrap")
    def _drop_missing_refresh(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if self.refresh_token is None:
            data.pop("refreshToken", None)
            data.pop("refresh_token", None)
        return data
