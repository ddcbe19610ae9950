"""Authentication module for JWT, sessions and the API gate."""

from roster.core.auth.backend import (
    extract_bearer_token,
    hash_password,
    hash_token,
    is_token_expired,
    sign_access_token,
    sign_refresh_token,
    verify_access_token,
    verify_password,
    verify_refresh_token,
)
from roster.core.auth.dependencies import (
    AdminClaims,
    ApiGate,
    AuthClaims,
    OptionalClaims,
    SuperAdminClaims,
)
from roster.core.auth.middleware import RequestContextMiddleware, RequestIdMiddleware
from roster.core.auth.schemas import AccessClaims, RefreshClaims, TokenPair


def get_router():
    """Import the auth router lazily to avoid circular imports.

    The routes depend on the user module, which itself imports this package.
    """
    from roster.core.auth.routes import router  # noqa: PLC0415

    return router


__all__ = [
    # Schemas
    "AccessClaims",
    # Dependencies
    "AdminClaims",
    "ApiGate",
    "AuthClaims",
    "OptionalClaims",
    "RefreshClaims",
    # Middleware
    "RequestContextMiddleware",
    "RequestIdMiddleware",
    "SuperAdminClaims",
    "TokenPair",
    # Token utilities
    "extract_bearer_token",
    # Lazy loaders
    "get_router",
    # Password utilities
    "hash_password",
    "hash_token",
    "is_token_expired",
    "sign_access_token",
    "sign_refresh_token",
    "verify_access_token",
    "verify_password",
    "verify_refresh_token",
]
