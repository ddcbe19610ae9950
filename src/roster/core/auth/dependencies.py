"""FastAPI dependencies for the API gate.

Every REST route declares an :class:`ApiGate` that runs, in order:

1. Rate limiting per client identifier (unless skipped)
2. Bearer token authentication (when required)
3. Admin / super admin authorization

CORS and preflight handling happen earlier, in
:class:`~roster.core.cors.CORSHeadersMiddleware`, because OPTIONS requests
never reach a route. Verified claims are trusted for the token lifetime;
the gate never reads the database.
"""

from datetime import UTC, datetime
from typing import Annotated

import structlog
from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from roster.core.auth.backend import extract_bearer_token, verify_access_token
from roster.core.auth.schemas import AccessClaims
from roster.core.errors import ForbiddenError, RateLimitError, UnauthorizedError
from roster.core.logging import get_client_ip
from roster.core.rate_limit import FixedWindowRateLimiter, RateLimitResult


logger = structlog.get_logger()

# Declares the bearer scheme in OpenAPI; the header is parsed by extract_bearer_token
bearer_scheme = HTTPBearer(auto_error=False)


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    """The limiter created at startup and stored on the app state."""
    return request.app.state.rate_limiter


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """``X-RateLimit-*`` headers describing a rate limit result."""
    reset = datetime.fromtimestamp(result.reset_time, tz=UTC)
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": reset.isoformat(),
    }


class ApiGate:
    """Rate limit, authenticate and authorize a REST request.

    Example:
        @router.get("/users")
        async def list_users(claims: Annotated[AccessClaims, Depends(ApiGate(require_admin=True))]):
            ...
    """

    def __init__(
        self,
        *,
        require_auth: bool = True,
        require_admin: bool = False,
        require_super_admin: bool = False,
        skip_rate_limit: bool = False,
    ) -> None:
        """Initialize the gate.

        Args:
            require_auth: Reject requests without a valid bearer token
            require_admin: Also require ``isadmin`` or ``is_super_admin``
            require_super_admin: Also require ``is_super_admin``
            skip_rate_limit: Do not count this request
        """
        self.require_auth = require_auth or require_admin or require_super_admin
        self.require_admin = require_admin
        self.require_super_admin = require_super_admin
        self.skip_rate_limit = skip_rate_limit

    async def __call__(
        self,
        request: Request,
        response: Response,
        _scheme: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    ) -> AccessClaims | None:
        """Run the gate.

        Returns:
            The verified claims, or None when authentication is optional
            and no valid token was sent

        Raises:
            RateLimitError: If the client exceeded its window
            UnauthorizedError: If a required token is missing or invalid
            ForbiddenError: If the caller lacks the required role
        """
        if not self.skip_rate_limit:
            await self._check_rate_limit(request, response)

        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            if self.require_auth:
                raise UnauthorizedError(
                    "Authorization header required",
                    error_code="missing_token",
                )
            return None

        claims = verify_access_token(token)
        if claims is None:
            if self.require_auth:
                raise UnauthorizedError(
                    "Invalid or expired token",
                    error_code="invalid_token",
                )
            return None

        if self.require_admin and not claims.is_admin:
            raise ForbiddenError("Admin access required", error_code="admin_required")

        if self.require_super_admin and not claims.is_super_admin:
            raise ForbiddenError(
                "Super Admin access required",
                error_code="super_admin_required",
            )

        request.state.user_id = claims.id
        request.state.company_id = claims.company_id
        return claims

    async def _check_rate_limit(self, request: Request, response: Response) -> None:
        identifier = get_client_ip(request)
        result = await get_rate_limiter(request).check(identifier)
        headers = rate_limit_headers(result)

        if not result.allowed:
            logger.warning(
                "rate_limit_exceeded",
                client=identifier,
                path=request.url.path,
                retry_after=result.retry_after,
            )
            raise RateLimitError(retry_after=result.retry_after, headers=headers)

        response.headers.update(headers)


# Reusable gates
public_gate = ApiGate(require_auth=False)
auth_gate = ApiGate()
admin_gate = ApiGate(require_admin=True)
super_admin_gate = ApiGate(require_super_admin=True)

# Type aliases for cleaner dependency injection
OptionalClaims = Annotated[AccessClaims | None, Depends(public_gate)]
AuthClaims = Annotated[AccessClaims, Depends(auth_gate)]
AdminClaims = Annotated[AccessClaims, Depends(admin_gate)]
SuperAdminClaims = Annotated[AccessClaims, Depends(super_admin_gate)]
