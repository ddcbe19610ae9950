"""Authentication API routes.

Provides endpoints for:
- User registration
- Login/logout with JWT access and refresh tokens
- Token refresh and verification
- Cookie sessions and the session-to-token bridge
"""

from fastapi import APIRouter, Depends, Response, status

from roster.api.schemas import MessageData, SuccessResponse, ok
from roster.config import settings
from roster.core.auth.bridge import Bridge, SessionUserId
from roster.core.auth.dependencies import ApiGate, AuthClaims, SuperAdminClaims
from roster.core.auth.service import AuthSvc, access_token_lifetime
from roster.core.errors import UnauthorizedError
from roster.modules.users.schemas import (
    ApiTokenResponse,
    AuthResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenStatus,
    UserDetailResponse,
    VerifyResponse,
)


router = APIRouter(prefix="/auth", tags=["auth"])

# Token-exchange endpoints stay reachable for rate limited clients that
# already hold credentials.
unlimited_public = Depends(ApiGate(require_auth=False, skip_rate_limit=True))


@router.post(
    "/register",
    response_model=SuccessResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(ApiGate(require_auth=False))],
    summary="Register a new user",
    description="Creates an account, joins the default team and returns a token pair.",
)
async def register(
    data: RegisterRequest,
    service: AuthSvc,
) -> SuccessResponse[AuthResponse]:
    """Register a new user."""
    user, tokens = await service.register(
        email=data.email,
        password=data.password,
        name=data.name,
    )
    return ok(AuthResponse(user=UserDetailResponse.model_validate(user), tokens=tokens))


@router.post(
    "/login",
    response_model=SuccessResponse[AuthResponse],
    dependencies=[Depends(ApiGate(require_auth=False))],
    summary="Login with email and password",
    description="Authenticate an active user and receive access and refresh tokens.",
)
async def login(
    data: LoginRequest,
    service: AuthSvc,
) -> SuccessResponse[AuthResponse]:
    """Login with email and password."""
    user, tokens = await service.login(email=data.email, password=data.password)
    return ok(AuthResponse(user=UserDetailResponse.model_validate(user), tokens=tokens))


@router.post(
    "/refresh",
    response_model=SuccessResponse[AuthResponse],
    dependencies=[unlimited_public],
    summary="Refresh access token",
    description="Exchange the stored refresh token for a new access token.",
)
async def refresh_token(
    data: RefreshTokenRequest,
    service: AuthSvc,
) -> SuccessResponse[AuthResponse]:
    """Refresh the access token."""
    user, tokens = await service.refresh(data.refresh_token)
    return ok(AuthResponse(user=UserDetailResponse.model_validate(user), tokens=tokens))


@router.post(
    "/logout",
    response_model=SuccessResponse[MessageData],
    dependencies=[unlimited_public],
    summary="Logout",
    description="Revoke the given refresh token.",
)
async def logout(
    data: RefreshTokenRequest,
    service: AuthSvc,
) -> SuccessResponse[MessageData]:
    """Logout by revoking the refresh token."""
    await service.logout(data.refresh_token)
    return ok(MessageData(message="Successfully logged out"))


@router.delete(
    "/logout",
    response_model=SuccessResponse[MessageData],
    summary="Logout from all devices",
    description="Revoke every refresh token of the authenticated user.",
)
async def logout_all(
    claims: AuthClaims,
    service: AuthSvc,
) -> SuccessResponse[MessageData]:
    """Logout from all devices."""
    await service.logout_all(claims.id)
    return ok(MessageData(message="Successfully logged out from all devices"))


@router.get(
    "/verify",
    response_model=SuccessResponse[VerifyResponse],
    summary="Verify access token",
    description="Validate the bearer token and return the current user row.",
)
async def verify(
    claims: AuthClaims,
    service: AuthSvc,
) -> SuccessResponse[VerifyResponse]:
    """Verify the access token."""
    user = await service.verify(claims)
    return ok(
        VerifyResponse(
            user=UserDetailResponse.model_validate(user),
            token=TokenStatus(valid=True, expires_at=claims.exp),
        )
    )


@router.post(
    "/setup",
    response_model=SuccessResponse[MessageData],
    summary="Provision token storage",
    description="Create the refresh token table if needed and purge expired tokens.",
)
async def setup(
    _claims: SuperAdminClaims,
    service: AuthSvc,
) -> SuccessResponse[MessageData]:
    """Provision the refresh token store."""
    purged = await service.setup()
    return ok(MessageData(message=f"API setup completed successfully ({purged} expired tokens removed)"))


# ============================================================
# Cookie session
# ============================================================


@router.post(
    "/session",
    response_model=SuccessResponse[UserDetailResponse],
    dependencies=[Depends(ApiGate(require_auth=False))],
    summary="Start a cookie session",
    description="Authenticate and set the signed session cookie.",
)
async def start_session(
    data: LoginRequest,
    service: AuthSvc,
    response: Response,
) -> SuccessResponse[UserDetailResponse]:
    """Sign in and set the session cookie."""
    user, session_token = await service.start_session(data.email, data.password)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_token,
        max_age=settings.session_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return ok(UserDetailResponse.model_validate(user))


@router.delete(
    "/session",
    response_model=SuccessResponse[MessageData],
    dependencies=[unlimited_public],
    summary="End the cookie session",
)
async def end_session(response: Response) -> SuccessResponse[MessageData]:
    """Clear the session cookie."""
    response.delete_cookie(settings.session_cookie_name)
    return ok(MessageData(message="Signed out"))


@router.get(
    "/api-token",
    response_model=SuccessResponse[ApiTokenResponse],
    dependencies=[Depends(ApiGate(require_auth=False))],
    summary="Exchange the session for an access token",
    description="Sign a fresh access token for the user behind the session cookie.",
)
async def api_token(
    session_user_id: SessionUserId,
    bridge: Bridge,
) -> SuccessResponse[ApiTokenResponse]:
    """Session bridge endpoint."""
    token = await bridge.token_for_current_session(session_user_id)
    if token is None:
        raise UnauthorizedError("No active session", error_code="no_session")
    return ok(ApiTokenResponse(access_token=token, expires_in=access_token_lifetime()))

