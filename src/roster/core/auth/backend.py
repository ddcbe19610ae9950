"""Authentication backend for JWT and password handling.

This module provides core authentication utilities including:
- Password hashing with bcrypt
- Access, refresh and session token signing and verification
- Bearer header parsing
- Token hashing for storage

Verification never raises: every failure (bad signature, expiry, wrong
issuer, audience or token type, malformed payload) returns ``None`` so
callers branch on the result instead of catching exceptions.
"""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import pydantic
from jose import JWTError, jwt
from passlib.context import CryptContext

from roster.config import settings
from roster.core.auth.schemas import AccessClaims, RefreshClaims, SessionClaims
from roster.core.constants import (
    ACCESS_TOKEN_TYPE,
    BCRYPT_ROUNDS,
    REFRESH_TOKEN_TYPE,
    SESSION_TOKEN_TYPE,
    TOKEN_JTI_LENGTH,
)


# Password hashing context using bcrypt
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)

BEARER_PREFIX = "Bearer "


# ============================================================
# Password Utilities
# ============================================================


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash of the password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Bcrypt hash to verify against

    Returns:
        True if password matches, False otherwise
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Not a recognizable hash
        return False


# ============================================================
# JWT Token Utilities
# ============================================================


def _encode(
    payload: dict[str, Any],
    secret: str,
    expires_delta: timedelta,
) -> str:
    now = datetime.now(UTC)
    to_encode = {
        **payload,
        "iat": now,
        "exp": now + expires_delta,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "jti": secrets.token_urlsafe(TOKEN_JTI_LENGTH),  # Unique token ID
    }
    return jwt.encode(to_encode, secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, secret: str, token_type: str) -> dict[str, Any] | None:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except JWTError:
        return None

    if payload.get("type") != token_type:
        return None
    return payload


def sign_access_token(
    claims: AccessClaims,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a short-lived JWT access token.

    Args:
        claims: Identity, role and company claims to embed
        expires_delta: Optional custom lifetime (default one hour)

    Returns:
        Encoded JWT access token
    """
    payload: dict[str, Any] = {
        "id": str(claims.id),
        "email": claims.email,
        "name": claims.name,
        "isadmin": claims.isadmin,
        "is_super_admin": claims.is_super_admin,
        "company_id": str(claims.company_id) if claims.company_id else None,
        "type": ACCESS_TOKEN_TYPE,
    }
    return _encode(
        payload,
        settings.jwt_secret,
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def sign_refresh_token(
    user_id: UUID,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a long-lived JWT refresh token signed with the refresh secret.

    Args:
        user_id: The user's UUID
        email: The user's email
        expires_delta: Optional custom lifetime (default seven days)

    Returns:
        Encoded JWT refresh token
    """
    return _encode(
        {"id": str(user_id), "email": email, "type": REFRESH_TOKEN_TYPE},
        settings.jwt_refresh_secret,
        expires_delta or timedelta(days=settings.refresh_token_expire_days),
    )


def sign_session_token(user_id: UUID, expires_delta: timedelta | None = None) -> str:
    """Create the signed value stored in the session cookie."""
    return _encode(
        {"sub": str(user_id), "type": SESSION_TOKEN_TYPE},
        settings.session_secret,
        expires_delta or timedelta(days=settings.session_expire_days),
    )


def verify_access_token(token: str) -> AccessClaims | None:
    """Decode and validate an access token.

    Args:
        token: The JWT access token

    Returns:
        The verified claims, or None if the token is invalid or expired
    """
    payload = _decode(token, settings.jwt_secret, ACCESS_TOKEN_TYPE)
    if payload is None:
        return None
    try:
        return AccessClaims.model_validate(payload)
    except pydantic.ValidationError:
        return None


def verify_refresh_token(token: str) -> RefreshClaims | None:
    """Decode and validate a refresh token.

    Args:
        token: The JWT refresh token

    Returns:
        The verified claims, or None if the token is invalid or expired
    """
    payload = _decode(token, settings.jwt_refresh_secret, REFRESH_TOKEN_TYPE)
    if payload is None:
        return None
    try:
        return RefreshClaims.model_validate(payload)
    except pydantic.ValidationError:
        return None


def verify_session_token(token: str) -> SessionClaims | None:
    """Decode and validate a session cookie value."""
    payload = _decode(token, settings.session_secret, SESSION_TOKEN_TYPE)
    if payload is None:
        return None
    try:
        return SessionClaims(user_id=payload["sub"], exp=payload["exp"])
    except (KeyError, pydantic.ValidationError):
        return None


def extract_bearer_token(header: str | None) -> str | None:
    """Parse an ``Authorization: Bearer <token>`` header value.

    Args:
        header: The raw header value

    Returns:
        The token, or None for any other format
    """
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


def is_token_expired(token: str) -> bool:
    """Check a token's expiry without verifying its signature.

    Args:
        token: Any JWT

    Returns:
        True if the token is expired or unreadable
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return True
    exp = claims.get("exp")
    if not isinstance(exp, int | float):
        return True
    return datetime.fromtimestamp(exp, tz=UTC) <= datetime.now(UTC)


def hash_token(token: str) -> str:
    """Hash a token for secure storage.

    Uses SHA-256 to hash tokens before storing in the database.
    This prevents token theft if the database is compromised.

    Args:
        token: The token to hash

    Returns:
        SHA-256 hash of the token
    """
    return hashlib.sha256(token.encode()).hexdigest()


def get_token_expiration(days: int | None = None) -> datetime:
    """Get the expiration datetime for a refresh token.

    Args:
        days: Number of days until expiration

    Returns:
        Expiration datetime
    """
    if days is None:
        days = settings.refresh_token_expire_days
    return datetime.now(UTC) + timedelta(days=days)
