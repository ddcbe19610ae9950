"""Bridge from the cookie session to API access tokens.

Server-rendered callers sign in with ``POST /auth/session`` and carry a
signed session cookie. When they need to call the REST API they exchange
that cookie for a short-lived access token. The user row is re-read on
every exchange so role and company changes take effect immediately.
"""

from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends

from roster.config import settings
from roster.core.auth.backend import sign_access_token, verify_session_token
from roster.core.auth.service import claims_for
from roster.modules.users.repos import UserRepo


async def get_session_user_id(
    session: Annotated[str | None, Cookie(alias=settings.session_cookie_name)] = None,
) -> UUID | None:
    """User id from a valid session cookie, or None."""
    if not session:
        return None
    claims = verify_session_token(session)
    return claims.user_id if claims else None


SessionUserId = Annotated[UUID | None, Depends(get_session_user_id)]


class SessionBridge:
    """Mint access tokens for the user behind a session."""

    def __init__(self, users: UserRepo) -> None:
        self.users = users

    async def token_for_current_session(self, session_user_id: UUID | None) -> str | None:
        """Sign an access token for the session's user.

        Args:
            session_user_id: User id read from the session cookie

        Returns:
            A fresh access token, or None when there is no session or the
            user no longer exists or is inactive
        """
        if session_user_id is None:
            return None
        user = await self.users.get_active_by_id(session_user_id)
        if user is None:
            return None
        return sign_access_token(claims_for(user))


# Type alias for dependency injection
Bridge = Annotated[SessionBridge, Depends(SessionBridge)]
