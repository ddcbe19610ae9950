"""Authentication and request context middleware.

This module provides middleware for:
- Binding the caller's user and company to the request and log context
- Request tracing with unique IDs
"""

import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from roster.core.auth.backend import extract_bearer_token, verify_access_token


if TYPE_CHECKING:
    from starlette.types import ASGIApp


logger = structlog.get_logger()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware that binds the caller's identity to the request.

    Reads the bearer token (if present and valid) and stores the user and
    company ids on ``request.state`` and in the structlog context. It never
    rejects a request; enforcement happens in the route's gate dependency.

    Attributes:
        exclude_paths: Paths that never carry a bearer token
    """

    def __init__(
        self,
        app: "ASGIApp",
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.exclude_paths = exclude_paths or [
            "/health",
            "/docs",
            "/redoc",
            "/openapi.json",
        ]

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process the request and bind identity context.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response from the handler
        """
        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            return await call_next(request)

        token = extract_bearer_token(request.headers.get("Authorization"))
        claims = verify_access_token(token) if token else None
        if claims:
            request.state.user_id = claims.id
            request.state.company_id = claims.company_id

            structlog.contextvars.bind_contextvars(
                user_id=str(claims.id),
                company_id=str(claims.company_id) if claims.company_id else None,
            )

        return await call_next(request)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware that adds a unique request ID to each request.

    The request ID is added to:
    - request.state.request_id
    - Response header X-Request-ID
    - Structlog context
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process the request and add request ID.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response with X-Request-ID header
        """
        # Get request ID from header or generate new one
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id", "company_id", "user_id")

        response.headers["X-Request-ID"] = request_id
        return response
