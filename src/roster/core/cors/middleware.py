"""CORS middleware.

Answers preflight requests directly and adds CORS headers to every
other response, error responses included. Unhandled exceptions are
rendered here so that 500 responses carry the headers too.
"""

from typing import TYPE_CHECKING

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from roster.core.cors.policy import CorsPolicy
from roster.core.errors.handlers import generic_exception_handler


if TYPE_CHECKING:
    from starlette.types import ASGIApp


logger = structlog.get_logger()


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware applying a :class:`CorsPolicy` to every request."""

    def __init__(self, app: "ASGIApp", policy: CorsPolicy | None = None) -> None:
        super().__init__(app)
        self.policy = policy or CorsPolicy.from_settings()

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Short-circuit preflight requests and decorate responses.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response with CORS headers
        """
        origin = request.headers.get("Origin")
        headers = self.policy.headers_for(origin)

        if origin and "Access-Control-Allow-Origin" not in headers:
            logger.info("cors_origin_rejected", origin=origin, path=request.url.path)

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)

        try:
            response = await call_next(request)
        except Exception as exc:
            response = await generic_exception_handler(request, exc)
        response.headers.update(headers)
        return response
