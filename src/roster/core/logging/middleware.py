"""Request logging middleware.

Every request produces a ``request_started`` and a ``request_completed``
event. The completion event carries the status, the duration, the tenant
context bound by the auth middleware and the remaining rate limit budget
when the gate reported one.
"""

import time
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from roster.core.constants import UNKNOWN_CLIENT


logger = structlog.get_logger()

QUIET_PATHS = ("/health/live", "/health/ready", "/docs", "/redoc", "/openapi.json")


def _level_for(status_code: int) -> str:
    if status_code >= 500:
        return "error"
    if status_code >= 400:
        return "warning"
    return "info"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs HTTP requests with their tenant context.

    Probe and documentation paths are not logged.
    """

    def __init__(self, app: Any, quiet_paths: tuple[str, ...] = QUIET_PATHS) -> None:
        super().__init__(app)
        self.quiet_paths = quiet_paths

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Log the request around the downstream handler.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response from the handler
        """
        if request.url.path.startswith(self.quiet_paths):
            return await call_next(request)

        started = time.perf_counter()
        request_log = logger.bind(
            method=request.method,
            path=request.url.path,
            client_ip=get_client_ip(request),
        )
        request_log.info("request_started", query=request.url.query or None)

        try:
            response = await call_next(request)
        except Exception:
            request_log.exception(
                "request_failed",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        completion: dict[str, Any] = {
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        }
        # Set on request.state by the gate and RequestContextMiddleware
        for attr in ("user_id", "company_id"):
            value = getattr(request.state, attr, None)
            if value:
                completion[attr] = str(value)
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is not None:
            completion["rate_limit_remaining"] = int(remaining)

        getattr(request_log, _level_for(response.status_code))("request_completed", **completion)
        return response


def get_client_ip(request: Request) -> str:
    """Derive the client identifier from proxy headers.

    The first present header wins: ``X-Forwarded-For`` (first entry),
    ``X-Real-IP``, then ``CF-Connecting-IP``. Requests carrying none of
    them share the ``"unknown"`` identifier.

    Args:
        request: The incoming request

    Returns:
        The client IP address or "unknown"
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    for header in ("X-Real-IP", "CF-Connecting-IP"):
        value = request.headers.get(header)
        if value:
            return value.strip()

    return UNKNOWN_CLIENT
