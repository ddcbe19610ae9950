"""Logging module with structured logging and request tracking."""

from roster.core.logging.middleware import RequestLoggingMiddleware, get_client_ip


__all__ = [
    "RequestLoggingMiddleware",
    "get_client_ip",
]
