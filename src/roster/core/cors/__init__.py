"""CORS policy and middleware."""

from roster.core.cors.middleware import CORSHeadersMiddleware
from roster.core.cors.policy import CorsPolicy


__all__ = [
    "CORSHeadersMiddleware",
    "CorsPolicy",
]
