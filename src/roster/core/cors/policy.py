"""CORS header policy.

Computes the CORS response headers for a request origin against the
configured allow-list. Origins that are not on the list receive no
``Access-Control-Allow-Origin`` header, so browsers refuse the response.
"""

from collections.abc import Sequence

from roster.config import settings


ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS, PATCH"
ALLOW_HEADERS = "Content-Type, Authorization, X-Requested-With, Accept, Origin"
EXPOSE_HEADERS = "X-RateLimit-Limit, X-RateLimit-Remaining, X-RateLimit-Reset"
MAX_AGE_SECONDS = 86400

WILDCARD = "*"


class CorsPolicy:
    """Allow-list based CORS policy.

    Attributes:
        allowed_origins: Origins allowed to make credentialed requests
    """

    def __init__(self, allowed_origins: Sequence[str]) -> None:
        self.allowed_origins = list(allowed_origins)

    @classmethod
    def from_settings(cls) -> "CorsPolicy":
        """Build the policy from ALLOWED_ORIGINS."""
        return cls(settings.allowed_origin_list)

    @property
    def allows_any(self) -> bool:
        return WILDCARD in self.allowed_origins

    def is_allowed(self, origin: str) -> bool:
        """Check whether an origin may read responses."""
        return self.allows_any or origin in self.allowed_origins

    def headers_for(self, origin: str | None) -> dict[str, str]:
        """Compute CORS headers for a request.

        Args:
            origin: The request's Origin header, if any

        Returns:
            Headers to add to the response
        """
        headers = {
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
            "Access-Control-Max-Age": str(MAX_AGE_SECONDS),
            "Access-Control-Expose-Headers": EXPOSE_HEADERS,
        }

        if origin is None:
            if self.allows_any:
                headers["Access-Control-Allow-Origin"] = WILDCARD
            elif self.allowed_origins:
                headers["Access-Control-Allow-Origin"] = self.allowed_origins[0]
                headers["Access-Control-Allow-Credentials"] = "true"
            return headers

        if self.is_allowed(origin):
            headers["Access-Control-Allow-Origin"] = origin
            headers["Access-Control-Allow-Credentials"] = "true"
            headers["Vary"] = "Origin"

        return headers
