"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Slug generation
MAX_SLUG_LENGTH = 63
SLUG_SUFFIX_LENGTH = 6
SLUG_PATTERN = r"^[a-z0-9-]+$"
MAX_SLUG_ATTEMPTS = 5

# Hash lengths
SHA256_HEX_LENGTH = 64

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MIN_USER_NAME_LENGTH = 3
MAX_USER_NAME_LENGTH = 100
MAX_ROLE_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 1000

# Password requirements
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 32
BCRYPT_ROUNDS = 12

# Pagination defaults
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Token settings
TOKEN_JTI_LENGTH = 16
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
SESSION_TOKEN_TYPE = "session"
INVITATION_TOKEN_BYTES = 32
INVITATION_EXPIRE_DAYS = 7

# Rate limiting
UNKNOWN_CLIENT = "unknown"

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"

# Roles
TEAM_ROLE_MEMBER = "member"
INVITATION_ROLE_ADMIN = "admin"
INVITATION_ROLE_MEMBER = "member"

# Per-user UI settings merged over stored values
DEFAULT_USER_SETTINGS: dict[str, bool | int | str] = {
    "hideInactiveItems": False,
    "hideInactiveSKUs": False,
    "itemsPerPage": 6,
    "language": "en",
}
