"""Text processing utilities."""

import re
import secrets
import string

from roster.core.constants import MAX_SLUG_LENGTH, SLUG_PATTERN, SLUG_SUFFIX_LENGTH


_SLUG_RE = re.compile(SLUG_PATTERN)
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def generate_slug(name: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Generate a URL-safe slug from a name.

    Converts the input string to a URL-friendly slug by:
    - Converting to lowercase
    - Removing special characters
    - Replacing spaces, underscores and hyphens with single hyphens
    - Truncating to max_length

    Args:
        name: The input string to slugify
        max_length: Maximum length of output slug (default 63)

    Returns:
        URL-safe lowercase slug

    Examples:
        >>> generate_slug("My Company Name")
        'my-company-name'
        >>> generate_slug("Hello! World@2024")
        'hello-world2024'
    """
    slug = name.lower().strip()
    slug = re.sub(r"[^a-z0-9\s_-]", "", slug)
    slug = re.sub(r"[-\s_]+", "-", slug)
    return slug.strip("-")[:max_length]


def generate_user_slug(name: str) -> str:
    """Slug for a new user: the slugified name plus a random suffix.

    Examples:
        >>> generate_user_slug("Jane Doe")  # doctest: +SKIP
        'jane-doe-k3x9qa'
    """
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(SLUG_SUFFIX_LENGTH))
    base = generate_slug(name, MAX_SLUG_LENGTH - SLUG_SUFFIX_LENGTH - 1) or "user"
    return f"{base}-{suffix}"


def is_valid_slug(slug: str) -> bool:
    """Check that a slug only has lowercase letters, digits and hyphens."""
    return bool(_SLUG_RE.match(slug))
