"""Database layer - session management, base models, and error classification."""

from roster.core.database.base import Base, TimestampMixin, UUIDMixin
from roster.core.database.errors import (
    StorageError,
    StorageErrorKind,
    classify_integrity_error,
    storage_errors,
)
from roster.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
)


__all__ = [
    "Base",
    "StorageError",
    "StorageErrorKind",
    "TimestampMixin",
    "UUIDMixin",
    "async_engine",
    "async_session_factory",
    "classify_integrity_error",
    "get_db",
    "storage_errors",
]
