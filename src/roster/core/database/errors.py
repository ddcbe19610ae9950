"""Typed classification of database driver errors.

Raw driver exceptions are wrapped into :class:`StorageError` at the
repository boundary so services branch on a closed set of kinds and the
violated constraint name instead of matching error message text.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from enum import StrEnum

from sqlalchemy.exc import IntegrityError


class StorageErrorKind(StrEnum):
    """Closed set of storage failure kinds."""

    UNIQUE_VIOLATION = "unique_violation"
    FOREIGN_KEY_VIOLATION = "foreign_key_violation"
    NOT_NULL_VIOLATION = "not_null_violation"
    CHECK_VIOLATION = "check_violation"
    OTHER = "other"


# PostgreSQL SQLSTATE codes (class 23, integrity constraint violation)
_SQLSTATE_KINDS: dict[str, StorageErrorKind] = {
    "23505": StorageErrorKind.UNIQUE_VIOLATION,
    "23503": StorageErrorKind.FOREIGN_KEY_VIOLATION,
    "23502": StorageErrorKind.NOT_NULL_VIOLATION,
    "23514": StorageErrorKind.CHECK_VIOLATION,
}


class StorageError(Exception):
    """A classified storage failure.

    Attributes:
        kind: The failure kind
        constraint: Name of the violated constraint, when the driver reports it
    """

    def __init__(self, kind: StorageErrorKind, constraint: str | None = None) -> None:
        self.kind = kind
        self.constraint = constraint
        super().__init__(f"{kind.value}: {constraint or 'unknown constraint'}")

    def is_unique(self, constraint: str | None = None) -> bool:
        """Check for a unique violation, optionally of a specific constraint."""
        if self.kind is not StorageErrorKind.UNIQUE_VIOLATION:
            return False
        return constraint is None or self.constraint == constraint


def _driver_error_chain(exc: IntegrityError) -> list[object]:
    """The DBAPI error and the native driver error behind it."""
    chain: list[object] = []
    orig = exc.orig
    if orig is not None:
        chain.append(orig)
        if orig.__cause__ is not None:
            chain.append(orig.__cause__)
    return chain


def classify_integrity_error(exc: IntegrityError) -> StorageError:
    """Wrap a SQLAlchemy IntegrityError into a typed StorageError.

    Reads the SQLSTATE (``sqlstate``/``pgcode``) and constraint name that
    asyncpg and psycopg expose on the DBAPI exception or its cause.

    Args:
        exc: The integrity error raised by SQLAlchemy

    Returns:
        The classified storage error
    """
    sqlstate: str | None = None
    constraint: str | None = None

    for err in _driver_error_chain(exc):
        sqlstate = sqlstate or getattr(err, "sqlstate", None) or getattr(err, "pgcode", None)
        constraint = constraint or getattr(err, "constraint_name", None)
        diag = getattr(err, "diag", None)
        if diag is not None:
            constraint = constraint or getattr(diag, "constraint_name", None)

    kind = _SQLSTATE_KINDS.get(sqlstate or "", StorageErrorKind.OTHER)
    return StorageError(kind, constraint)


@contextmanager
def storage_errors() -> Iterator[None]:
    """Re-raise integrity errors from the enclosed block as StorageError.

    Usage:
        with storage_errors():
            await session.flush()
    """
    try:
        yield
    except IntegrityError as exc:
        raise classify_integrity_error(exc) from exc
