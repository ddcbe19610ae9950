"""Tests for classifying driver integrity errors."""

import pytest
from sqlalchemy.exc import IntegrityError

from roster.core.database import StorageError, StorageErrorKind, classify_integrity_error, storage_errors


class AsyncpgStyleError(Exception):
    """Mimics the attributes asyncpg exposes on constraint violations."""

    def __init__(self, sqlstate: str, constraint_name: str | None = None) -> None:
        super().__init__(sqlstate)
        self.sqlstate = sqlstate
        self.constraint_name = constraint_name


class Diag:
    def __init__(self, constraint_name: str) -> None:
        self.constraint_name = constraint_name


class PsycopgStyleError(Exception):
    """Mimics psycopg's ``pgcode`` and ``diag``."""

    def __init__(self, pgcode: str, constraint_name: str) -> None:
        super().__init__(pgcode)
        self.pgcode = pgcode
        self.diag = Diag(constraint_name)


def integrity_error(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, orig)


class TestClassifyIntegrityError:
    @pytest.mark.parametrize(
        "sqlstate,kind",
        [
            ("23505", StorageErrorKind.UNIQUE_VIOLATION),
            ("23503", StorageErrorKind.FOREIGN_KEY_VIOLATION),
            ("23502", StorageErrorKind.NOT_NULL_VIOLATION),
            ("23514", StorageErrorKind.CHECK_VIOLATION),
            ("99999", StorageErrorKind.OTHER),
        ],
    )
    def test_kind_from_sqlstate(self, sqlstate, kind):
        err = classify_integrity_error(integrity_error(AsyncpgStyleError(sqlstate, "uq_users_email")))

        assert err.kind is kind
        assert err.constraint == "uq_users_email"

    def test_reads_native_cause(self):
        """SQLAlchemy's asyncpg adapter wraps the native error as __cause__."""
        adapted = Exception("adapted")
        adapted.__cause__ = AsyncpgStyleError("23503", "fk_users_company_id_companies")

        err = classify_integrity_error(integrity_error(adapted))

        assert err.kind is StorageErrorKind.FOREIGN_KEY_VIOLATION
        assert err.constraint == "fk_users_company_id_companies"

    def test_reads_psycopg_diag(self):
        err = classify_integrity_error(integrity_error(PsycopgStyleError("23505", "uq_teams_name")))

        assert err.is_unique("uq_teams_name")

    def test_unknown_driver_error(self):
        err = classify_integrity_error(integrity_error(Exception("boom")))

        assert err.kind is StorageErrorKind.OTHER
        assert err.constraint is None


class TestStorageError:
    def test_is_unique(self):
        err = StorageError(StorageErrorKind.UNIQUE_VIOLATION, "uq_users_slug")

        assert err.is_unique()
        assert err.is_unique("uq_users_slug")
        assert not err.is_unique("uq_users_email")

    def test_other_kinds_are_not_unique(self):
        assert not StorageError(StorageErrorKind.FOREIGN_KEY_VIOLATION, "fk").is_unique()

    def test_storage_errors_context_manager(self):
        with pytest.raises(StorageError) as exc_info, storage_errors():
            raise integrity_error(AsyncpgStyleError("23505", "uq_companies_name"))

        assert exc_info.value.is_unique("uq_companies_name")
        assert isinstance(exc_info.value.__cause__, IntegrityError)

    def test_storage_errors_passes_other_exceptions(self):
        with pytest.raises(ValueError), storage_errors():
            raise ValueError("not a database error")
