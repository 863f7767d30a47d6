"""
Constraint-violation errors raised by the student service.

Database drivers report integrity failures differently: PostgreSQL sets a
SQLSTATE plus diagnostics naming the constraint or column, SQLite only sends
a message such as ``UNIQUE constraint failed: students.username``.
translate_integrity_error() folds both into the two error kinds callers
handle.
"""

import re
from typing import Optional

from sqlalchemy.exc import IntegrityError

PG_UNIQUE_VIOLATION = "23505"
PG_NOT_NULL_VIOLATION = "23502"

# PostgreSQL's default unique constraint name is <table>_<column>_key
_PG_UNIQUE_KEY = re.compile(r"^students_(?P<column>\w+)_key$")
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: students\.(?P<column>\w+)")
_SQLITE_NOT_NULL = re.compile(r"NOT NULL constraint failed: students\.(?P<column>\w+)")


class StudentRegistryError(Exception):
    """Base class for errors surfaced to callers writing student records."""


class UniquenessViolation(StudentRegistryError):
    """A write would duplicate a value in a unique column."""

    def __init__(self, column: Optional[str] = None):
        self.column = column
        super().__init__("{} already exists".format(column or "value"))


class NotNullViolation(StudentRegistryError):
    """A required column was missing on write."""

    def __init__(self, column: Optional[str] = None):
        self.column = column
        super().__init__("{} is required".format(column or "field"))


def _sqlstate(orig) -> Optional[str]:
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def translate_integrity_error(exc: IntegrityError) -> Exception:
    """
    Map an IntegrityError onto UniquenessViolation / NotNullViolation.

    Returns the original exception unchanged when it is some other kind of
    integrity failure (foreign key, check constraint, ...).
    """
    orig = exc.orig
    code = _sqlstate(orig)
    diag = getattr(orig, "diag", None)

    if code == PG_UNIQUE_VIOLATION:
        constraint = getattr(diag, "constraint_name", None) or ""
        match = _PG_UNIQUE_KEY.match(constraint)
        return UniquenessViolation(match.group("column") if match else None)
    if code == PG_NOT_NULL_VIOLATION:
        return NotNullViolation(getattr(diag, "column_name", None))

    message = str(orig)
    match = _SQLITE_UNIQUE.search(message)
    if match:
        return UniquenessViolation(match.group("column"))
    match = _SQLITE_NOT_NULL.search(message)
    if match:
        return NotNullViolation(match.group("column"))
    return exc
