"""Database error helpers."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

# PostgreSQL SQLSTATE for unique_violation.
UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError indicates a unique-constraint conflict.

    Covers asyncpg (sqlstate), psycopg (pgcode) and SQLite (message text).
    """
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = str(original or error).lower()
    return any(
        marker in message
        for marker in ("duplicate key", "unique constraint", "unique_violation")
    )


__all__ = ["is_unique_violation"]
