"""SQLite archive of case-status queries.

Each completed request appends one row holding the query parameters, the
outcome and the serialised result. Rows are never updated.
"""
from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable, List, Optional

from . import config
from .error_codes import PersistenceFailure
from .utils import utc_now

DB_PATH: Path = config.DB_PATH


def get_connection() -> sqlite3.Connection:
    """Return a SQLite connection to the project database.

    The parent directory is created if missing and ``check_same_thread`` is
    disabled because the result sink writes from a background thread.
    """

    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def initialize_schema() -> None:
    """Create the tables if they do not yet exist. Safe to call repeatedly."""

    statements: Iterable[str] = (
        """
        CREATE TABLE IF NOT EXISTS queries (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            case_type     TEXT NOT NULL,
            case_number   TEXT NOT NULL,
            filing_year   TEXT NOT NULL,
            outcome       TEXT,
            error_code    TEXT,
            raw_response  TEXT NOT NULL,
            created_at    TEXT NOT NULL
        );
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_queries_created_at
            ON queries(created_at DESC);
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_queries_case
            ON queries(case_type, case_number, filing_year);
        """,
    )

    conn = get_connection()
    try:
        with conn:
            for statement in statements:
                conn.execute(statement)
    finally:
        conn.close()


def record_query(
    case_type: str,
    case_number: str,
    filing_year: str,
    raw_response: str,
    *,
    outcome: Optional[str] = None,
    error_code: Optional[str] = None,
) -> int:
    """Append one archived query and return its row id.

    Raises :class:`PersistenceFailure` when SQLite rejects the write.
    """

    conn = get_connection()
    try:
        with conn:
            cursor = conn.execute(
                """
                INSERT INTO queries (
                    case_type, case_number, filing_year,
                    outcome, error_code, raw_response, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    case_type,
                    case_number,
                    filing_year,
                    outcome,
                    error_code,
                    raw_response,
                    utc_now(),
                ),
            )
            return int(cursor.lastrowid)
    except sqlite3.Error as exc:
        raise PersistenceFailure(
            f"Could not archive query {case_type} {case_number}/{filing_year}: {exc}"
        ) from exc
    finally:
        conn.close()


def list_recent_queries(limit: int = 50) -> List[dict]:
    """Return the newest archived queries, newest first."""

    conn = get_connection()
    try:
        cursor = conn.execute(
            """
            SELECT id, case_type, case_number, filing_year, outcome,
                   error_code, raw_response, created_at
            FROM queries
            ORDER BY id DESC
            LIMIT ?
            """,
            (max(1, int(limit)),),
        )
        return [dict(row) for row in cursor.fetchall()]
    finally:
        conn.close()


__all__ = [
    "DB_PATH",
    "get_connection",
    "initialize_schema",
    "list_recent_queries",
    "record_query",
]
