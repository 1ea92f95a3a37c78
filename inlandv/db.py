# inlandv/db.py
# Database abstraction layer supporting PostgreSQL (production) and SQLite (dev)

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path as FsPath
from typing import Any, Dict, Generator, Iterable, List, Optional, Sequence, Union
from urllib.parse import urlparse

from sqlalchemy import create_engine, exc as sa_exc, pool, text
from sqlalchemy.engine import Connection, Engine

from inlandv import config
from inlandv.config import DATABASE_URL, IS_POSTGRES, IS_SQLITE

# Driver errors handlers catch, for either backend
DatabaseError = (sqlite3.Error, sa_exc.SQLAlchemyError)
IntegrityError = (sqlite3.IntegrityError, sa_exc.IntegrityError)

DbConnection = Union[sqlite3.Connection, Connection]

# Global engine (SQLAlchemy) or None for SQLite
_engine: Optional[Engine] = None


def init_engine() -> None:
    """Initialize SQLAlchemy engine for PostgreSQL if DATABASE_URL is set."""
    global _engine

    if not IS_POSTGRES:
        _engine = None
        print("[DB] Using SQLite (local dev mode)")
        return

    parsed = urlparse(DATABASE_URL)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Invalid DATABASE_URL: {DATABASE_URL[:20]}...")

    # SQLAlchemy only knows the postgresql:// scheme
    url = DATABASE_URL
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]

    _engine = create_engine(
        url,
        poolclass=pool.QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        echo=False,
    )

    print(f"[DB] Using PostgreSQL ({parsed.hostname})")


def sqlite_path() -> str:
    """Absolute path of the SQLite database file (relative paths sit next to the package)."""
    return str(FsPath(__file__).resolve().parent / config.DATABASE_PATH)


@contextmanager
def get_db_connection() -> Generator[DbConnection, None, None]:
    """
    Context manager for database connections.
    Returns sqlite3.Connection for SQLite or sqlalchemy.Connection for Postgres.
    """
    if IS_POSTGRES:
        if _engine is None:
            init_engine()

        with _engine.connect() as conn:
            yield conn
    else:
        conn = sqlite3.connect(sqlite_path(), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()


def get_db() -> Generator[DbConnection, None, None]:
    """FastAPI dependency yielding a connection for the lifetime of a request."""
    with get_db_connection() as conn:
        yield conn


def execute_query(conn: DbConnection, query: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """
    Execute a query with named parameters.

    Queries use :name placeholders, which both sqlite3 and SQLAlchemy's text()
    accept, so one SQL string serves both backends.

    Returns:
        Cursor (SQLite) or CursorResult (PostgreSQL)
    """
    if IS_POSTGRES:
        return conn.execute(text(query), params or {})
    return conn.execute(query, params or {})


def fetch_all(conn: DbConnection, query: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    result = execute_query(conn, query, params)
    if IS_POSTGRES:
        return [dict(row) for row in result.mappings().all()]
    return [dict(row) for row in result.fetchall()]


def fetch_one(conn: DbConnection, query: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    result = execute_query(conn, query, params)
    if IS_POSTGRES:
        row = result.mappings().first()
    else:
        row = result.fetchone()
    return dict(row) if row is not None else None


def fetch_value(conn: DbConnection, query: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """First column of the first row, or None."""
    row = fetch_one(conn, query, params)
    if not row:
        return None
    return next(iter(row.values()))


@contextmanager
def savepoint(conn: DbConnection, name: str = "sp") -> Generator[DbConnection, None, None]:
    """
    Run a block inside a SAVEPOINT. On error only the block is rolled back and
    the exception re-raised; the surrounding transaction stays usable.
    """
    if IS_POSTGRES:
        with conn.begin_nested():
            yield conn
        return

    conn.execute(f"SAVEPOINT {name}")
    try:
        yield conn
    except Exception:
        conn.execute(f"ROLLBACK TO SAVEPOINT {name}")
        conn.execute(f"RELEASE SAVEPOINT {name}")
        raise
    conn.execute(f"RELEASE SAVEPOINT {name}")


def commit(conn: DbConnection) -> None:
    conn.commit()


def rollback(conn: DbConnection) -> None:
    conn.rollback()


def ping() -> bool:
    """Return True when a trivial query succeeds."""
    try:
        with get_db_connection() as conn:
            execute_query(conn, "SELECT 1")
        return True
    except DatabaseError as e:
        print(f"[DB] Health check failed: {e}")
        return False


def is_unique_violation(error: Exception) -> bool:
    message = str(error).lower()
    return "unique" in message or "duplicate key" in message


# ---------------------------------------------------------
# Dialect fragments
# ---------------------------------------------------------
def ilike(column: str, placeholder: str) -> str:
    """Case-insensitive LIKE (SQLite's LIKE is already case-insensitive for ASCII)."""
    if IS_POSTGRES:
        return f"{column} ILIKE {placeholder}"
    return f"{column} LIKE {placeholder}"


def json_array_contains_any(column: str, placeholders: Sequence[str]) -> str:
    """EXISTS test: does the JSON text array in `column` share an element with the bound values?"""
    in_list = ", ".join(placeholders)
    if IS_POSTGRES:
        return (
            f"EXISTS (SELECT 1 FROM jsonb_array_elements_text(CAST(COALESCE({column}, '[]') AS JSONB)) "
            f"AS elem(value) WHERE elem.value IN ({in_list}))"
        )
    return (
        f"EXISTS (SELECT 1 FROM json_each(COALESCE({column}, '[]')) "
        f"WHERE json_each.value IN ({in_list}))"
    )


# ---------------------------------------------------------
# Row decoding
# ---------------------------------------------------------
def encode_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def decode_json(value: Any) -> Any:
    """Decode JSON text; values that are not JSON text are returned unchanged."""
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def decode_row(
    row: Optional[Dict[str, Any]],
    json_columns: Iterable[str] = (),
    bool_columns: Iterable[str] = (),
) -> Optional[Dict[str, Any]]:
    """Decode JSON text columns and SQLite 0/1 flags in a row dict (in place)."""
    if row is None:
        return None
    for col in json_columns:
        if col in row:
            row[col] = decode_json(row[col])
    if IS_SQLITE:
        for col in bool_columns:
            if col in row and row[col] is not None:
                row[col] = bool(row[col])
    return row


# Initialize engine on module import if Postgres mode
if IS_POSTGRES and _engine is None:
    init_engine()
