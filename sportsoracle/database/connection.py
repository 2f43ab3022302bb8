"""Database connection management.

Simple SQLite connection handling with schema initialization.
"""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sportsoracle.config import get_db_path

# Schema file location
SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Seconds to wait on a locked database before raising
BUSY_TIMEOUT = 5.0


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Get a database connection.

    Args:
        db_path: Path to database file. Uses the configured path if not specified.

    Returns:
        SQLite connection with row factory set to sqlite3.Row
    """
    path = Path(db_path) if db_path else get_db_path()
    conn = sqlite3.connect(path, timeout=BUSY_TIMEOUT)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db(db_path: Path | str | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections.

    Usage:
        with get_db() as conn:
            row = conn.execute("SELECT data FROM api_cache WHERE key = ?", (key,)).fetchone()
    """
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Path | str | None = None) -> None:
    """Initialize database with schema.

    Creates tables if they don't exist. Safe to call multiple times.
    Switches the database to WAL mode so readers never block the writer.
    """
    schema_sql = SCHEMA_PATH.read_text()

    with get_db(db_path) as conn:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.executescript(schema_sql)


def reset_db(db_path: Path | str | None = None) -> None:
    """Reset database - deletes the file and reinitializes.

    WARNING: This deletes all cached data!
    """
    path = Path(db_path) if db_path else get_db_path()

    if path.exists():
        path.unlink()

    init_db(path)
