"""SQLite-backed TTL cache for upstream API responses.

Entries are never deleted on read. An expired entry is returned flagged as
stale so callers can serve it when the upstream is down; expired rows are
removed only by an explicit prune().
"""

import json
import logging
import sqlite3
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sportsoracle.database.connection import get_db, init_db

logger = logging.getLogger(__name__)


def make_cache_key(*parts: Any) -> str:
    """Build a namespaced cache key: <kind>:<sport>:<league>[:<extra>...].

    None parts are skipped so optional parameters don't leave empty segments.
    """
    return ":".join(str(p) for p in parts if p is not None)


@dataclass(frozen=True)
class CachedValue:
    """A cache read result."""

    value: Any
    is_stale: bool


class PersistentTTLCache:
    """TTL cache persisted in the api_cache table.

    Every operation opens its own short-lived connection, so concurrent
    coroutines and threads can interleave reads and writes freely.

    Args:
        db_path: SQLite file path (configured default if None)
        clock: Returns current epoch seconds; injectable for tests
    """

    def __init__(
        self,
        db_path: Path | str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._db_path = db_path
        self._clock = clock
        init_db(db_path)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, key: str) -> CachedValue | None:
        """Get a cached value, fresh or stale. None if absent or unreadable."""
        try:
            with get_db(self._db_path) as conn:
                row = conn.execute(
                    "SELECT data, timestamp, expiry FROM api_cache WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning("[CACHE] Read failed for %s: %s", key, e)
            return None

        if row is None:
            return None

        try:
            value = json.loads(row["data"])
        except (TypeError, ValueError) as e:
            logger.error("[CACHE] Corrupt payload for %s: %s", key, e)
            return None

        expiry = row["expiry"]
        is_stale = expiry is None or self._now_ms() > expiry
        return CachedValue(value=value, is_stale=is_stale)

    def set(self, key: str, value: Any, ttl_seconds: int = 60) -> None:
        """Upsert a value with a TTL.

        Failures are logged, never raised: a cache write must not break the
        request that produced the value.
        """
        now = self._now_ms()
        expiry = now + ttl_seconds * 1000
        try:
            payload = json.dumps(value)
            with get_db(self._db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO api_cache (key, data, timestamp, expiry)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        data = excluded.data,
                        timestamp = excluded.timestamp,
                        expiry = excluded.expiry
                    """,
                    (key, payload, now, expiry),
                )
        except (TypeError, ValueError, sqlite3.Error) as e:
            logger.error("[CACHE] Write failed for %s: %s", key, e)

    def delete(self, key: str) -> None:
        """Remove a single entry."""
        with get_db(self._db_path) as conn:
            conn.execute("DELETE FROM api_cache WHERE key = ?", (key,))

    def prune(self) -> int:
        """Delete entries whose expiry has passed.

        A single DELETE statement: SQLite evaluates the expiry predicate
        inside the write transaction, so an entry refreshed concurrently
        carries its new expiry and survives.

        Returns:
            Number of rows removed
        """
        with get_db(self._db_path) as conn:
            cursor = conn.execute("DELETE FROM api_cache WHERE expiry < ?", (self._now_ms(),))
            removed = cursor.rowcount
        if removed:
            logger.info("[CACHE] Pruned %d expired entries", removed)
        return removed

    def clear(self) -> None:
        """Delete every entry."""
        with get_db(self._db_path) as conn:
            conn.execute("DELETE FROM api_cache")

    def stats(self) -> dict:
        """Get cache statistics."""
        now = self._now_ms()
        with get_db(self._db_path) as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(CASE WHEN expiry >= ? THEN 1 ELSE 0 END), 0) AS fresh
                FROM api_cache
                """,
                (now,),
            ).fetchone()
        total = row["total"]
        fresh = row["fresh"]
        return {"total_entries": total, "fresh_entries": fresh, "stale_entries": total - fresh}
