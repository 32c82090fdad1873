"""DuckDB-backed CacheStore for cross-session survival. Same TTL semantics on read."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from trendboard.feeds.cache import CacheKey
from trendboard.models import CacheEntry
from trendboard.storage.db import get_connection, init_schema

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def _dump(item: Any) -> Any:
    dump = getattr(item, "model_dump", None)
    return dump(mode="json") if dump is not None else item


class DuckDBCache:
    """Stores normalized items as JSON; the adapter rebuilds models on read."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = db_path
        self._conn: DuckDBPyConnection | None = None

    def _get_conn(self) -> DuckDBPyConnection:
        if self._conn is None:
            self._conn = get_connection(self.db_path)
            init_schema(self._conn)
        return self._conn

    def get(self, key: CacheKey) -> CacheEntry | None:
        row = self._get_conn().execute(
            "SELECT payload, fetched_at FROM feed_cache WHERE cache_key = ?",
            [key.serialize()],
        ).fetchone()
        if not row:
            return None
        payload = json.loads(row[0]) if isinstance(row[0], str) else row[0]
        if not isinstance(payload, list):
            return None
        return CacheEntry(payload=payload, fetched_at_millis=int(row[1]))

    def set(self, key: CacheKey, entry: CacheEntry) -> None:
        payload_json = json.dumps([_dump(i) for i in entry.payload])
        self._get_conn().execute(
            """
            INSERT INTO feed_cache (cache_key, source, payload, fetched_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (cache_key) DO UPDATE SET
                source = excluded.source,
                payload = excluded.payload,
                fetched_at = excluded.fetched_at
            """,
            [key.serialize(), key.source, payload_json, entry.fetched_at_millis],
        )

    def clear(self, source: str | None = None) -> int:
        conn = self._get_conn()
        if source is None:
            n = conn.execute("SELECT COUNT(*) FROM feed_cache").fetchone()[0]
            conn.execute("DELETE FROM feed_cache")
        else:
            n = conn.execute("SELECT COUNT(*) FROM feed_cache WHERE source = ?", [source]).fetchone()[0]
            conn.execute("DELETE FROM feed_cache WHERE source = ?", [source])
        return int(n)

    def stats(self) -> list[dict[str, Any]]:
        rows = self._get_conn().execute(
            "SELECT source, COUNT(*) AS entries, MAX(fetched_at) AS newest FROM feed_cache GROUP BY source ORDER BY source"
        ).fetchall()
        return [{"source": r[0], "entries": r[1], "newest": r[2]} for r in rows]

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
