"""Key/value cache with TTL stored in DuckDB."""

import time

from .connection_manager import DuckDBConnectionManager


class DuckDBKeyValueCache:
    """``get``/``put`` with an optional expiration TTL in seconds.

    Expired entries read as missing and are removed lazily on access.
    """

    def __init__(self, connection_manager: DuckDBConnectionManager, clock=time.time):
        self._connection_manager = connection_manager
        self._clock = clock

    async def get(self, key: str) -> str | None:
        rows = await self._connection_manager.fetch_all(
            "SELECT value, expires_at FROM kv_cache WHERE key = ?", [key]
        )
        if not rows:
            return None
        value, expires_at = rows[0]
        if expires_at is not None and expires_at <= self._clock():
            await self.delete(key)
            return None
        return value

    async def put(self, key: str, value: str, expiration_ttl: int | None = None) -> None:
        expires_at = self._clock() + expiration_ttl if expiration_ttl else None
        await self._connection_manager.execute(
            "INSERT OR REPLACE INTO kv_cache (key, value, expires_at) VALUES (?, ?, ?)",
            [key, value, expires_at],
        )

    async def delete(self, key: str) -> None:
        await self._connection_manager.execute("DELETE FROM kv_cache WHERE key = ?", [key])
