"""DuckDB connection and schema management for CodeWhisper.

All database operations are serialized onto a single worker thread that owns
the connection, so the async services can share one DuckDB database without
cursor juggling.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, TypeVar

# Import numpy before DuckDB starts working from another thread
# See: https://duckdb.org/docs/stable/clients/python/known_issues.html
import numpy  # noqa: F401

import duckdb
from loguru import logger

T = TypeVar("T")

_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS vectors (
        id VARCHAR PRIMARY KEY,
        session_id VARCHAR NOT NULL,
        file_path VARCHAR NOT NULL,
        symbol_name VARCHAR,
        kind VARCHAR,
        line_start INTEGER,
        line_end INTEGER,
        embedding FLOAT[] NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS symbols (
        id VARCHAR PRIMARY KEY,
        session_id VARCHAR NOT NULL,
        file_path VARCHAR NOT NULL,
        name VARCHAR NOT NULL,
        kind VARCHAR NOT NULL,
        signature VARCHAR,
        line_start INTEGER,
        line_end INTEGER,
        parent VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS code_chunks (
        session_id VARCHAR NOT NULL,
        id VARCHAR NOT NULL,
        file_path VARCHAR NOT NULL,
        symbol_name VARCHAR,
        kind VARCHAR NOT NULL,
        line_start INTEGER,
        line_end INTEGER,
        context VARCHAR,
        content VARCHAR NOT NULL,
        PRIMARY KEY (session_id, id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS kv_cache (
        key VARCHAR PRIMARY KEY,
        value VARCHAR NOT NULL,
        expires_at DOUBLE
    )
    """,
]


class DuckDBConnectionManager:
    """Owns the DuckDB connection and the executor thread that uses it."""

    def __init__(self, db_path: Path | str):
        """Initialize DuckDB connection manager.

        Args:
            db_path: Path to DuckDB database file or ":memory:" for in-memory database
        """
        self._db_path = db_path
        self._connection: Any | None = None
        self._executor: ThreadPoolExecutor | None = None

    @property
    def db_path(self) -> Path | str:
        return self._db_path

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def connect(self) -> None:
        """Open the connection on the executor thread and create the schema."""
        if self.is_connected:
            return

        logger.info(f"[Database] Connecting to DuckDB database: {self._db_path}")

        if isinstance(self._db_path, Path):
            self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="codewhisper-db")
        try:
            self._connection = self._executor.submit(self._open).result()
        except Exception as e:
            logger.error(f"[Database] DuckDB initialization failed: {e}")
            self._executor.shutdown(wait=False)
            self._executor = None
            raise

    def _open(self) -> Any:
        connection = duckdb.connect(str(self._db_path))
        for statement in _SCHEMA:
            connection.execute(statement)
        logger.debug("[Database] Schema ready")
        return connection

    def disconnect(self) -> None:
        if self._executor is None:
            return
        connection = self._connection
        if connection is not None:
            self._executor.submit(connection.close).result()
        self._executor.shutdown(wait=True)
        self._connection = None
        self._executor = None
        logger.info("[Database] DuckDB connection closed")

    async def run_sync(self, operation: Callable[[Any], T]) -> T:
        """Run ``operation(connection)`` on the database thread."""
        if self._executor is None or self._connection is None:
            raise RuntimeError("No database connection")
        connection = self._connection
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, operation, connection)

    async def execute(self, sql: str, params: list[Any] | None = None) -> None:
        await self.run_sync(lambda conn: conn.execute(sql, params or []))

    async def executemany(self, sql: str, rows: list[list[Any]]) -> None:
        if not rows:
            return
        await self.run_sync(lambda conn: conn.executemany(sql, rows))

    async def fetch_all(self, sql: str, params: list[Any] | None = None) -> list[tuple]:
        return await self.run_sync(lambda conn: conn.execute(sql, params or []).fetchall())
