"""Vector index on DuckDB using list_cosine_similarity."""

from typing import Any

import numpy as np
from loguru import logger

from codewhisper.core.models import VectorMatch, VectorRecord

from .connection_manager import DuckDBConnectionManager

# metadata key -> column; anything else in a filter is rejected
_FILTER_COLUMNS = {
    "sessionId": "session_id",
    "filePath": "file_path",
    "symbolName": "symbol_name",
    "kind": "kind",
}


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class DuckDBVectorStore:
    """Session-filtered vector upsert and nearest-neighbour query."""

    def __init__(self, connection_manager: DuckDBConnectionManager):
        self._connection_manager = connection_manager

    async def upsert(self, records: list[VectorRecord]) -> None:
        if not records:
            return

        rows = []
        for record in records:
            meta = record.metadata
            rows.append(
                [
                    record.id,
                    meta["sessionId"],
                    meta["filePath"],
                    meta.get("symbolName"),
                    meta.get("kind"),
                    meta.get("lineStart"),
                    meta.get("lineEnd"),
                    [float(x) for x in record.embedding],
                ]
            )

        try:
            await self._connection_manager.executemany(
                """
                INSERT OR REPLACE INTO vectors
                    (id, session_id, file_path, symbol_name, kind, line_start, line_end, embedding)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        except Exception as e:
            logger.error(f"[VectorStore] Failed to upsert {len(rows)} vectors: {e}")
            raise

    async def query(
        self, vector: list[float], top_k: int, filter: dict[str, Any]
    ) -> list[VectorMatch]:
        if not filter.get("sessionId"):
            raise ValueError("Vector queries must be filtered by sessionId")

        unknown = set(filter) - set(_FILTER_COLUMNS)
        if unknown:
            raise ValueError(f"Unsupported vector filter keys: {sorted(unknown)}")

        query_vec = np.asarray(vector, dtype=np.float32)
        if query_vec.size == 0 or not np.isfinite(query_vec).all() or not np.any(query_vec):
            return []

        where = ["len(embedding) = ?"]
        params: list[Any] = [query_vec.tolist(), int(query_vec.size)]
        for key, value in filter.items():
            where.append(f"{_FILTER_COLUMNS[key]} = ?")
            params.append(value)
        params.append(top_k)

        rows = await self._connection_manager.fetch_all(
            f"""
            SELECT id, session_id, file_path, symbol_name, kind, line_start, line_end,
                   list_cosine_similarity(embedding, ?::FLOAT[]) AS score
            FROM vectors
            WHERE {" AND ".join(where)}
            ORDER BY score DESC
            LIMIT ?
            """,
            params,
        )

        return [
            VectorMatch(
                id=row[0],
                score=float(row[7]) if row[7] is not None else 0.0,
                metadata={
                    "sessionId": row[1],
                    "filePath": row[2],
                    "symbolName": row[3],
                    "kind": row[4],
                    "lineStart": row[5],
                    "lineEnd": row[6],
                },
            )
            for row in rows
        ]

    async def delete_files(self, session_id: str, file_paths: list[str]) -> None:
        if not file_paths:
            return
        await self._connection_manager.execute(
            f"DELETE FROM vectors WHERE session_id = ? AND file_path IN ({_placeholders(len(file_paths))})",
            [session_id, *file_paths],
        )

    async def delete_session(self, session_id: str) -> None:
        await self._connection_manager.execute(
            "DELETE FROM vectors WHERE session_id = ?", [session_id]
        )
