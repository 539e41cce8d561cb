"""Relational symbol and chunk-content storage in DuckDB."""

from loguru import logger

from codewhisper.core.models import CodeChunk, SymbolInfo, make_symbol_row_id
from codewhisper.core.types import ChunkKind

from .connection_manager import DuckDBConnectionManager

_SYMBOL_COLUMNS = "name, kind, signature, file_path, line_start, line_end, parent"
_CHUNK_COLUMNS = "id, file_path, symbol_name, kind, content, line_start, line_end, context"


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


def _row_to_symbol(row: tuple) -> SymbolInfo:
    return SymbolInfo(
        name=row[0],
        kind=row[1],
        signature=row[2] or "",
        file_path=row[3],
        line_start=row[4],
        line_end=row[5],
        parent=row[6],
    )


def _row_to_chunk(row: tuple) -> CodeChunk:
    return CodeChunk(
        id=row[0],
        file_path=row[1],
        symbol_name=row[2],
        kind=ChunkKind(row[3]),
        content=row[4],
        line_start=row[5],
        line_end=row[6],
        context=row[7] or "",
    )


class DuckDBSymbolStore:
    """Symbols and raw chunk bodies, partitioned by session.

    Replacement is delete-then-insert per ``(session_id, file_path)``; readers
    racing a replacement may briefly see a file with no rows.
    """

    def __init__(self, connection_manager: DuckDBConnectionManager):
        self._connection_manager = connection_manager

    async def replace_symbols(
        self, session_id: str, file_paths: list[str], symbols: list[SymbolInfo]
    ) -> None:
        await self._delete_rows("symbols", session_id, file_paths)

        rows = [
            [
                make_symbol_row_id(session_id, s.file_path, s.name, s.line_start),
                session_id,
                s.file_path,
                s.name,
                s.kind,
                s.signature,
                s.line_start,
                s.line_end,
                s.parent,
            ]
            for s in symbols
        ]
        try:
            await self._connection_manager.executemany(
                """
                INSERT OR REPLACE INTO symbols
                    (id, session_id, file_path, name, kind, signature, line_start, line_end, parent)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        except Exception as e:
            logger.error(f"[SymbolStore] Failed to insert {len(rows)} symbols: {e}")
            raise

    async def replace_chunks(
        self, session_id: str, file_paths: list[str], chunks: list[CodeChunk]
    ) -> None:
        await self._delete_rows("code_chunks", session_id, file_paths)

        rows = [
            [
                session_id,
                c.id,
                c.file_path,
                c.symbol_name,
                c.kind.value,
                c.line_start,
                c.line_end,
                c.context,
                c.content,
            ]
            for c in chunks
        ]
        try:
            await self._connection_manager.executemany(
                """
                INSERT OR REPLACE INTO code_chunks
                    (session_id, id, file_path, symbol_name, kind, line_start, line_end, context, content)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        except Exception as e:
            logger.error(f"[SymbolStore] Failed to insert {len(rows)} chunks: {e}")
            raise

    async def delete_files(self, session_id: str, file_paths: list[str]) -> None:
        await self._delete_rows("symbols", session_id, file_paths)
        await self._delete_rows("code_chunks", session_id, file_paths)

    async def _delete_rows(self, table: str, session_id: str, file_paths: list[str]) -> None:
        if not file_paths:
            return
        await self._connection_manager.execute(
            f"DELETE FROM {table} WHERE session_id = ? AND file_path IN ({_placeholders(len(file_paths))})",
            [session_id, *file_paths],
        )

    async def find_symbols(
        self, session_id: str, names: list[str], limit: int
    ) -> list[SymbolInfo]:
        """Case-insensitive exact-name lookup."""
        if not names:
            return []
        lowered = sorted({n.lower() for n in names})
        rows = await self._connection_manager.fetch_all(
            f"""
            SELECT {_SYMBOL_COLUMNS} FROM symbols
            WHERE session_id = ? AND lower(name) IN ({_placeholders(len(lowered))})
            ORDER BY file_path, line_start
            LIMIT ?
            """,
            [session_id, *lowered, limit],
        )
        return [_row_to_symbol(row) for row in rows]

    async def get_all_symbols(self, session_id: str) -> list[SymbolInfo]:
        rows = await self._connection_manager.fetch_all(
            f"SELECT {_SYMBOL_COLUMNS} FROM symbols WHERE session_id = ? ORDER BY file_path, line_start",
            [session_id],
        )
        return [_row_to_symbol(row) for row in rows]

    async def get_chunks(self, session_id: str, chunk_ids: list[str]) -> dict[str, CodeChunk]:
        if not chunk_ids:
            return {}
        rows = await self._connection_manager.fetch_all(
            f"""
            SELECT {_CHUNK_COLUMNS} FROM code_chunks
            WHERE session_id = ? AND id IN ({_placeholders(len(chunk_ids))})
            """,
            [session_id, *chunk_ids],
        )
        return {row[0]: _row_to_chunk(row) for row in rows}

    async def get_file_chunks(self, session_id: str, file_path: str) -> list[CodeChunk]:
        rows = await self._connection_manager.fetch_all(
            f"""
            SELECT {_CHUNK_COLUMNS} FROM code_chunks
            WHERE session_id = ? AND file_path = ?
            ORDER BY line_start, id
            """,
            [session_id, file_path],
        )
        return [_row_to_chunk(row) for row in rows]

    async def list_file_paths(self, session_id: str) -> list[str]:
        rows = await self._connection_manager.fetch_all(
            """
            SELECT file_path FROM code_chunks WHERE session_id = ?
            UNION
            SELECT file_path FROM symbols WHERE session_id = ?
            ORDER BY file_path
            """,
            [session_id, session_id],
        )
        return [row[0] for row in rows]

    async def clear_session(self, session_id: str) -> None:
        await self._connection_manager.execute("DELETE FROM symbols WHERE session_id = ?", [session_id])
        await self._connection_manager.execute(
            "DELETE FROM code_chunks WHERE session_id = ?", [session_id]
        )
