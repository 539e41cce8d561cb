"""DuckDB-backed stores sharing one serialized connection."""

from .connection_manager import DuckDBConnectionManager
from .duckdb_kv_cache import DuckDBKeyValueCache
from .duckdb_symbol_store import DuckDBSymbolStore
from .duckdb_vector_store import DuckDBVectorStore

__all__ = [
    "DuckDBConnectionManager",
    "DuckDBKeyValueCache",
    "DuckDBSymbolStore",
    "DuckDBVectorStore",
]
