"""Database configuration for CodeWhisper.

All three stores (vectors, symbols/chunks, repo-map cache) live in one DuckDB
database in separate tables.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    """DuckDB location settings."""

    path: Path | str = Field(
        default=":memory:",
        description="DuckDB database file, or ':memory:' for an in-process database",
    )

    @field_validator("path")
    def validate_path(cls, v: Path | str) -> Path | str:  # noqa: N805
        if isinstance(v, str) and v != ":memory:":
            return Path(v).expanduser()
        return v

    @property
    def is_memory(self) -> bool:
        return self.path == ":memory:"
