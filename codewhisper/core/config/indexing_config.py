"""Indexing configuration for CodeWhisper.

Controls debouncing of file events, embedding batching and which files the
local watcher forwards.
"""

from pydantic import BaseModel, Field


def _get_default_include_patterns() -> list[str]:
    from codewhisper.core.types import Language

    return sorted(f"**/*{ext}" for ext in Language.get_all_extensions())


class IndexingConfig(BaseModel):
    """Configuration for file indexing behavior."""

    debounce_seconds: float = Field(
        default=2.0, gt=0, description="Quiet period before dirty files are reindexed"
    )
    embedding_batch_size: int = Field(
        default=20, ge=1, le=512, description="Chunks per embedding request"
    )
    embed_text_max_chars: int = Field(
        default=2000, ge=100, description="Characters of context+content sent for embedding"
    )
    max_file_size_kb: int = Field(
        default=512, ge=1, description="Watcher skips files larger than this"
    )

    include: list[str] = Field(
        default_factory=_get_default_include_patterns,
        description="Glob patterns for files to watch (all supported languages)",
    )
    exclude: list[str] = Field(
        default_factory=lambda: [
            "**/node_modules/**",
            "**/.git/**",
            "**/__pycache__/**",
            "**/venv/**",
            "**/.venv/**",
            "**/dist/**",
            "**/build/**",
            "**/target/**",
            "**/.next/**",
            "**/.cache/**",
            "**/*.min.js",
            "**/*.bundle.js",
            "**/*.d.ts",
        ],
        description="Glob patterns to exclude",
    )
