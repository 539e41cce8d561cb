"""Retrieval configuration for CodeWhisper."""

from pydantic import BaseModel, Field

ONE_WEEK_SECONDS = 86400 * 7


class RetrievalConfig(BaseModel):
    """Knobs for vector search, symbol lookup and the repo-map cache."""

    top_k: int = Field(default=5, ge=1, le=100, description="Vector hits per query")
    symbol_limit: int = Field(default=10, ge=1, le=100, description="Max symbol lookups")
    min_token_length: int = Field(
        default=3, ge=1, description="Shorter query tokens are not treated as symbols"
    )
    repo_map_ttl_seconds: int = Field(
        default=ONE_WEEK_SECONDS, ge=60, description="Repo-map cache expiry"
    )
    read_file_max_chars: int = Field(
        default=6000, ge=200, description="read_file tool output budget"
    )
    list_files_limit: int = Field(
        default=100, ge=1, description="list_files tool output cap"
    )
