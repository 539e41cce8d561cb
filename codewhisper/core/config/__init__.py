"""Configuration models for CodeWhisper."""

from .agent_config import AgentConfig
from .config import Config, get_config, reset_config, set_config
from .database_config import DatabaseConfig
from .embedding_config import EmbeddingConfig
from .indexing_config import IndexingConfig
from .llm_config import LLMConfig
from .retrieval_config import RetrievalConfig

__all__ = [
    "AgentConfig",
    "Config",
    "DatabaseConfig",
    "EmbeddingConfig",
    "IndexingConfig",
    "LLMConfig",
    "RetrievalConfig",
    "get_config",
    "reset_config",
    "set_config",
]
