"""Centralized configuration management for CodeWhisper.

This module provides a unified configuration system with clear precedence:
1. CLI arguments (highest priority)
2. Local .codewhisper.json in target directory (if present)
3. Config file (via --config path)
4. Environment variables
5. Default values (lowest priority)

Embedding and LLM sections are pydantic-settings models and additionally read
their own ``CODEWHISPER_EMBEDDING__*`` / ``CODEWHISPER_LLM_*`` variables for
any field not given explicitly.
"""

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .agent_config import AgentConfig
from .database_config import DatabaseConfig
from .embedding_config import EmbeddingConfig
from .indexing_config import IndexingConfig
from .llm_config import LLMConfig
from .retrieval_config import RetrievalConfig

LOCAL_CONFIG_NAME = ".codewhisper.json"

_TRUTHY = ("true", "1", "yes")


class Config(BaseModel):
    """Centralized configuration for CodeWhisper."""

    model_config = ConfigDict(validate_assignment=True)

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    indexing: IndexingConfig = Field(default_factory=IndexingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    debug: bool = Field(default=False)

    def __init__(
        self,
        config_file: Path | None = None,
        overrides: dict[str, Any] | None = None,
        target_dir: Path | None = None,
        **kwargs: Any,
    ):
        """Initialize configuration with hierarchical loading.

        Args:
            config_file: Optional path to configuration file (from --config)
            overrides: Optional dictionary of CLI overrides
            target_dir: Optional directory to check for .codewhisper.json
            **kwargs: Additional keyword arguments
        """
        config_data: dict[str, Any] = {}

        env_vars = self._load_env_vars()
        self._deep_merge(config_data, env_vars)

        if config_file and config_file.exists():
            self._deep_merge(config_data, self._read_json(config_file))

        if target_dir is not None:
            local_config_path = target_dir / LOCAL_CONFIG_NAME
            if local_config_path.exists():
                self._deep_merge(config_data, self._read_json(local_config_path))

        if overrides:
            self._deep_merge(config_data, overrides)

        if kwargs:
            self._deep_merge(config_data, kwargs)

        # BaseSettings sections are constructed directly so they still pick up
        # their env vars for fields the files did not set.
        if isinstance(config_data.get("embedding"), dict):
            config_data["embedding"] = EmbeddingConfig(**config_data["embedding"])
        if isinstance(config_data.get("llm"), dict):
            config_data["llm"] = LLMConfig(**config_data["llm"])

        super().__init__(**config_data)

    @staticmethod
    def _read_json(path: Path) -> dict[str, Any]:
        try:
            with open(path) as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Invalid JSON in config file {path}: {e}. "
                "Please check the file format and try again."
            ) from e

    @staticmethod
    def _load_env_vars() -> dict[str, Any]:
        """Load non-provider configuration from CODEWHISPER_* variables."""
        config: dict[str, Any] = {}

        if debug := os.getenv("CODEWHISPER_DEBUG"):
            config["debug"] = debug.lower() in _TRUTHY

        if db_path := os.getenv("CODEWHISPER_DATABASE__PATH"):
            config.setdefault("database", {})["path"] = db_path

        indexing_config: dict[str, Any] = {}
        if debounce := os.getenv("CODEWHISPER_INDEXING__DEBOUNCE_SECONDS"):
            indexing_config["debounce_seconds"] = float(debounce)
        if batch_size := os.getenv("CODEWHISPER_INDEXING__EMBEDDING_BATCH_SIZE"):
            indexing_config["embedding_batch_size"] = int(batch_size)
        if include := os.getenv("CODEWHISPER_INDEXING__INCLUDE"):
            indexing_config["include"] = include.split(",")
        if exclude := os.getenv("CODEWHISPER_INDEXING__EXCLUDE"):
            indexing_config["exclude"] = exclude.split(",")
        if indexing_config:
            config["indexing"] = indexing_config

        retrieval_config: dict[str, Any] = {}
        if top_k := os.getenv("CODEWHISPER_RETRIEVAL__TOP_K"):
            retrieval_config["top_k"] = int(top_k)
        if ttl := os.getenv("CODEWHISPER_RETRIEVAL__REPO_MAP_TTL_SECONDS"):
            retrieval_config["repo_map_ttl_seconds"] = int(ttl)
        if retrieval_config:
            config["retrieval"] = retrieval_config

        agent_config: dict[str, Any] = {}
        if max_turns := os.getenv("CODEWHISPER_AGENT__MAX_TURNS"):
            agent_config["max_turns"] = int(max_turns)
        if timeout := os.getenv("CODEWHISPER_AGENT__MODEL_TIMEOUT_SECONDS"):
            agent_config["model_timeout_seconds"] = float(timeout)
        if agent_config:
            config["agent"] = agent_config

        return config

    def _deep_merge(self, base: dict[str, Any], update: dict[str, Any]) -> None:
        """Deep merge update dictionary into base dictionary."""
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    @classmethod
    def from_cli_args(
        cls,
        args: Any,
        config_file: Path | None = None,
        target_dir: Path | None = None,
    ) -> "Config":
        """Create configuration from parsed CLI arguments."""
        overrides: dict[str, Any] = {}

        if getattr(args, "db", None):
            overrides.setdefault("database", {})["path"] = str(args.db)

        if getattr(args, "model", None):
            overrides.setdefault("embedding", {})["model"] = args.model
        if getattr(args, "provider", None):
            overrides.setdefault("embedding", {})["provider"] = args.provider
        if getattr(args, "api_key", None):
            overrides.setdefault("embedding", {})["api_key"] = args.api_key
        if getattr(args, "base_url", None):
            overrides.setdefault("embedding", {})["base_url"] = args.base_url

        llm_overrides = LLMConfig.extract_cli_overrides(args)
        if llm_overrides:
            overrides["llm"] = llm_overrides

        if getattr(args, "debounce", None):
            overrides.setdefault("indexing", {})["debounce_seconds"] = args.debounce
        if getattr(args, "max_turns", None):
            overrides.setdefault("agent", {})["max_turns"] = args.max_turns

        if getattr(args, "verbose", False):
            overrides["debug"] = True

        return cls(config_file=config_file, overrides=overrides, target_dir=target_dir)

    def get_missing_config(self) -> list[str]:
        """List required settings that are not configured."""
        missing = [f"embedding.{item}" for item in self.embedding.get_missing_config()]
        missing.extend(f"llm.{item}" for item in self.llm.get_missing_config())
        return missing

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary format (secrets masked)."""
        return self.model_dump(mode="json")


# Global configuration instance
_global_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = Config(target_dir=Path.cwd())
    return _global_config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _global_config
    _global_config = None
