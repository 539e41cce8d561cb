"""Tests for hierarchical configuration loading."""

import argparse
import os
from pathlib import Path

import pytest

from codewhisper.core.config import (
    Config,
    EmbeddingConfig,
    LLMConfig,
    get_config,
    reset_config,
    set_config,
)


def test_defaults(clean_environment):
    config = Config()

    assert config.database.is_memory
    assert config.indexing.debounce_seconds == 2.0
    assert config.indexing.embedding_batch_size == 20
    assert "**/*.ts" in config.indexing.include
    assert config.retrieval.top_k == 5
    assert config.agent.max_turns == 5
    assert config.agent.model_timeout_seconds == 30.0
    assert config.embedding.provider == "openai"
    assert config.llm.get_default_model() == "gpt-4o-mini"


def test_environment_variables(clean_environment):
    os.environ["CODEWHISPER_INDEXING__DEBOUNCE_SECONDS"] = "0.75"
    os.environ["CODEWHISPER_AGENT__MAX_TURNS"] = "7"
    os.environ["CODEWHISPER_RETRIEVAL__TOP_K"] = "9"
    os.environ["CODEWHISPER_EMBEDDING__MODEL"] = "text-embedding-3-large"
    os.environ["CODEWHISPER_LLM_PROVIDER"] = "ollama"

    config = Config()

    assert config.indexing.debounce_seconds == 0.75
    assert config.agent.max_turns == 7
    assert config.retrieval.top_k == 9
    assert config.embedding.model == "text-embedding-3-large"
    assert config.llm.provider == "ollama"
    assert config.llm.get_default_model() == "llama3.2"


def test_local_config_file(clean_environment, sample_local_config, temp_project_dir, temp_db_path):
    config = Config(target_dir=temp_project_dir)

    assert config.database.path == temp_db_path
    assert config.embedding.model == "text-embedding-3-large"
    assert config.indexing.debounce_seconds == 0.5
    assert config.indexing.exclude == ["*.log", "**/node_modules/**"]


def test_overrides_beat_local_config(clean_environment, sample_local_config, temp_project_dir):
    os.environ["CODEWHISPER_INDEXING__DEBOUNCE_SECONDS"] = "9"

    config = Config(target_dir=temp_project_dir, overrides={"indexing": {"debounce_seconds": 1.5}})

    assert config.indexing.debounce_seconds == 1.5
    # sibling keys from the local file survive the deep merge
    assert config.indexing.exclude == ["*.log", "**/node_modules/**"]


def test_invalid_json_config_file(clean_environment, temp_project_dir):
    config_file = temp_project_dir / "broken.json"
    config_file.write_text("{ nope")

    with pytest.raises(ValueError, match="Invalid JSON"):
        Config(config_file=config_file)


def test_from_cli_args(clean_environment, temp_project_dir):
    args = argparse.Namespace(
        db=str(temp_project_dir / "index.duckdb"),
        model="custom-embed",
        provider="openai-compatible",
        api_key=None,
        base_url="http://localhost:8080/",
        llm_model="gpt-test",
        llm_api_key="sk-llm",
        llm_base_url=None,
        llm_provider=None,
        debounce=0.25,
        max_turns=3,
        verbose=True,
    )

    config = Config.from_cli_args(args)

    assert config.database.path == Path(temp_project_dir / "index.duckdb")
    assert config.embedding.provider == "openai-compatible"
    assert config.embedding.base_url == "http://localhost:8080"
    assert config.llm.model == "gpt-test"
    assert config.llm.api_key.get_secret_value() == "sk-llm"
    assert config.indexing.debounce_seconds == 0.25
    assert config.agent.max_turns == 3
    assert config.debug is True
    assert config.get_missing_config() == []


def test_missing_config_reports_both_providers(clean_environment):
    missing = Config().get_missing_config()

    assert missing == [
        "embedding.api_key (set CODEWHISPER_EMBEDDING__API_KEY)",
        "llm.api_key (set CODEWHISPER_LLM_API_KEY)",
    ]


def test_invalid_values_are_rejected(clean_environment):
    with pytest.raises(ValueError):
        EmbeddingConfig(base_url="localhost:8080")
    with pytest.raises(ValueError):
        LLMConfig(base_url="ftp://example.com")
    with pytest.raises(ValueError):
        Config(agent={"max_turns": 0})


def test_secrets_are_masked(clean_environment):
    config = Config(embedding={"api_key": "sk-secret"})

    assert "sk-secret" not in str(config.to_dict())
    assert "sk-secret" not in repr(config.embedding)


def test_global_config(clean_environment):
    custom = Config(indexing={"debounce_seconds": 4.0})
    set_config(custom)
    try:
        assert get_config() is custom
    finally:
        reset_config()
