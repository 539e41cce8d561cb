"""
Pytest configuration and fixtures for CodeWhisper tests.
"""

import json
import os
import shutil
import tempfile
from pathlib import Path

import pytest

from codewhisper.core.config.indexing_config import IndexingConfig
from codewhisper.core.config.retrieval_config import RetrievalConfig
from codewhisper.providers.database import (
    DuckDBConnectionManager,
    DuckDBKeyValueCache,
    DuckDBSymbolStore,
    DuckDBVectorStore,
)
from codewhisper.services.indexing_pipeline import IndexingPipeline
from codewhisper.services.repo_map_cache import RepoMapCache
from codewhisper.services.retrieval_service import RetrievalService
from tests.fakes import FakeEmbeddingProvider


@pytest.fixture
def temp_project_dir():
    """Create a temporary project directory for testing."""
    temp_dir = Path(tempfile.mkdtemp())
    project_dir = temp_dir / "project"
    project_dir.mkdir()

    yield project_dir

    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def temp_db_path(temp_project_dir):
    """Create a temporary database path."""
    return temp_project_dir / "test.duckdb"


@pytest.fixture
def sample_local_config(temp_project_dir, temp_db_path):
    """Create a sample .codewhisper.json file."""
    local_config_path = temp_project_dir / ".codewhisper.json"
    local_config_content = {
        "database": {"path": str(temp_db_path)},
        "embedding": {"provider": "openai", "model": "text-embedding-3-large"},
        "indexing": {"exclude": ["*.log", "**/node_modules/**"], "debounce_seconds": 0.5},
    }

    with open(local_config_path, "w") as f:
        json.dump(local_config_content, f)

    return local_config_path


@pytest.fixture
def clean_environment():
    """Clean up CodeWhisper environment variables before and after tests."""
    original_env = {}
    for key in list(os.environ.keys()):
        if key.startswith("CODEWHISPER_"):
            original_env[key] = os.environ[key]
            del os.environ[key]

    yield

    for key in list(os.environ.keys()):
        if key.startswith("CODEWHISPER_"):
            del os.environ[key]
    os.environ.update(original_env)


@pytest.fixture
def embedding_provider():
    return FakeEmbeddingProvider()


@pytest.fixture
def connection_manager():
    """In-memory DuckDB with the full schema."""
    manager = DuckDBConnectionManager(":memory:")
    manager.connect()
    yield manager
    manager.disconnect()


@pytest.fixture
def vector_store(connection_manager):
    return DuckDBVectorStore(connection_manager)


@pytest.fixture
def symbol_store(connection_manager):
    return DuckDBSymbolStore(connection_manager)


@pytest.fixture
def kv_cache(connection_manager):
    return DuckDBKeyValueCache(connection_manager)


@pytest.fixture
def repo_map_cache(kv_cache, symbol_store):
    return RepoMapCache(kv_cache, symbol_store, ttl_seconds=3600)


@pytest.fixture
def pipeline(embedding_provider, vector_store, symbol_store, repo_map_cache):
    return IndexingPipeline(
        embedding_provider,
        vector_store,
        symbol_store,
        repo_map_cache,
        IndexingConfig(embedding_batch_size=2),
    )


@pytest.fixture
def retrieval(embedding_provider, vector_store, symbol_store, repo_map_cache):
    return RetrievalService(
        embedding_provider, vector_store, symbol_store, repo_map_cache, RetrievalConfig()
    )
