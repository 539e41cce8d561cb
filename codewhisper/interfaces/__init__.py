"""Abstract collaborator interfaces: language models and the three stores."""

from .llm_provider import LLMProvider, LLMResponse
from .stores import KeyValueCache, SymbolStore, VectorStore

__all__ = ["KeyValueCache", "LLMProvider", "LLMResponse", "SymbolStore", "VectorStore"]
