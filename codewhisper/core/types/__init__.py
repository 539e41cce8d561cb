"""Shared enums and type aliases."""

from .common import ChangeKind, ChunkKind, Language, SymbolKind, UnknownChangeKindError

__all__ = ["ChangeKind", "ChunkKind", "Language", "SymbolKind", "UnknownChangeKindError"]
