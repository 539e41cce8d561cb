"""Common enums used across the parse -> chunk -> index -> retrieve pipeline."""

from enum import Enum
from pathlib import PurePosixPath


class Language(Enum):
    """Languages recognized by the structural parser."""

    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    GO = "go"
    RUST = "rust"
    UNKNOWN = "unknown"

    @classmethod
    def from_file_extension(cls, file_path: str) -> "Language":
        """Map a file path to its language by extension.

        Returns Language.UNKNOWN for files without an extension or with an
        extension no parser handles.
        """
        suffix = PurePosixPath(file_path.replace("\\", "/")).suffix.lower()
        return _EXTENSION_MAP.get(suffix, cls.UNKNOWN)

    @classmethod
    def get_all_extensions(cls) -> set[str]:
        """All file extensions that map to a known language."""
        return set(_EXTENSION_MAP.keys())


_EXTENSION_MAP: dict[str, Language] = {
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TYPESCRIPT,
    ".js": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".py": Language.PYTHON,
    ".rs": Language.RUST,
    ".go": Language.GO,
}


class SymbolKind(str, Enum):
    """Kinds of symbols the parser extracts."""

    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"
    INTERFACE = "interface"
    TYPE = "type"
    VARIABLE = "variable"


class ChunkKind(str, Enum):
    """Kinds of embeddable chunks."""

    FUNCTION = "function"
    CLASS = "class"
    MODULE = "module"
    IMPORTS = "imports"


class UnknownChangeKindError(ValueError):
    """Raised when a file-sync event carries a kind outside add/change/delete.

    This signals a protocol violation upstream, not a transient condition.
    """


class ChangeKind(str, Enum):
    """Kinds of file-change events coming from the local watcher."""

    ADD = "add"
    CHANGE = "change"
    DELETE = "delete"

    @classmethod
    def parse(cls, value: "str | ChangeKind") -> "ChangeKind":
        if isinstance(value, ChangeKind):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownChangeKindError(f"Unknown sync type: {value}") from None
