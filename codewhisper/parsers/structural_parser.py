"""Language dispatch for structural parsing."""

from loguru import logger

from codewhisper.core.models import ParsedFile
from codewhisper.core.types import Language

from .base import LanguageParser
from .go import GoParser
from .python import PythonParser
from .rust import RustParser
from .typescript import TypeScriptParser

PARSERS: dict[Language, LanguageParser] = {
    Language.TYPESCRIPT: TypeScriptParser(Language.TYPESCRIPT),
    Language.JAVASCRIPT: TypeScriptParser(Language.JAVASCRIPT),
    Language.PYTHON: PythonParser(),
    Language.GO: GoParser(),
    Language.RUST: RustParser(),
}


def is_supported(path: str) -> bool:
    return Language.from_file_extension(path) != Language.UNKNOWN


def parse_file(path: str, content: str) -> ParsedFile | None:
    """Extract symbols, imports and exports from one file.

    Returns None when the extension is not a supported language. A supported
    language without a registered parser yields an empty ParsedFile. Malformed
    input never raises; at worst the result is missing symbols.
    """
    language = Language.from_file_extension(path)
    if language == Language.UNKNOWN:
        return None

    parser = PARSERS.get(language)
    if parser is None:
        return ParsedFile(path=path, language=language)

    try:
        return parser.parse_lines(path, content.split("\n"))
    except Exception as e:
        logger.warning(f"[Parser] Failed to parse {path}: {e}")
        return ParsedFile(path=path, language=language)
