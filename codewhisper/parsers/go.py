"""Go structural parser. Exported means the identifier starts uppercase."""

import re

from codewhisper.core.models import ParsedFile, Symbol
from codewhisper.core.types import Language, SymbolKind

from .base import LanguageParser, extract_signature, find_block_end

_IMPORT_SINGLE = re.compile(r'^import\s+(?:\w+\s+|\.\s+|_\s+)?"([^"]+)"')
_IMPORT_BLOCK_START = re.compile(r"^import\s*\($")
_IMPORT_SPEC = re.compile(r'^(?:\w+\s+|\.\s+|_\s+)?"([^"]+)"')
_FUNC = re.compile(r"^func\s+(?:\(.*?\)\s*)?(\w+)")
_STRUCT = re.compile(r"^type\s+(\w+)\s+struct\b")
_INTERFACE = re.compile(r"^type\s+(\w+)\s+interface\b")
_TYPE = re.compile(r"^type\s+(\w+)\s+\S")


class GoParser(LanguageParser):
    def __init__(self):
        super().__init__(Language.GO)

    def parse_lines(self, path: str, lines: list[str]) -> ParsedFile:
        parsed = self._new_file(path)
        in_import_block = False

        for i, line in enumerate(lines):
            trimmed = line.strip()
            if not trimmed or trimmed.startswith("//"):
                continue
            line_num = i + 1

            if in_import_block:
                if trimmed.startswith(")"):
                    in_import_block = False
                    continue
                spec = _IMPORT_SPEC.match(trimmed)
                if spec:
                    parsed.imports.append(spec.group(1))
                continue

            if _IMPORT_BLOCK_START.match(trimmed):
                in_import_block = True
                continue

            single = _IMPORT_SINGLE.match(trimmed)
            if single:
                parsed.imports.append(single.group(1))
                continue

            # top-level declarations start in column zero
            if line[:1].isspace():
                continue

            kind: SymbolKind | None = None
            name = ""
            for pattern, candidate in (
                (_FUNC, SymbolKind.FUNCTION),
                (_STRUCT, SymbolKind.CLASS),
                (_INTERFACE, SymbolKind.INTERFACE),
                (_TYPE, SymbolKind.TYPE),
            ):
                match = pattern.match(trimmed)
                if match:
                    kind, name = candidate, match.group(1)
                    break
            if kind is None:
                continue

            has_block = "{" in trimmed
            parsed.symbols.append(
                Symbol(
                    name=name,
                    kind=kind,
                    signature=extract_signature(trimmed),
                    line_start=line_num,
                    line_end=find_block_end(lines, i) if has_block else line_num,
                )
            )
            if name[0].isupper():
                parsed.exports.append(name)

        return parsed
