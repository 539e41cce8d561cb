"""Rust structural parser. ``impl`` blocks are not symbols themselves; their
functions are reported as top-level functions."""

import re

from codewhisper.core.models import ParsedFile, Symbol
from codewhisper.core.types import Language, SymbolKind

from .base import LanguageParser, brace_delta, extract_signature, find_block_end

_USE = re.compile(r"^(?:pub(?:\([^)]*\))?\s+)?use\s+([^;]+)")
_FN = re.compile(r"^(?:pub(?:\([^)]*\))?\s+)?(?:const\s+)?(?:async\s+)?(?:unsafe\s+)?fn\s+(\w+)")
_STRUCT = re.compile(r"^(?:pub(?:\([^)]*\))?\s+)?struct\s+(\w+)")
_ENUM = re.compile(r"^(?:pub(?:\([^)]*\))?\s+)?enum\s+(\w+)")
_TRAIT = re.compile(r"^(?:pub(?:\([^)]*\))?\s+)?(?:unsafe\s+)?trait\s+(\w+)")
_TYPE_ALIAS = re.compile(r"^(?:pub(?:\([^)]*\))?\s+)?type\s+(\w+)")
_IMPL = re.compile(r"^(?:unsafe\s+)?impl\b")

_DECLARATIONS = (
    (_FN, SymbolKind.FUNCTION),
    (_STRUCT, SymbolKind.CLASS),
    (_ENUM, SymbolKind.TYPE),
    (_TRAIT, SymbolKind.INTERFACE),
    (_TYPE_ALIAS, SymbolKind.TYPE),
)


class RustParser(LanguageParser):
    def __init__(self):
        super().__init__(Language.RUST)

    def parse_lines(self, path: str, lines: list[str]) -> ParsedFile:
        parsed = self._new_file(path)

        depth = 0
        impl_depth: int | None = None

        for i, line in enumerate(lines):
            trimmed = line.strip()
            line_num = i + 1
            depth_before = depth
            depth += brace_delta(line)

            if impl_depth is not None and depth < impl_depth:
                impl_depth = None

            if not trimmed or trimmed.startswith("//") or trimmed.startswith("#["):
                continue

            in_impl_body = impl_depth is not None and depth_before == impl_depth
            if depth_before > 0 and not in_impl_body:
                continue

            use_match = _USE.match(trimmed)
            if use_match:
                parsed.imports.append(use_match.group(1).strip())
                continue

            if _IMPL.match(trimmed):
                if find_block_end(lines, i) > line_num:
                    impl_depth = depth_before + 1
                continue

            for pattern, kind in _DECLARATIONS:
                match = pattern.match(trimmed)
                if not match:
                    continue
                if in_impl_body and kind is not SymbolKind.FUNCTION:
                    break
                name = match.group(1)
                single_line = "{" not in trimmed and trimmed.endswith(";")
                parsed.symbols.append(
                    Symbol(
                        name=name,
                        kind=kind,
                        signature=extract_signature(trimmed),
                        line_start=line_num,
                        line_end=line_num if single_line else find_block_end(lines, i),
                    )
                )
                if trimmed.startswith("pub"):
                    parsed.exports.append(name)
                break

        return parsed
