"""Python structural parser driven by indentation."""

import re

from codewhisper.core.models import ParsedFile, Symbol
from codewhisper.core.types import Language, SymbolKind

from .base import LanguageParser, extract_signature, find_indented_block_end, indent_of

_IMPORT = re.compile(r"^import\s+(.+)")
_FROM_IMPORT = re.compile(r"^from\s+(\S+)\s+import\b")
_CLASS = re.compile(r"^class\s+(\w+)")
_DEF = re.compile(r"^(?:async\s+)?def\s+(\w+)")
_CONSTANT = re.compile(r"^([A-Z][A-Z0-9_]*)\s*(?::[^=]+)?=(?!=)")


def _python_signature(trimmed: str) -> str:
    return extract_signature(trimmed.rstrip(":"), separator=None)


def _is_public(name: str) -> bool:
    return not name.startswith("_")


class PythonParser(LanguageParser):
    def __init__(self):
        super().__init__(Language.PYTHON)

    def parse_lines(self, path: str, lines: list[str]) -> ParsedFile:
        parsed = self._new_file(path)

        current_class: str | None = None
        class_indent = 0
        method_indent: int | None = None

        for i, line in enumerate(lines):
            trimmed = line.strip()
            if not trimmed or trimmed.startswith("#"):
                continue

            line_num = i + 1
            indent = indent_of(line)

            if current_class and indent <= class_indent:
                current_class = None
                method_indent = None

            if indent == 0:
                import_match = _IMPORT.match(trimmed)
                if import_match:
                    for item in import_match.group(1).split(","):
                        module = item.strip().split(" as ")[0].strip()
                        if module:
                            parsed.imports.append(module)
                    continue

                from_match = _FROM_IMPORT.match(trimmed)
                if from_match:
                    parsed.imports.append(from_match.group(1))
                    continue

                class_match = _CLASS.match(trimmed)
                if class_match:
                    name = class_match.group(1)
                    parsed.symbols.append(
                        Symbol(
                            name=name,
                            kind=SymbolKind.CLASS,
                            signature=_python_signature(trimmed),
                            line_start=line_num,
                            line_end=find_indented_block_end(lines, i, indent),
                        )
                    )
                    current_class, class_indent = name, indent
                    if _is_public(name):
                        parsed.exports.append(name)
                    continue

                def_match = _DEF.match(trimmed)
                if def_match:
                    name = def_match.group(1)
                    parsed.symbols.append(
                        Symbol(
                            name=name,
                            kind=SymbolKind.FUNCTION,
                            signature=_python_signature(trimmed),
                            line_start=line_num,
                            line_end=find_indented_block_end(lines, i, indent),
                        )
                    )
                    if _is_public(name):
                        parsed.exports.append(name)
                    continue

                const_match = _CONSTANT.match(trimmed)
                if const_match:
                    name = const_match.group(1)
                    parsed.symbols.append(
                        Symbol(
                            name=name,
                            kind=SymbolKind.VARIABLE,
                            signature=extract_signature(trimmed, "="),
                            line_start=line_num,
                            line_end=line_num,
                        )
                    )
                    if _is_public(name):
                        parsed.exports.append(name)
                continue

            if not current_class:
                continue

            # the first statement of a class body fixes the method indentation
            if method_indent is None:
                method_indent = indent

            def_match = _DEF.match(trimmed)
            if def_match and indent == method_indent:
                parsed.symbols.append(
                    Symbol(
                        name=def_match.group(1),
                        kind=SymbolKind.METHOD,
                        signature=_python_signature(trimmed),
                        line_start=line_num,
                        line_end=find_indented_block_end(lines, i, indent),
                        parent=current_class,
                    )
                )

        return parsed
