"""TypeScript / JavaScript structural parser.

Scope is tracked by brace depth. A method is any call-shaped declaration line
sitting directly in a class body; control-flow keywords are excluded.
"""

import re

from codewhisper.core.models import ParsedFile, Symbol
from codewhisper.core.types import Language, SymbolKind

from .base import LanguageParser, brace_delta, extract_signature, find_block_end

_IMPORT_FROM = re.compile(r"""from\s+['"]([^'"]+)['"]""")
_IMPORT_BARE = re.compile(r"""^import\s+['"]([^'"]+)['"]""")
_REQUIRE = re.compile(r"""require\(\s*['"]([^'"]+)['"]\s*\)""")
_EXPORT_LIST = re.compile(r"^export\s*\{([^}]*)\}")

_CLASS = re.compile(r"^(export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+(\w+)")
_INTERFACE = re.compile(r"^(export\s+)?(?:declare\s+)?interface\s+(\w+)")
_TYPE_ALIAS = re.compile(r"^(export\s+)?(?:declare\s+)?type\s+(\w+)")
_FUNCTION = re.compile(r"^(export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*(\w+)")
_ARROW = re.compile(
    r"^(export\s+)?const\s+(\w+)\s*(?::[^=]+)?=\s*(?:async\s*)?(?:\(|\w+\s*=>)"
)
_EXPORTED_VARIABLE = re.compile(r"^export\s+(?:const|let|var)\s+(\w+)")
_METHOD = re.compile(
    r"^(?:(?:public|private|protected|static|readonly|override|abstract|async|get|set)\s+)*"
    r"\*?(\w+)\s*(?:<[^>]*>)?\s*\("
)

_NOT_METHODS = frozenset(
    {"if", "for", "while", "switch", "catch", "return", "new", "await", "typeof", "super"}
)


class TypeScriptParser(LanguageParser):
    """Parser for TypeScript and JavaScript (same patterns work for both)."""

    def __init__(self, language: Language = Language.TYPESCRIPT):
        super().__init__(language)

    def parse_lines(self, path: str, lines: list[str]) -> ParsedFile:
        parsed = self._new_file(path)

        depth = 0
        current_class: str | None = None
        class_depth = 0
        open_import = False

        for i, line in enumerate(lines):
            trimmed = line.strip()
            line_num = i + 1
            depth_before = depth
            depth += brace_delta(line)

            if current_class and depth < class_depth:
                current_class = None

            # an import split over several lines names its module on the closing line
            if open_import:
                match = _IMPORT_FROM.search(trimmed)
                if match:
                    parsed.imports.append(match.group(1))
                open_import = "}" not in trimmed
                continue

            if not trimmed or trimmed.startswith("//"):
                continue

            in_class_body = current_class is not None and depth_before == class_depth
            # only top-level declarations and class members are symbols
            if depth_before > 0 and not in_class_body:
                continue

            if trimmed.startswith("import "):
                match = _IMPORT_FROM.search(trimmed) or _IMPORT_BARE.match(trimmed)
                if match:
                    parsed.imports.append(match.group(1))
                elif "{" in trimmed and "}" not in trimmed:
                    open_import = True
                continue

            require = _REQUIRE.search(trimmed)
            if require and trimmed.startswith(("const ", "let ", "var ")):
                parsed.imports.append(require.group(1))
                continue

            if trimmed.startswith("export ") and " from " in trimmed:
                match = _IMPORT_FROM.search(trimmed)
                if match:
                    parsed.exports.append(match.group(1))
                continue

            export_list = _EXPORT_LIST.match(trimmed)
            if export_list:
                for item in export_list.group(1).split(","):
                    name = item.split(" as ")[-1].strip()
                    if name:
                        parsed.exports.append(name)
                continue

            class_match = _CLASS.match(trimmed)
            if class_match:
                name = class_match.group(2)
                end_line = find_block_end(lines, i)
                parsed.symbols.append(
                    Symbol(
                        name=name,
                        kind=SymbolKind.CLASS,
                        signature=extract_signature(trimmed),
                        line_start=line_num,
                        line_end=end_line,
                    )
                )
                if end_line > line_num:
                    current_class = name
                    class_depth = depth_before + 1
                if class_match.group(1):
                    parsed.exports.append(name)
                continue

            iface_match = _INTERFACE.match(trimmed)
            if iface_match:
                name = iface_match.group(2)
                parsed.symbols.append(
                    Symbol(
                        name=name,
                        kind=SymbolKind.INTERFACE,
                        signature=extract_signature(trimmed),
                        line_start=line_num,
                        line_end=find_block_end(lines, i),
                    )
                )
                if iface_match.group(1):
                    parsed.exports.append(name)
                continue

            type_match = _TYPE_ALIAS.match(trimmed)
            if type_match and "=" in trimmed:
                name = type_match.group(2)
                parsed.symbols.append(
                    Symbol(
                        name=name,
                        kind=SymbolKind.TYPE,
                        signature=extract_signature(trimmed, "="),
                        line_start=line_num,
                        line_end=line_num,
                    )
                )
                if type_match.group(1):
                    parsed.exports.append(name)
                continue

            func_match = _FUNCTION.match(trimmed)
            if func_match:
                name = func_match.group(2)
                end_line = find_block_end(lines, i)
                parsed.symbols.append(
                    Symbol(
                        name=name,
                        kind=SymbolKind.FUNCTION,
                        signature=extract_signature(trimmed),
                        line_start=line_num,
                        line_end=end_line,
                    )
                )
                if func_match.group(1):
                    parsed.exports.append(name)
                continue

            arrow_match = _ARROW.match(trimmed)
            next_line = lines[i + 1] if i + 1 < len(lines) else ""
            if arrow_match and ("=>" in trimmed or "=>" in next_line):
                name = arrow_match.group(2)
                end_line = find_block_end(lines, i)
                parsed.symbols.append(
                    Symbol(
                        name=name,
                        kind=SymbolKind.FUNCTION,
                        signature=f"const {name} = (...)",
                        line_start=line_num,
                        line_end=end_line,
                    )
                )
                if arrow_match.group(1):
                    parsed.exports.append(name)
                continue

            variable_match = _EXPORTED_VARIABLE.match(trimmed)
            if variable_match:
                name = variable_match.group(1)
                parsed.symbols.append(
                    Symbol(
                        name=name,
                        kind=SymbolKind.VARIABLE,
                        signature=extract_signature(trimmed, "="),
                        line_start=line_num,
                        line_end=find_block_end(lines, i) if "{" in trimmed else line_num,
                    )
                )
                parsed.exports.append(name)
                continue

            if in_class_body:
                method_match = _METHOD.match(trimmed)
                if method_match and method_match.group(1) not in _NOT_METHODS:
                    end_line = find_block_end(lines, i)
                    parsed.symbols.append(
                        Symbol(
                            name=method_match.group(1),
                            kind=SymbolKind.METHOD,
                            signature=extract_signature(trimmed),
                            line_start=line_num,
                            line_end=end_line,
                            parent=current_class,
                        )
                    )

        return parsed
