"""Base class and block helpers for the line-oriented structural parsers.

Parsers here are regex driven and deliberately approximate: they track a
single scope signal per language (brace depth or indentation) and never raise
on malformed input.
"""

import re
from abc import ABC, abstractmethod

from codewhisper.core.models import ParsedFile
from codewhisper.core.types import Language

SIGNATURE_MAX_CHARS = 100
BLOCK_END_FALLBACK_LINES = 50

_OPEN_BRACE = re.compile(r"\{")
_CLOSE_BRACE = re.compile(r"\}")


def brace_delta(line: str) -> int:
    return len(_OPEN_BRACE.findall(line)) - len(_CLOSE_BRACE.findall(line))


def extract_signature(line: str, separator: str | None = "{") -> str:
    """Keep the declaration part of a line, truncated to the signature budget."""
    without_body = (line.split(separator)[0] if separator else line).strip()
    if len(without_body) > SIGNATURE_MAX_CHARS:
        return without_body[:SIGNATURE_MAX_CHARS] + "..."
    return without_body


def find_block_end(lines: list[str], start_idx: int) -> int:
    """Return the 1-based line closing the brace block opened at ``start_idx``.

    A declaration that ends with ``;`` before any brace opens is a single
    statement. Without a matching closer the result is capped at
    BLOCK_END_FALLBACK_LINES past the start.
    """
    depth = 0
    started = False

    for i in range(start_idx, len(lines)):
        line = lines[i]
        for char in line:
            if char == "{":
                depth += 1
                started = True
            elif char == "}":
                depth -= 1
                if started and depth == 0:
                    return i + 1
        if not started and line.rstrip().endswith(";"):
            return i + 1

    return min(start_idx + BLOCK_END_FALLBACK_LINES, len(lines))


def indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def find_indented_block_end(lines: list[str], start_idx: int, start_indent: int) -> int:
    """Return the 1-based last line of an indentation-delimited block.

    Trailing blank lines are not part of the block.
    """
    end = len(lines)
    for i in range(start_idx + 1, len(lines)):
        line = lines[i]
        if not line.strip():
            continue
        if indent_of(line) <= start_indent:
            end = i
            break

    while end > start_idx + 1 and not lines[end - 1].strip():
        end -= 1
    return end


class LanguageParser(ABC):
    """Turns the lines of one file into a ParsedFile."""

    def __init__(self, language: Language):
        self._language = language

    @property
    def language(self) -> Language:
        return self._language

    @abstractmethod
    def parse_lines(self, path: str, lines: list[str]) -> ParsedFile:
        """Extract symbols, imports and exports from ``lines``."""
        ...

    def _new_file(self, path: str) -> ParsedFile:
        return ParsedFile(path=path, language=self._language)
