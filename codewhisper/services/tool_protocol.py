"""Text protocol the model uses to call tools.

A tool call is a single line ``[TOOL: name "argument"]`` anywhere in the model
reply. Everything about the marker syntax lives here so the responder loop
only sees ``ToolCall`` objects.
"""

import re
from dataclasses import dataclass

_TOOL_MARKER = re.compile(r'\[TOOL:\s*(\w+)(?:\s+"([^"\n]*)")?\s*\]')


@dataclass(frozen=True)
class ToolCall:
    name: str
    argument: str
    raw: str


def parse_tool_call(text: str) -> ToolCall | None:
    """Return the first tool marker in ``text``, or None for a final answer."""
    match = _TOOL_MARKER.search(text)
    if match is None:
        return None
    return ToolCall(name=match.group(1), argument=match.group(2) or "", raw=match.group(0))


def format_tool_call(name: str, argument: str) -> str:
    return f'[TOOL: {name} "{argument}"]'


def format_tool_result(call: ToolCall, output: str) -> str:
    """Synthetic user turn carrying a tool's output back to the model."""
    return f'Result of {call.name} "{call.argument}":\n{output}'


def render_tool_instructions(tools: dict[str, str]) -> str:
    """Prompt section describing the protocol; ``tools`` maps name to usage text."""
    lines = [
        "To look something up, reply with exactly one line of the form",
        format_tool_call("tool_name", "argument"),
        "and nothing else. The tool output will be sent back to you. Available tools:",
    ]
    lines.extend(f"- {name}: {usage}" for name, usage in tools.items())
    lines.append("When you can answer, reply normally without any tool marker.")
    return "\n".join(lines)
