"""Tools the agentic responder can call, defined declaratively."""

from dataclasses import dataclass
from typing import Awaitable, Callable

from .retrieval_service import RetrievalService

# (session_id, argument) -> text shown to the model
ToolImplementation = Callable[[str, str], Awaitable[str]]


@dataclass
class Tool:
    """Tool definition with metadata and implementation."""

    name: str
    description: str
    argument: str
    implementation: ToolImplementation


def build_retrieval_tools(retrieval: RetrievalService) -> dict[str, Tool]:
    definitions = [
        Tool(
            name="read_file",
            description="Show the current contents of a file in the project.",
            argument="path",
            implementation=retrieval.read_file,
        ),
        Tool(
            name="search_code",
            description="Semantic and symbol search over the indexed code.",
            argument="query",
            implementation=retrieval.search_code,
        ),
        Tool(
            name="list_files",
            description="List indexed files, optionally under a path prefix (use \"\" for all).",
            argument="path prefix",
            implementation=retrieval.list_files,
        ),
    ]
    return {tool.name: tool for tool in definitions}
