"""Argument parsers for the CodeWhisper CLI."""

import argparse
from pathlib import Path

from codewhisper.core.config.llm_config import LLMConfig
from codewhisper.version import __version__

DEFAULT_SESSION = "default"


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, help="JSON configuration file")
    parser.add_argument("--db", type=Path, help="DuckDB database file")
    parser.add_argument(
        "--session", default=DEFAULT_SESSION, help=f"Session id (default: {DEFAULT_SESSION})"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")


def add_embedding_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--provider", choices=["openai", "openai-compatible"], help="Embedding provider"
    )
    parser.add_argument("--model", help="Embedding model")
    parser.add_argument("--api-key", help="Embedding API key (uses env var if not specified)")
    parser.add_argument("--base-url", help="Embedding API base URL")


def create_main_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codewhisper",
        description="Index a codebase and ask questions about it.",
    )
    parser.add_argument("--version", action="version", version=f"codewhisper {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    index_parser = subparsers.add_parser("index", help="Index a directory once")
    index_parser.add_argument("path", type=Path, nargs="?", default=Path("."))
    add_common_arguments(index_parser)
    add_embedding_arguments(index_parser)

    ask_parser = subparsers.add_parser("ask", help="Ask a question about an indexed session")
    ask_parser.add_argument("question", help="Question to answer")
    ask_parser.add_argument(
        "--path", type=Path, default=Path("."), help="Project directory (for config lookup)"
    )
    ask_parser.add_argument("--file", help="File the question is about")
    ask_parser.add_argument("--selection", help="Selected text in that file")
    add_common_arguments(ask_parser)
    add_embedding_arguments(ask_parser)
    LLMConfig.add_cli_arguments(ask_parser)
    ask_parser.add_argument("--max-turns", type=int, help="Agent turn limit")

    watch_parser = subparsers.add_parser(
        "watch", help="Watch a directory and re-index on changes"
    )
    watch_parser.add_argument("path", type=Path, nargs="?", default=Path("."))
    watch_parser.add_argument(
        "--debounce", type=float, help="Seconds of quiet before re-indexing"
    )
    watch_parser.add_argument(
        "--interactive", action="store_true", help="Read questions from stdin while watching"
    )
    add_common_arguments(watch_parser)
    add_embedding_arguments(watch_parser)
    LLMConfig.add_cli_arguments(watch_parser)
    watch_parser.add_argument("--max-turns", type=int, help="Agent turn limit")

    return parser
