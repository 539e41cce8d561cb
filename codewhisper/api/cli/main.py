"""CLI entry point for CodeWhisper."""

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger

from codewhisper.core.config import Config, DatabaseConfig

from .parsers import create_main_parser
from .utils.config_helpers import project_dir

LOCAL_DB_PATH = Path(".codewhisper") / "index.duckdb"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    logger.remove()

    if verbose:
        logger.add(
            sys.stderr,
            level="DEBUG",
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                "<level>{message}</level>"
            ),
        )
    else:
        logger.add(
            sys.stderr,
            level="INFO",
            format=(
                "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
                "<level>{message}</level>"
            ),
        )


def validate_args_and_config(args: argparse.Namespace) -> tuple[Config, list[str]]:
    """Build the config for a command and list anything that blocks it."""
    errors: list[str] = []
    base_dir = project_dir(args)

    if args.command in ("index", "watch") and not base_dir.is_dir():
        errors.append(f"Invalid path: {args.path}")

    config = Config.from_cli_args(args, config_file=args.config, target_dir=base_dir)

    # a CLI run must persist between invocations
    if config.database.is_memory and not args.db:
        config.database = DatabaseConfig(path=base_dir / LOCAL_DB_PATH)

    errors.extend(f"Missing embedding.{item}" for item in config.embedding.get_missing_config())
    if args.command in ("ask", "watch"):
        errors.extend(f"Missing llm.{item}" for item in config.llm.get_missing_config())

    return config, errors


async def async_main() -> None:
    parser = create_main_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(getattr(args, "verbose", False))

    config, validation_errors = validate_args_and_config(args)
    if validation_errors:
        for error in validation_errors:
            logger.error(f"Error: {error}")
        sys.exit(1)

    try:
        if args.command == "index":
            from .commands.index import index_command

            await index_command(args, config)
        elif args.command == "ask":
            from .commands.ask import ask_command

            await ask_command(args, config)
        elif args.command == "watch":
            from .commands.watch import watch_command

            await watch_command(args, config)
        else:
            logger.error(f"Unknown command: {args.command}")
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Command failed: {e}")
        logger.exception("Full error details:")
        sys.exit(1)


def main() -> None:
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
