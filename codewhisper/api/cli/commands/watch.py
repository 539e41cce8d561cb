"""``codewhisper watch`` - keep a session in sync with a directory."""

import argparse
import asyncio

from loguru import logger

from codewhisper.core.config import Config
from codewhisper.engine import CodeWhisperEngine, create_engine
from codewhisper.services.file_watcher import LocalFileWatcher
from codewhisper.version import __version__

from ..utils.config_helpers import project_dir
from ..utils.rich_output import RichOutputFormatter

QUIT_COMMANDS = {"exit", "quit", ":q"}


async def _question_loop(
    engine: CodeWhisperEngine,
    watcher: LocalFileWatcher,
    session_id: str,
    formatter: RichOutputFormatter,
) -> None:
    while True:
        try:
            question = (await asyncio.to_thread(input, "> ")).strip()
        except EOFError:
            return
        if not question:
            continue
        if question.lower() in QUIT_COMMANDS:
            return
        if question.lower() == "stats":
            formatter.session_stats(
                {**engine.sessions.get_session_stats(session_id), **watcher.get_stats()}
            )
            continue
        answer = await engine.ask(session_id, question)
        formatter.answer(question, answer)


async def watch_command(args: argparse.Namespace, config: Config) -> None:
    formatter = RichOutputFormatter(verbose=args.verbose)
    base_dir = project_dir(args)
    formatter.startup_info(__version__, str(base_dir), args.session, config, "CodeWhisper Watch")

    engine = create_engine(config)
    watcher = LocalFileWatcher(base_dir, args.session, engine.sessions, config.indexing)
    try:
        await watcher.start()
        scanned = await watcher.initial_scan()
        formatter.info(
            f"Tracking {scanned} files; changes are indexed after "
            f"{config.indexing.debounce_seconds}s of quiet"
        )

        if args.interactive:
            await _question_loop(engine, watcher, args.session, formatter)
        else:
            await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("[Watcher] Stopping")
    finally:
        await watcher.stop()
        await engine.close()
