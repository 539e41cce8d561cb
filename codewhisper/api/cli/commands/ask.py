"""``codewhisper ask`` - answer one question against an indexed session."""

import argparse

from codewhisper.core.config import Config
from codewhisper.core.models import FocusContext
from codewhisper.engine import create_engine

from ..utils.rich_output import RichOutputFormatter


async def ask_command(args: argparse.Namespace, config: Config) -> None:
    formatter = RichOutputFormatter(verbose=args.verbose)
    focus = None
    if args.file or args.selection:
        focus = FocusContext(file_path=args.file, selection=args.selection)
        formatter.verbose_info(f"Focus: {args.file or 'selection'}")

    engine = create_engine(config)
    try:
        answer = await engine.ask(args.session, args.question, focus)
        formatter.answer(args.question, answer)
    finally:
        await engine.close()
