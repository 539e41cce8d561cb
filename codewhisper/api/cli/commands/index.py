"""``codewhisper index`` - one-shot indexing of a directory."""

import argparse
import time

from codewhisper.core.config import Config
from codewhisper.core.models import SourceFile
from codewhisper.engine import create_engine
from codewhisper.services.file_watcher import LocalFileWatcher
from codewhisper.version import __version__

from ..utils.config_helpers import project_dir
from ..utils.rich_output import RichOutputFormatter


def collect_sources(watcher: LocalFileWatcher, formatter: RichOutputFormatter) -> list[SourceFile]:
    max_bytes = watcher.config.max_file_size_kb * 1024
    sources = []
    for file_path in watcher.iter_files():
        rel_path = watcher.relative_path(file_path)
        try:
            if file_path.stat().st_size > max_bytes:
                formatter.verbose_info(f"Skipping large file {rel_path}")
                continue
            sources.append(SourceFile(path=rel_path, content=file_path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError) as e:
            formatter.warning(f"Cannot read {rel_path}: {e}")
    return sources


async def index_command(args: argparse.Namespace, config: Config) -> None:
    formatter = RichOutputFormatter(verbose=args.verbose)
    base_dir = project_dir(args)
    formatter.startup_info(__version__, str(base_dir), args.session, config, "CodeWhisper Indexing")

    engine = create_engine(config, with_llm=False)
    try:
        # the watcher is only used for its include/exclude walk here
        walker = LocalFileWatcher(base_dir, args.session, engine.sessions, config.indexing)
        sources = collect_sources(walker, formatter)
        formatter.info(f"Indexing {len(sources)} files")

        started = time.perf_counter()
        result = await engine.index_files(args.session, sources)
        formatter.completion_summary(vars(result), time.perf_counter() - started)
        for error in result.errors:
            formatter.error(error)
    finally:
        await engine.close()
