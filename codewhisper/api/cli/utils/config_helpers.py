"""Helpers shared by the CLI commands."""

import argparse
from pathlib import Path


def project_dir(args: argparse.Namespace) -> Path:
    """Project root of a command (``path`` argument, default cwd)."""
    return Path(getattr(args, "path", None) or ".").resolve()
