"""CodeWhisper - code context engine for a voice pair-programming assistant."""

from .version import __version__

__all__ = ["__version__"]
