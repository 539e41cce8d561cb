"""CLI utilities."""

from .rich_output import RichOutputFormatter

__all__ = ["RichOutputFormatter"]
