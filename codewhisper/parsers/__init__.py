"""Regex-based structural parsers for the supported languages."""

from .structural_parser import PARSERS, is_supported, parse_file

__all__ = ["PARSERS", "is_supported", "parse_file"]
