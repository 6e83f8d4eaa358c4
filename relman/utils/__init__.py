"""Utility modules for relman."""

from relman.utils.shell import ShellError, format_command, run, strip_ansi
from relman.utils.version import (
    BUMP_KINDS,
    BumpKind,
    clean_version,
    compare_descending,
    compare_versions,
    greater_than,
    increment_version,
    is_valid_version,
    normalize_version,
    parse_version,
    sort_descending,
)

__all__ = [
    # Shell utilities
    "run",
    "format_command",
    "strip_ansi",
    "ShellError",
    # Version utilities
    "parse_version",
    "is_valid_version",
    "clean_version",
    "normalize_version",
    "compare_versions",
    "compare_descending",
    "sort_descending",
    "greater_than",
    "increment_version",
    "BumpKind",
    "BUMP_KINDS",
]
