"""Semantic version parsing, comparison, and bumping.

Thin wrappers around the ``semver`` package. Tag names may carry a
leading ``v`` (or ``=``) marker, so every function accepts both
``1.2.3`` and ``v1.2.3``.

Query helpers (``is_valid_version``, ``clean_version``,
``normalize_version``) never raise: tags in a repository are free-form
and callers filter out anything that is not a version.
"""

import re
from functools import cmp_to_key
from typing import Literal

import semver

from relman.exceptions import ValidationError

BumpKind = Literal[
    "major", "minor", "patch", "premajor", "preminor", "prepatch", "prerelease"
]

BUMP_KINDS: tuple[str, ...] = (
    "major",
    "minor",
    "patch",
    "premajor",
    "preminor",
    "prepatch",
    "prerelease",
)

TAG_MARKER_PATTERN = re.compile(r"^[=v]")


def _strip_marker(version_str: str) -> str:
    return TAG_MARKER_PATTERN.sub("", version_str.strip(), count=1)


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a ``semver.Version``.

    Args:
        version_str: Version string (e.g., '1.2.3', 'v1.2.3-pre.4')

    Returns:
        Parsed version

    Raises:
        ValidationError: If the string is not a semantic version

    Examples:
        >>> parse_version('v1.2.3-pre.4').prerelease
        'pre.4'
    """
    if not version_str or not version_str.strip():
        raise ValidationError(
            "Empty version string",
            details="Version string cannot be empty or whitespace",
            fix_hint="Provide a valid semantic version (e.g., '1.2.3')",
        )
    try:
        return semver.Version.parse(_strip_marker(version_str))
    except ValueError as e:
        raise ValidationError(
            f"Invalid version format: '{version_str}'",
            details=str(e),
            fix_hint="Use format like '1.2.3', 'v1.2.3' or '1.2.3-pre.0'",
        ) from e


def is_valid_version(version_str: str) -> bool:
    """Check whether a string is a semantic version.

    Examples:
        >>> is_valid_version('v1.2.3')
        True
        >>> is_valid_version('v1.2')
        False
        >>> is_valid_version('latest')
        False
    """
    if not version_str or not version_str.strip():
        return False
    return semver.Version.is_valid(_strip_marker(version_str))


def clean_version(version_str: str) -> str | None:
    """Return the canonical form of a version, or None if invalid.

    The tag marker and build metadata are dropped, the prerelease
    suffix is kept.

    Examples:
        >>> clean_version(' v1.2.3-pre.1+build.5 ')
        '1.2.3-pre.1'
    """
    if not is_valid_version(version_str):
        return None
    return str(parse_version(version_str).replace(build=None))


def normalize_version(version_str: str) -> str | None:
    """Reduce a version to ``major.minor.patch``, or None if invalid.

    Examples:
        >>> normalize_version('v1.3.0-pre.2')
        '1.3.0'
        >>> normalize_version('v1.3') is None
        True
    """
    if not is_valid_version(version_str):
        return None
    return str(parse_version(version_str).finalize_version())


def compare_versions(v1: str, v2: str) -> int:
    """Compare two versions by semantic version precedence.

    Returns:
        -1 if v1 < v2, 0 if equal, 1 if v1 > v2

    Raises:
        ValidationError: If either version string is invalid
    """
    return parse_version(v1).compare(parse_version(v2))


def compare_descending(v1: str, v2: str) -> int:
    """Comparator ordering versions newest first."""
    return -compare_versions(v1, v2)


def sort_descending(versions: list[str]) -> list[str]:
    """Sort version strings newest first."""
    return sorted(versions, key=cmp_to_key(compare_descending))


def greater_than(v1: str, v2: str) -> bool:
    """Check whether v1 is strictly newer than v2.

    Examples:
        >>> greater_than('v1.4.0', '1.3.0')
        True
        >>> greater_than('1.3.0', 'v1.3.0')
        False
    """
    return compare_versions(v1, v2) > 0


def _next_prerelease(current: str | None, name: str) -> str:
    # npm inc() with an identifier: bump the last numeric part (or append
    # one), then restart at name.0 unless name and a counter lead
    parts = current.split(".") if current else []
    for i in range(len(parts) - 1, -1, -1):
        if parts[i].isdigit():
            parts[i] = str(int(parts[i]) + 1)
            break
    else:
        parts.append("0")
    if parts[0] != name or not parts[1].isdigit():
        return f"{name}.0"
    return ".".join(parts)


def increment_version(
    current: str,
    kind: BumpKind | str,
    prerelease_name: str = "pre",
) -> str:
    """Bump a version the way npm's ``semver.inc`` does.

    A prerelease is already "on its way" to its release version, so a
    plain bump of ``1.3.0-pre.4`` to ``minor`` yields ``1.3.0`` rather
    than ``1.4.0``.

    Args:
        current: Current version string
        kind: One of BUMP_KINDS
        prerelease_name: Identifier for prerelease suffixes

    Returns:
        New version string without tag marker

    Raises:
        ValidationError: If the version or bump kind is invalid

    Examples:
        >>> increment_version('1.3.0-pre.4', 'minor')
        '1.3.0'
        >>> increment_version('1.3.0', 'prepatch')
        '1.3.1-pre.0'
        >>> increment_version('1.3.0', 'preminor')
        '1.4.0-pre.0'
        >>> increment_version('1.3.1-pre.0', 'prerelease')
        '1.3.1-pre.1'
    """
    if kind not in BUMP_KINDS:
        raise ValidationError(
            f"Invalid bump kind: '{kind}'",
            details=f"Expected one of: {', '.join(BUMP_KINDS)}",
        )

    version = parse_version(current).replace(build=None)
    major, minor, patch = version.major, version.minor, version.patch
    pre = version.prerelease

    if kind == "major":
        if minor != 0 or patch != 0 or pre is None:
            major += 1
        return f"{major}.0.0"
    if kind == "minor":
        if patch != 0 or pre is None:
            minor += 1
        return f"{major}.{minor}.0"
    if kind == "patch":
        if pre is None:
            patch += 1
        return f"{major}.{minor}.{patch}"
    if kind == "premajor":
        return f"{major + 1}.0.0-{prerelease_name}.0"
    if kind == "preminor":
        return f"{major}.{minor + 1}.0-{prerelease_name}.0"
    if kind == "prepatch":
        return f"{major}.{minor}.{patch + 1}-{prerelease_name}.0"

    # prerelease
    if pre is None:
        return f"{major}.{minor}.{patch + 1}-{prerelease_name}.0"
    return f"{major}.{minor}.{patch}-{_next_prerelease(pre, prerelease_name)}"


__all__ = [
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
