"""Version parsing, comparison, and lag classification."""

from __future__ import annotations

import enum
import re
from typing import NamedTuple

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)")


class ParsedVersion(NamedTuple):
    major: int
    minor: int
    patch: int


class VersionLag(enum.Enum):
    """How far a detected version trails the latest release."""

    CURRENT = "current"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"


def parse_version(version: str | None) -> ParsedVersion | None:
    """Parse a string that starts with ``major.minor.patch``.

    Anything after the patch number (pre-release tags, build metadata) is
    ignored. Returns None when the string does not start with three numeric
    segments.
    """
    if not version:
        return None
    match = _VERSION_RE.match(version)
    if match is None:
        return None
    return ParsedVersion(*(int(part) for part in match.groups()))


def compare_versions(a: ParsedVersion, b: ParsedVersion) -> int:
    """Positive if a > b, negative if a < b, zero if equal."""
    if a.major != b.major:
        return a.major - b.major
    if a.minor != b.minor:
        return a.minor - b.minor
    return a.patch - b.patch


def classify_lag(detected: str | None, latest: str | None) -> VersionLag | None:
    """Classify detected against latest; None if either is unparseable."""
    current = parse_version(detected)
    newest = parse_version(latest)
    if current is None or newest is None:
        return None
    if compare_versions(current, newest) >= 0:
        return VersionLag.CURRENT
    if current.major != newest.major:
        return VersionLag.MAJOR
    if current.minor != newest.minor:
        return VersionLag.MINOR
    return VersionLag.PATCH
