"""
Version token model for depshift.

A version token is what a package is asked to move to: a dist-tag
(``latest``), an exact version (``2.1.0``) or an npm range (``^2.0.0``).
The kind is decided once, when the token is built, so later stages never
have to guess what a bare string meant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from depshift.utils.version_utils import is_valid_range, is_valid_version


@dataclass(frozen=True)
class Tag:
    """A dist-tag name such as ``latest`` or ``next``."""

    raw: str

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True)
class ExactVersion:
    """A single, fully specified semantic version."""

    raw: str

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True)
class Range:
    """An npm semantic-version range."""

    raw: str

    def __str__(self) -> str:
        return self.raw


VersionToken = Union[Tag, ExactVersion, Range]


def parse_token(raw: str) -> VersionToken:
    """Classify a user-supplied version string.

    Exact versions win over ranges (``1.2.3`` is also a valid range), and
    anything that is neither is taken to be a dist-tag.

    Examples:
        >>> parse_token("2.0.0")
        ExactVersion(raw='2.0.0')
        >>> parse_token("^2.0.0")
        Range(raw='^2.0.0')
        >>> parse_token("next")
        Tag(raw='next')
    """
    value = raw.strip()
    if is_valid_version(value):
        return ExactVersion(value)
    if value and is_valid_range(value):
        return Range(value)
    return Tag(value)
