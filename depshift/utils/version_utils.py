"""
Semantic-version helpers for depshift.

Every version question the resolver asks goes through this module:
validity, range satisfaction, ordering and "highest version matching a
range". Parsing and npm range semantics (``^``, ``~``, x-ranges, hyphen
ranges, ``||`` and npm's pre-release policy) are delegated to
``semantic_version``; nothing here re-implements them.

Invalid input never raises from the predicate helpers: an unparsable
version or range simply does not satisfy anything, mirroring npm.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Optional

import semantic_version

from depshift.exceptions import InvalidOptionError

_PARTIAL_VERSION_RE = re.compile(r"^\d{1,30}\.\d{1,30}\.\d{1,30}")


@lru_cache(maxsize=4096)
def _version(value: str) -> Optional[semantic_version.Version]:
    try:
        return semantic_version.Version(value.strip())
    except (ValueError, AttributeError):
        return None


@lru_cache(maxsize=1024)
def _spec(value: str) -> Optional[semantic_version.NpmSpec]:
    expression = value.strip() or "*"
    try:
        return semantic_version.NpmSpec(expression)
    except ValueError:
        return None


def is_valid_version(value: str) -> bool:
    """Return True if ``value`` is a complete semantic version."""
    return _version(value) is not None


def is_valid_range(value: str) -> bool:
    """Return True if ``value`` parses as an npm range."""
    return _spec(value) is not None


def satisfies(version: str, range_: str) -> bool:
    """Return True if ``version`` matches the npm range ``range_``.

    Examples:
        >>> satisfies("1.5.0", "^1.0.0")
        True
        >>> satisfies("1.5.0", "^2.0.0")
        False
    """
    parsed = _version(version)
    spec = _spec(range_)
    if parsed is None or spec is None:
        return False
    return spec.match(parsed)


def max_satisfying(versions: Iterable[str], range_: str) -> Optional[str]:
    """Return the highest version in ``versions`` matching ``range_``.

    The original string is returned, not a re-rendered one, so callers can
    use the result as a key into registry metadata.
    """
    spec = _spec(range_)
    if spec is None:
        return None

    best: Optional[str] = None
    best_parsed: Optional[semantic_version.Version] = None
    for candidate in versions:
        parsed = _version(candidate)
        if parsed is None or not spec.match(parsed):
            continue
        if best_parsed is None or parsed > best_parsed:
            best, best_parsed = candidate, parsed
    return best


def compare(left: str, right: str) -> int:
    """Compare two versions, returning -1, 0 or 1.

    Raises:
        ValueError: Either side is not a valid version.
    """
    a = _version(left)
    b = _version(right)
    if a is None or b is None:
        raise ValueError(f"Cannot compare {left!r} and {right!r}")
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def is_greater(candidate: str, baseline: str) -> bool:
    """Return True if ``candidate`` is strictly newer than ``baseline``.

    Invalid versions are never considered newer.
    """
    try:
        return compare(candidate, baseline) > 0
    except ValueError:
        return False


def format_migration_version(value: Optional[str]) -> Optional[str]:
    """Normalize a ``--from``/``--to`` value into a full version.

    Partial versions are padded with ``.0`` (``"8"`` -> ``"8.0.0"``).

    Raises:
        InvalidOptionError: The padded value is still not a valid version.
    """
    if value is None:
        return None

    version = value
    for _ in range(2):
        if not _PARTIAL_VERSION_RE.match(version):
            version += ".0"

    if not is_valid_version(version):
        raise InvalidOptionError(
            f"Invalid migration version: {value!r}",
            option="from/to",
            value=value,
        )
    return version


def get_update_type(
    current_version: Optional[str],
    target_version: Optional[str],
) -> str:
    """Determine the semantic update type between two versions.

    Returns:
        One of ``"new"``, ``"same"``, ``"downgrade"``, ``"major"``,
        ``"minor"``, ``"patch"``, ``"update"`` (pre-release/build only) or
        ``"unknown"``.

    Examples:
        >>> get_update_type("1.0.0", "2.0.0")
        'major'
        >>> get_update_type(None, "1.0.0")
        'new'
    """
    if current_version is None and target_version is None:
        return "unknown"

    if current_version is None:
        return "new"

    if target_version is None:
        return "unknown"

    current = _version(current_version)
    target = _version(target_version)
    if current is None or target is None:
        return "unknown"

    if target == current:
        return "same"

    if target < current:
        return "downgrade"

    if current.major != target.major:
        return "major"

    if current.minor != target.minor:
        return "minor"

    if current.patch != target.patch:
        return "patch"

    return "update"
