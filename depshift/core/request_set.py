"""Build the initial request set from command-line selectors.

A selector is ``name`` or ``name@token``; scoped names (``@scope/name``)
are supported. Problems with individual selectors are never fatal: the
selector is skipped and a warning explains why.

Typical usage::

    builder = RequestSetBuilder(catalog, channel="latest")
    request_set = builder.build(["@angular/core@next", "rxjs"])
    bulk_set = builder.build([], all_packages=True)
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, Optional, Sequence, Tuple

from depshift.constants import DEFAULT_CHANNEL
from depshift.core.catalog import ManifestCatalog
from depshift.models.request_set import RequestSet
from depshift.models.version_token import VersionToken, parse_token
from depshift.utils.logger import get_logger

logger = get_logger("request_set")

__all__ = ["RequestSetBuilder", "parse_selector", "is_custom_locator"]

_SELECTOR_RE = re.compile(r"^((?:@[^/]{1,100}/)?[^@]{1,100})(?:@(.{1,100}))?$")

_CUSTOM_PREFIXES = ("http:", "https:", "file:", "git:", "git+", "github:", "link:")
_USER_REPO_RE = re.compile(r"^\w{1,100}/\w{1,100}")
_LOCAL_PATH_RE = re.compile(r"^(?:\.{0,2}/)\w{1,100}")


def parse_selector(selector: str) -> Optional[Tuple[str, Optional[str]]]:
    """Split a selector into ``(name, token)``.

    Returns:
        The name and the raw token (None when no ``@token`` was given),
        or None if the selector is not valid.

    Examples:
        >>> parse_selector("@scope/pkg@^2.0.0")
        ('@scope/pkg', '^2.0.0')
        >>> parse_selector("rxjs")
        ('rxjs', None)
    """
    match = _SELECTOR_RE.match(selector)
    if not match:
        return None
    name, token = match.groups()
    return name, token


def is_custom_locator(declared_range: str) -> bool:
    """Return True if a declared range points somewhere other than the registry.

    URLs, local paths, git references and GitHub ``user/repo`` shorthands
    are custom locators; semantic-version ranges and dist-tags are not.
    """
    return (
        declared_range.startswith(_CUSTOM_PREFIXES)
        or _USER_REPO_RE.match(declared_range) is not None
        or _LOCAL_PATH_RE.match(declared_range) is not None
    )


class RequestSetBuilder:
    """Turn selectors into a :class:`RequestSet`.

    Args:
        catalog: Project dependency catalog.
        channel: Dist-tag used when a selector carries no token.
    """

    def __init__(self, catalog: ManifestCatalog, channel: str = DEFAULT_CHANNEL) -> None:
        self.catalog = catalog
        self.channel = channel

    def build(
        self,
        selectors: Sequence[str],
        *,
        all_packages: bool = False,
    ) -> RequestSet:
        """Build the request set.

        Explicit selectors take precedence over ``all_packages``; only a
        bulk request skips packages declared through custom locators.

        Args:
            selectors: ``name`` / ``name@token`` strings.
            all_packages: Request every catalog package when no selector
                is given.

        Returns:
            The initial request set.
        """
        bulk = not selectors and all_packages
        candidates: Iterable[str] = self.catalog.names if bulk else selectors

        entries: Dict[str, VersionToken] = {}
        for selector in candidates:
            parsed = parse_selector(selector)
            if parsed is None:
                logger.warning("Invalid package argument: %r. Skipping.", selector)
                continue

            name, raw_token = parsed
            declared_range = self.catalog.get(name)
            if declared_range is None:
                logger.warning("Package not installed: %r. Skipping.", name)
                continue

            if bulk and is_custom_locator(declared_range):
                logger.warning(
                    "Package %r has a custom version: %r. Skipping.",
                    name,
                    declared_range,
                )
                continue

            if name in entries:
                logger.warning("Package %r requested more than once; using %r.", name, selector)
            entries[name] = parse_token(raw_token or self.channel)

        request_set = RequestSet(entries, bulk=bulk)
        logger.debug("Requested: %s", request_set)
        return request_set
