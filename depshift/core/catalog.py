"""Project manifest loading and the dependency catalog.

The catalog is the flat ``name -> declared range`` view of a
``package.json`` that every later stage consults. Sections are merged in
increasing priority (``peerDependencies``, then ``devDependencies``, then
``dependencies``), so a name declared in several sections resolves to its
strongest declaration while keeping the position where it first appeared.

Typical usage::

    from depshift.core.catalog import ManifestCatalog, load_manifest

    manifest = load_manifest(Path("package.json"))
    catalog = ManifestCatalog.from_manifest(manifest)

    for name in catalog.names:
        print(name, catalog.get(name))
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

from depshift.constants import (
    DEPENDENCIES,
    DEV_DEPENDENCIES,
    MANIFEST_INDENT,
    PEER_DEPENDENCIES,
)
from depshift.exceptions import (
    FileOperationError,
    ManifestNotFoundError,
    ManifestParseError,
)
from depshift.utils.filesystem import safe_read_file
from depshift.utils.logger import get_logger

logger = get_logger("catalog")

__all__ = ["ManifestCatalog", "load_manifest", "parse_manifest", "serialize_manifest"]

#: Sections merged into the catalog, lowest priority first.
CATALOG_SECTIONS = (PEER_DEPENDENCIES, DEV_DEPENDENCIES, DEPENDENCIES)


class ManifestCatalog:
    """Declared dependency ranges of the project, keyed by package name.

    Args:
        entries: ``name -> range`` mapping, in catalog order.
        manifest: The manifest the entries were read from.
    """

    def __init__(
        self,
        entries: Mapping[str, str],
        manifest: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._entries: Dict[str, str] = dict(entries)
        self.manifest: Mapping[str, Any] = manifest if manifest is not None else {}

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> "ManifestCatalog":
        """Build the catalog from a parsed ``package.json``.

        Sections that are missing or not objects are treated as empty;
        entries whose range is not a string are skipped with a warning.
        """
        entries: Dict[str, str] = {}

        for section in CATALOG_SECTIONS:
            declared = manifest.get(section)
            if declared is None:
                continue
            if not isinstance(declared, Mapping):
                logger.warning("%s in package.json is not an object. Ignoring.", section)
                continue

            for name, range_ in declared.items():
                if not isinstance(range_, str):
                    logger.warning(
                        "Range of %r in %s is not a string. Ignoring.", name, section
                    )
                    continue
                entries[name] = range_

        logger.debug("Catalog has %d package(s)", len(entries))
        return cls(entries, manifest)

    @property
    def names(self) -> List[str]:
        """Package names in catalog order."""
        return list(self._entries)

    def get(self, name: str) -> Optional[str]:
        """Return the declared range of ``name``, or None."""
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ManifestCatalog({self._entries!r})"


def parse_manifest(content: str, *, file_path: Optional[str] = None) -> Dict[str, Any]:
    """Parse manifest text into a mapping.

    Raises:
        ManifestParseError: The text is not JSON, or not a JSON object.
    """
    try:
        data = json.loads(content)
    except ValueError as exc:
        raise ManifestParseError(
            f"package.json could not be parsed: {exc}",
            file_path=file_path,
        ) from exc

    if not isinstance(data, dict):
        raise ManifestParseError(
            "package.json must contain a JSON object",
            file_path=file_path,
        )
    return data


def load_manifest(path: Path) -> Dict[str, Any]:
    """Read and parse the project manifest at ``path``.

    Raises:
        ManifestNotFoundError: ``path`` does not exist.
        ManifestParseError: ``path`` is not a valid manifest.
    """
    if not path.is_file():
        raise ManifestNotFoundError(
            "Could not find a package.json. Are you in a Node project?",
            file_path=str(path),
        )

    try:
        content = safe_read_file(path)
    except FileOperationError as exc:
        raise ManifestParseError(
            f"package.json could not be read: {exc.message}",
            file_path=str(path),
        ) from exc

    logger.debug("Loaded manifest %s", path)
    return parse_manifest(content, file_path=str(path))


def serialize_manifest(manifest: Mapping[str, Any]) -> str:
    """Render a manifest the way it is written back to disk."""
    return json.dumps(manifest, indent=MANIFEST_INDENT, ensure_ascii=False) + "\n"
