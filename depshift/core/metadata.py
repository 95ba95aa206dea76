"""Upgrade metadata extraction.

Published manifests may carry an upgrade-metadata block (by default the
``ng-update`` field)::

    "ng-update": {
        "packageGroup": ["@scope/core", "@scope/common"],
        "requirements": {"typescript": ">=5.0.0"},
        "migrations": "./migrations/migration-collection.json"
    }

Each field is validated on its own. A malformed field is replaced by its
default and reported with a warning; it never fails the run.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

from depshift.constants import DEFAULT_METADATA_KEY
from depshift.models.manifest import PackageManifestSnapshot, UpdateMetadata
from depshift.utils.logger import get_logger

logger = get_logger("metadata")

_MISSING = object()


def get_metadata_block(
    manifest: PackageManifestSnapshot,
    metadata_key: str = DEFAULT_METADATA_KEY,
) -> Optional[Mapping[str, Any]]:
    """Return the raw metadata block, or None if absent or not an object."""
    block = manifest.raw.get(metadata_key)
    if not isinstance(block, Mapping):
        return None
    return block


def read_package_group(
    manifest: PackageManifestSnapshot,
    metadata_key: str = DEFAULT_METADATA_KEY,
) -> Optional[Tuple[str, ...]]:
    """Return the declared package group.

    Returns:
        The group, an empty tuple when none is declared, or None when the
        declaration is malformed (a warning has been logged).
    """
    block = get_metadata_block(manifest, metadata_key)
    if block is None:
        return ()

    group = block.get("packageGroup", _MISSING)
    if group is _MISSING or not group:
        return ()

    if not isinstance(group, list) or any(not isinstance(x, str) for x in group):
        logger.warning(
            "packageGroup metadata of package %s is malformed. Ignoring.",
            manifest.name,
        )
        return None

    return tuple(group)


def extract_update_metadata(
    manifest: PackageManifestSnapshot,
    metadata_key: str = DEFAULT_METADATA_KEY,
) -> UpdateMetadata:
    """Validate and normalize the upgrade metadata of ``manifest``."""
    block = get_metadata_block(manifest, metadata_key)
    if block is None:
        return UpdateMetadata()

    package_group = read_package_group(manifest, metadata_key) or ()

    requirements: Dict[str, str] = {}
    raw_requirements = block.get("requirements")
    if raw_requirements:
        if not isinstance(raw_requirements, Mapping) or any(
            not isinstance(v, str) for v in raw_requirements.values()
        ):
            logger.warning(
                "requirements metadata of package %s is malformed. Ignoring.",
                manifest.name,
            )
        else:
            requirements = dict(raw_requirements)

    migrations: Optional[str] = None
    raw_migrations = block.get("migrations")
    if raw_migrations:
        if not isinstance(raw_migrations, str):
            logger.warning(
                "migrations metadata of package %s is malformed. Ignoring.",
                manifest.name,
            )
        else:
            migrations = raw_migrations

    return UpdateMetadata(
        package_group=package_group,
        requirements=requirements,
        migrations=migrations,
    )
