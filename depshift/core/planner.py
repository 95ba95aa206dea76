"""Turn a validated set of packages into an update plan.

The plan has two parts:

1. **Manifest diff**: each upgraded package's version is written into
   the first manifest section that declares it, following
   :data:`SECTION_RULES`. The same rule says which weaker sections lose
   their duplicate entry.
2. **Migration tasks**: one per upgraded package whose target version
   declares a migration collection. They run after the install step
   whenever the manifest changed.

Two side modes live here as well: a migrate-only plan for a single
package between explicit versions, and the read-only outdated-packages
report shown when nothing was requested.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from depshift.constants import (
    DEFAULT_CHANNEL,
    DEFAULT_METADATA_KEY,
    DEPENDENCIES,
    DEV_DEPENDENCIES,
    PEER_DEPENDENCIES,
)
from depshift.core.catalog import serialize_manifest
from depshift.core.metadata import extract_update_metadata, get_metadata_block
from depshift.models.package import PackageInfo
from depshift.models.plan import MigrationTask, ReportEntry, UpdatePlan
from depshift.utils.logger import get_logger
from depshift.utils.version_utils import is_greater

logger = get_logger("planner")

__all__ = [
    "SECTION_RULES",
    "UpdatePlanBuilder",
    "apply_manifest_update",
    "build_migrate_only_plan",
    "build_report",
    "collection_path",
]

#: ``(section, sections cleared of the same name)``, in priority order.
SECTION_RULES: Sequence[Tuple[str, Tuple[str, ...]]] = (
    (DEPENDENCIES, (DEV_DEPENDENCIES, PEER_DEPENDENCIES)),
    (DEV_DEPENDENCIES, (PEER_DEPENDENCIES,)),
    (PEER_DEPENDENCIES, ()),
)

_RELATIVE_MARKERS = ("./", "../", "/")


def collection_path(package: str, migrations: str) -> str:
    """Return the collection path of a package's migrations.

    Bare paths are resolved inside the package; paths that are already
    explicit (``./``, ``../``, ``/``) are kept as they are.

    Examples:
        >>> collection_path("@scope/core", "migrations.json")
        '@scope/core/migrations.json'
        >>> collection_path("@scope/core", "./migrations.json")
        './migrations.json'
    """
    if migrations.startswith(_RELATIVE_MARKERS) or migrations in (".", ".."):
        return migrations
    return f"{package}/{migrations}"


def _section(manifest: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
    section = manifest.get(name)
    return section if isinstance(section, dict) else None


def apply_manifest_update(
    manifest: Dict[str, Any],
    name: str,
    version: str,
) -> Optional[str]:
    """Write ``version`` for ``name`` into ``manifest`` in place.

    An entry with an empty range does not count as declared; the next
    section in priority order is tried instead.

    Returns:
        The section that was updated, or None if ``name`` is not declared.
    """
    for section_name, cleared in SECTION_RULES:
        section = _section(manifest, section_name)
        if section is None or not section.get(name):
            continue

        section[name] = version
        for other_name in cleared:
            other = _section(manifest, other_name)
            if other is not None and name in other:
                del other[name]
        return section_name

    return None


class UpdatePlanBuilder:
    """Compute the manifest diff and migration tasks of an update.

    Args:
        manifest: The project manifest as loaded. It is never modified.
    """

    def __init__(self, manifest: Mapping[str, Any]) -> None:
        self.manifest = manifest

    def build(
        self,
        info_map: Mapping[str, PackageInfo],
        *,
        migrate_only: bool = False,
    ) -> UpdatePlan:
        """Build the plan for every package with a target.

        Args:
            info_map: Resolved (and validated) packages.
            migrate_only: Schedule migrations without touching the manifest.

        Returns:
            The update plan. It is empty when the manifest would not change
            and ``migrate_only`` is unset.
        """
        updated: Dict[str, Any] = copy.deepcopy(dict(self.manifest))
        to_install = [
            (info, info.target) for info in info_map.values() if info.target is not None
        ]

        for info, target in to_install:
            logger.info(
                "Updating package.json with dependency %s @ %r (was %r)...",
                info.name,
                target.version,
                info.installed.version,
            )
            if apply_manifest_update(updated, info.name, target.version) is None:
                logger.warning("Package %s was not found in dependencies.", info.name)

        changed = serialize_manifest(self.manifest) != serialize_manifest(updated)
        if not changed and not migrate_only:
            logger.debug("package.json is unchanged; nothing to do")
            return UpdatePlan()

        install_required = not migrate_only
        migrations: List[MigrationTask] = []
        for info, target in to_install:
            migrations_path = target.update_metadata.migrations
            if not migrations_path:
                continue
            migrations.append(
                MigrationTask(
                    package=info.name,
                    collection=collection_path(info.name, migrations_path),
                    from_version=info.installed.version,
                    to_version=target.version,
                    depends_on_install=install_required,
                )
            )

        return UpdatePlan(
            manifest=updated if install_required else None,
            install_required=install_required,
            migrations=migrations,
        )


def build_migrate_only_plan(
    info: Optional[PackageInfo],
    from_version: str,
    to_version: Optional[str] = None,
) -> UpdatePlan:
    """Plan the migrations of one package between explicit versions.

    Args:
        info: The resolved package, or None if it could not be resolved.
        from_version: Version to migrate from.
        to_version: Version to migrate to; defaults to the installed version.

    Returns:
        A plan with at most one migration task and no manifest change.
    """
    if info is None:
        logger.warning("Package to migrate was not found. Nothing to do.")
        return UpdatePlan()

    migrations_path = info.installed.update_metadata.migrations
    if not migrations_path:
        logger.warning("Package %s does not declare migrations.", info.name)
        return UpdatePlan()

    task = MigrationTask(
        package=info.name,
        collection=collection_path(info.name, migrations_path),
        from_version=from_version,
        to_version=to_version or info.installed.version,
    )
    return UpdatePlan(migrations=[task])


def build_report(
    info_map: Mapping[str, PackageInfo],
    channel: str = DEFAULT_CHANNEL,
    metadata_key: str = DEFAULT_METADATA_KEY,
) -> List[ReportEntry]:
    """List outdated packages that publish upgrade metadata.

    Args:
        info_map: Resolved packages.
        channel: Dist-tag to compare against (``latest`` or ``next``).
        metadata_key: Manifest field holding upgrade metadata.

    Returns:
        Report rows sorted by package name.
    """
    entries: List[ReportEntry] = []

    for name in sorted(info_map):
        info = info_map[name]
        version = info.registry.tagged_version(channel)
        target = info.registry.manifest(version)
        if version is None or target is None:
            continue
        if not is_greater(version, info.installed.version):
            continue
        if get_metadata_block(target, metadata_key) is None:
            continue

        has_migrations = extract_update_metadata(target, metadata_key).migrations is not None
        command = f"depshift update {name}" if has_migrations else f"npm install {name}"
        entries.append(
            ReportEntry(
                name=name,
                installed_version=info.installed.version,
                available_version=version,
                has_migrations=has_migrations,
                command=command,
            )
        )

    return entries
