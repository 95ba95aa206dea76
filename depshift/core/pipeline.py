"""End-to-end update pipeline.

::

    package.json ─► ManifestCatalog ─► RequestSetBuilder
                         │
                         ▼
               registry fetch (concurrent, full barrier)
                         │
                         ▼
      expand_request_set (package groups, peer dependencies)
                         │
                         ▼
               PackageInfoResolver ─► validator ─► UpdatePlanBuilder

:func:`resolve_update` runs every synchronous stage over metadata that
has already been fetched, so it can be driven with frozen snapshots.
:func:`run_update` adds the registry fetch in front of it.

Typical usage::

    async with HTTPClient() as http:
        outcome = await run_update(
            manifest,
            UpdateOptions(packages=["@angular/core"]),
            NpmRegistry(http),
            probe=NodeModulesProbe(Path.cwd()),
        )
    if outcome.plan is not None:
        print(outcome.plan.to_json())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from depshift.constants import DEFAULT_CHANNEL, DEFAULT_METADATA_KEY, NEXT_CHANNEL
from depshift.core.catalog import ManifestCatalog
from depshift.core.expansion import expand_request_set
from depshift.core.planner import (
    UpdatePlanBuilder,
    build_migrate_only_plan,
    build_report,
)
from depshift.core.registry import FetchResult, NpmRegistry
from depshift.core.request_set import RequestSetBuilder
from depshift.core.resolver import InstalledProbe, PackageInfoResolver, no_probe
from depshift.core.validator import validate_update_packages
from depshift.exceptions import InvalidOptionError, RegistryPackageNotFoundError
from depshift.models.manifest import RegistrySnapshot
from depshift.models.package import PackageInfo
from depshift.models.plan import ReportEntry, UpdatePlan
from depshift.models.request_set import RequestSet
from depshift.models.violation import PeerViolation
from depshift.utils.logger import get_logger
from depshift.utils.version_utils import format_migration_version

logger = get_logger("pipeline")

__all__ = [
    "UpdateOptions",
    "UpdateOutcome",
    "apply_fetch_policy",
    "resolve_update",
    "run_update",
]


@dataclass
class UpdateOptions:
    """Options of one update run.

    Attributes:
        packages: Selectors (``name`` or ``name@token``).
        all: Request every package of the manifest when ``packages`` is empty.
        next: Use the ``next`` dist-tag instead of ``latest``.
        force: Do not fail on peer-dependency violations.
        migrate_only: Only schedule migrations; never change the manifest.
        from_version: With ``migrate_only``: version to migrate from.
        to_version: With ``from_version``: version to migrate to.
        metadata_key: Manifest field holding upgrade metadata.
    """

    packages: List[str] = field(default_factory=list)
    all: bool = False
    next: bool = False
    force: bool = False
    migrate_only: bool = False
    from_version: Optional[str] = None
    to_version: Optional[str] = None
    metadata_key: str = DEFAULT_METADATA_KEY

    @property
    def channel(self) -> str:
        return NEXT_CHANNEL if self.next else DEFAULT_CHANNEL

    def normalized(self) -> "UpdateOptions":
        """Return a copy with selectors split and versions normalized.

        Raises:
            InvalidOptionError: The options are inconsistent.
        """
        packages: List[str] = []
        for entry in self.packages:
            packages.extend(part for part in entry.split(",") if part)

        if self.to_version and not self.from_version:
            raise InvalidOptionError("--to requires --from.", option="to")

        if self.migrate_only and self.from_version and len(packages) != 1:
            raise InvalidOptionError(
                "--from requires that only a single package be passed.",
                option="from",
            )

        return UpdateOptions(
            packages=packages,
            all=self.all,
            next=self.next,
            force=self.force,
            migrate_only=self.migrate_only,
            from_version=format_migration_version(self.from_version),
            to_version=format_migration_version(self.to_version),
            metadata_key=self.metadata_key,
        )


@dataclass
class UpdateOutcome:
    """What a run produced.

    Exactly one of ``plan`` and ``report`` is set: ``report`` when nothing
    was requested, ``plan`` otherwise.
    """

    request_set: RequestSet
    info_map: Dict[str, PackageInfo]
    plan: Optional[UpdatePlan] = None
    report: Optional[List[ReportEntry]] = None
    violations: List[PeerViolation] = field(default_factory=list)


def apply_fetch_policy(
    fetched: FetchResult,
    request_set: RequestSet,
) -> Dict[str, RegistrySnapshot]:
    """Decide what to do about packages whose metadata is missing.

    Unrequested packages are dropped quietly (they may be private). A
    requested package is fatal, unless the request was a bulk one.

    Raises:
        RegistryPackageNotFoundError: A requested package is missing.
    """
    for name, error in fetched.missing.items():
        if name not in request_set:
            logger.debug("Ignoring %s, not found on the registry: %s", name, error)
            continue

        if request_set.bulk:
            logger.warning("Package %r was not found on the registry. Skipping.", name)
            continue

        raise RegistryPackageNotFoundError(
            f"Package {name!r} was not found on the registry. "
            "Cannot continue as this may be an error.",
            package_name=name,
        ) from error

    return fetched.snapshots


def resolve_update(
    manifest: Mapping[str, Any],
    snapshots: Mapping[str, RegistrySnapshot],
    options: UpdateOptions,
    *,
    request_set: Optional[RequestSet] = None,
    probe: InstalledProbe = no_probe,
) -> UpdateOutcome:
    """Run every stage after the registry fetch.

    Args:
        manifest: The project manifest.
        snapshots: Registry metadata by name, in catalog order.
        options: Normalized run options.
        request_set: Initial request set; built from ``options`` if omitted.
        probe: Installed-version probe.

    Returns:
        The outcome of the run.

    Raises:
        UnresolvableRangeError: A declared range matches no known version.
        PeerCompatibilityError: Validation failed and ``force`` is unset.
    """
    catalog = ManifestCatalog.from_manifest(manifest)
    if request_set is None:
        request_set = RequestSetBuilder(catalog, options.channel).build(
            options.packages, all_packages=options.all
        )

    expanded = expand_request_set(request_set, catalog, snapshots, options.metadata_key)
    resolver = PackageInfoResolver(probe=probe, metadata_key=options.metadata_key)
    info_map = resolver.resolve_all(expanded, catalog, snapshots)

    if not expanded:
        report = build_report(info_map, options.channel, options.metadata_key)
        return UpdateOutcome(expanded, info_map, report=report)

    if options.migrate_only and options.from_version:
        plan = build_migrate_only_plan(
            info_map.get(options.packages[0]) if options.packages else None,
            options.from_version,
            options.to_version,
        )
        return UpdateOutcome(expanded, info_map, plan=plan)

    violations = validate_update_packages(info_map, options.force)
    plan = UpdatePlanBuilder(manifest).build(info_map, migrate_only=options.migrate_only)
    return UpdateOutcome(expanded, info_map, plan=plan, violations=violations)


async def run_update(
    manifest: Mapping[str, Any],
    options: UpdateOptions,
    registry: NpmRegistry,
    *,
    probe: InstalledProbe = no_probe,
) -> UpdateOutcome:
    """Fetch registry metadata for the whole catalog, then resolve.

    Raises:
        InvalidOptionError: ``options`` are inconsistent.
        RegistryPackageNotFoundError: See :func:`apply_fetch_policy`.
        UnresolvableRangeError: See :func:`resolve_update`.
        PeerCompatibilityError: See :func:`resolve_update`.
    """
    options = options.normalized()
    catalog = ManifestCatalog.from_manifest(manifest)
    request_set = RequestSetBuilder(catalog, options.channel).build(
        options.packages, all_packages=options.all
    )

    fetched = await registry.fetch_snapshots(catalog.names)
    snapshots = apply_fetch_policy(fetched, request_set)

    return resolve_update(
        manifest,
        snapshots,
        options,
        request_set=request_set,
        probe=probe,
    )
