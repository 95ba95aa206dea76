"""
Core resolution, validation and planning for depshift.

This package turns a project manifest plus registry metadata into an
update plan. Only symbols listed in ``__all__`` are public.
"""

from __future__ import annotations

from depshift.core.catalog import (
    ManifestCatalog,
    load_manifest,
    parse_manifest,
    serialize_manifest,
)
from depshift.core.request_set import RequestSetBuilder
from depshift.core.expansion import expand_request_set
from depshift.core.registry import FetchResult, NpmRegistry
from depshift.core.resolver import NodeModulesProbe, PackageInfoResolver
from depshift.core.validator import validate_update_packages
from depshift.core.planner import (
    UpdatePlanBuilder,
    build_migrate_only_plan,
    build_report,
)
from depshift.core.pipeline import (
    UpdateOptions,
    UpdateOutcome,
    resolve_update,
    run_update,
)

__all__ = [
    "ManifestCatalog",
    "load_manifest",
    "parse_manifest",
    "serialize_manifest",
    "RequestSetBuilder",
    "expand_request_set",
    "FetchResult",
    "NpmRegistry",
    "NodeModulesProbe",
    "PackageInfoResolver",
    "validate_update_packages",
    "UpdatePlanBuilder",
    "build_migrate_only_plan",
    "build_report",
    "UpdateOptions",
    "UpdateOutcome",
    "resolve_update",
    "run_update",
]
