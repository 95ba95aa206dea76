"""
Unified data model exports for depshift.

This module re-exports all core data models to provide a stable and
convenient public API.

Example:
    >>> from depshift.models import PackageInfo, RequestSet, parse_token
"""

from __future__ import annotations

from depshift.models.version_token import (
    ExactVersion,
    Range,
    Tag,
    VersionToken,
    parse_token,
)
from depshift.models.manifest import (
    PackageManifestSnapshot,
    RegistrySnapshot,
    UpdateMetadata,
)
from depshift.models.package import InstalledState, PackageInfo, TargetState
from depshift.models.request_set import RequestSet
from depshift.models.violation import PeerViolation
from depshift.models.plan import MigrationTask, ReportEntry, UpdatePlan

__all__ = [
    "Tag",
    "ExactVersion",
    "Range",
    "VersionToken",
    "parse_token",
    "UpdateMetadata",
    "PackageManifestSnapshot",
    "RegistrySnapshot",
    "InstalledState",
    "TargetState",
    "PackageInfo",
    "RequestSet",
    "PeerViolation",
    "MigrationTask",
    "ReportEntry",
    "UpdatePlan",
]
