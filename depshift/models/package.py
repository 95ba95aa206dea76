"""
Resolved package model for depshift.

A :class:`PackageInfo` records, for one package of the project, what is
installed today and (optionally) what it would move to. Instances are
built once by the resolver and are the only input to validation and
planning.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from depshift.models.manifest import (
    PackageManifestSnapshot,
    RegistrySnapshot,
    UpdateMetadata,
)
from depshift.utils.version_utils import get_update_type, is_greater


@dataclass(frozen=True)
class InstalledState:
    """The version currently installed, with its manifest and metadata."""

    version: str
    manifest: PackageManifestSnapshot
    update_metadata: UpdateMetadata


@dataclass(frozen=True)
class TargetState:
    """The version a package would be upgraded to."""

    version: str
    manifest: PackageManifestSnapshot
    update_metadata: UpdateMetadata


@dataclass(frozen=True)
class PackageInfo:
    """
    Everything known about one package after resolution.

    Attributes:
        name: Package name as declared in ``package.json``.
        installed: Installed state.
        target: Target state, or None when no change is planned.
        declared_range: Range declared in ``package.json``.
        registry: Registry metadata the states were resolved from.
    """

    name: str
    installed: InstalledState
    target: Optional[TargetState]
    declared_range: str
    registry: RegistrySnapshot

    def __post_init__(self) -> None:
        if self.target is not None and not is_greater(
            self.target.version, self.installed.version
        ):
            raise ValueError(
                f"Target {self.target.version} of {self.name} is not newer "
                f"than installed {self.installed.version}"
            )

    @property
    def has_update(self) -> bool:
        """True if a target version is planned."""
        return self.target is not None

    @property
    def effective_version(self) -> str:
        """Version the package will have once the plan is applied."""
        return self.target.version if self.target else self.installed.version

    @property
    def effective_manifest(self) -> PackageManifestSnapshot:
        """Manifest of :attr:`effective_version`."""
        return self.target.manifest if self.target else self.installed.manifest

    @property
    def update_type(self) -> str:
        """Classification of the planned change (major/minor/patch/...)."""
        if self.target is None:
            return "same"
        return get_update_type(self.installed.version, self.target.version)

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable summary."""
        return {
            "name": self.name,
            "declared_range": self.declared_range,
            "installed": self.installed.version,
            "target": self.target.version if self.target else None,
        }
