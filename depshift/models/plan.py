"""
Update plan models for depshift.

A plan is data, not action: the new manifest content (if it changed), and
the migration tasks to run after the install step. Nothing here executes
anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class MigrationTask:
    """Run one package's migrations between two versions.

    Attributes:
        package: Package name.
        collection: Path of the migration collection.
        from_version: Version migrating from.
        to_version: Version migrating to.
        depends_on_install: True when the task must wait for the
            manifest-install step of the same plan.
    """

    package: str
    collection: str
    from_version: str
    to_version: str
    depends_on_install: bool = False

    def to_json(self) -> Dict[str, Any]:
        return {
            "package": self.package,
            "collection": self.collection,
            "from": self.from_version,
            "to": self.to_version,
            "dependsOnInstall": self.depends_on_install,
        }


@dataclass
class UpdatePlan:
    """Result of planning an update.

    Attributes:
        manifest: New manifest content, or None when it does not change.
        install_required: True when an install step must run first.
        migrations: Migration tasks, in execution order.
    """

    manifest: Optional[Mapping[str, Any]] = None
    install_required: bool = False
    migrations: List[MigrationTask] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True if the plan neither changes the manifest nor migrates."""
        return self.manifest is None and not self.migrations

    def to_json(self) -> Dict[str, Any]:
        return {
            "manifest": dict(self.manifest) if self.manifest is not None else None,
            "installRequired": self.install_required,
            "migrations": [task.to_json() for task in self.migrations],
        }


@dataclass(frozen=True)
class ReportEntry:
    """One row of the outdated-packages report."""

    name: str
    installed_version: str
    available_version: str
    has_migrations: bool
    command: str

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "installed": self.installed_version,
            "available": self.available_version,
            "hasMigrations": self.has_migrations,
            "command": self.command,
        }
