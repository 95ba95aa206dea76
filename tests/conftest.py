from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Generator, Mapping, Optional

import pytest
import semantic_version

from depshift.core.metadata import extract_update_metadata
from depshift.models import (
    InstalledState,
    PackageInfo,
    RegistrySnapshot,
    TargetState,
)


@pytest.fixture(autouse=True)
def reset_depshift_logger() -> Generator[None, None, None]:
    """Undo ``setup_logging`` so caplog keeps seeing depshift records."""
    yield
    root_logger = logging.getLogger("depshift")
    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)
    root_logger.propagate = True


def build_snapshot(
    name: str,
    versions: Mapping[str, Optional[Dict[str, Any]]],
    dist_tags: Optional[Dict[str, str]] = None,
) -> RegistrySnapshot:
    """Build registry metadata from ``version -> extra manifest fields``.

    ``latest`` defaults to the highest version.
    """
    if dist_tags is None:
        dist_tags = {"latest": max(versions, key=semantic_version.Version)}
    packument = {
        "name": name,
        "dist-tags": dist_tags,
        "versions": {
            version: {"name": name, "version": version, **(fields or {})}
            for version, fields in versions.items()
        },
    }
    return RegistrySnapshot.from_packument(name, packument)


def build_info(
    snapshot: RegistrySnapshot,
    installed: str,
    target: Optional[str] = None,
    declared_range: Optional[str] = None,
) -> PackageInfo:
    """Build a resolved package straight from registry metadata."""
    installed_manifest = snapshot.versions[installed]
    target_state = None
    if target is not None:
        target_manifest = snapshot.versions[target]
        target_state = TargetState(
            version=target,
            manifest=target_manifest,
            update_metadata=extract_update_metadata(target_manifest),
        )
    return PackageInfo(
        name=snapshot.name,
        installed=InstalledState(
            version=installed,
            manifest=installed_manifest,
            update_metadata=extract_update_metadata(installed_manifest),
        ),
        target=target_state,
        declared_range=declared_range or f"^{installed}",
        registry=snapshot,
    )


@pytest.fixture
def make_snapshot() -> Callable[..., RegistrySnapshot]:
    return build_snapshot


@pytest.fixture
def make_info() -> Callable[..., PackageInfo]:
    return build_info
