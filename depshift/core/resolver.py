"""Resolve installed and target versions for every package of the project.

For each package with registry metadata the resolver answers two
questions:

1. **What is installed?** The version found by the installed-version
   probe (``node_modules/<name>/package.json``) when there is one,
   otherwise the highest published version matching the range declared
   in ``package.json``.
2. **What would it move to?** Only for requested packages: the version a
   dist-tag points at, or the highest published version matching the
   requested range or exact version. A target that is not strictly newer
   than the installed version is dropped.

Typical usage::

    resolver = PackageInfoResolver(probe=NodeModulesProbe(project_root))
    info_map = resolver.resolve_all(request_set, catalog, snapshots)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from depshift.constants import DEFAULT_METADATA_KEY, INSTALL_DIRNAME, MANIFEST_FILENAME
from depshift.core.catalog import ManifestCatalog
from depshift.core.metadata import extract_update_metadata
from depshift.exceptions import UnresolvableRangeError
from depshift.models.manifest import PackageManifestSnapshot, RegistrySnapshot
from depshift.models.package import InstalledState, PackageInfo, TargetState
from depshift.models.request_set import RequestSet
from depshift.models.version_token import ExactVersion, Tag, VersionToken
from depshift.utils.logger import get_logger
from depshift.utils.version_utils import is_greater, max_satisfying

logger = get_logger("resolver")

__all__ = ["InstalledProbe", "NodeModulesProbe", "PackageInfoResolver", "no_probe"]

#: Returns the installed manifest of a package, or None if unknown.
InstalledProbe = Callable[[str], Optional[Mapping[str, Any]]]


def no_probe(name: str) -> Optional[Mapping[str, Any]]:
    """Probe that never knows what is installed."""
    return None


class NodeModulesProbe:
    """Read installed manifests from ``<root>/node_modules``.

    A missing or unreadable manifest means "unknown", never an error.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def __call__(self, name: str) -> Optional[Mapping[str, Any]]:
        path = self.root / INSTALL_DIRNAME / name / MANIFEST_FILENAME
        if not path.is_file():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.debug("Ignoring unreadable installed manifest %s: %s", path, exc)
            return None

        if not isinstance(data, dict) or not isinstance(data.get("version"), str):
            logger.debug("Installed manifest %s has no version", path)
            return None
        return data


class PackageInfoResolver:
    """Build :class:`PackageInfo` records from registry snapshots.

    Args:
        probe: Installed-version probe.
        metadata_key: Manifest field holding upgrade metadata.
    """

    def __init__(
        self,
        probe: InstalledProbe = no_probe,
        metadata_key: str = DEFAULT_METADATA_KEY,
    ) -> None:
        self.probe = probe
        self.metadata_key = metadata_key

    def resolve_all(
        self,
        request_set: RequestSet,
        catalog: ManifestCatalog,
        snapshots: Mapping[str, RegistrySnapshot],
    ) -> Dict[str, PackageInfo]:
        """Resolve every package that has registry metadata.

        Returns:
            ``name -> PackageInfo`` in the order of ``snapshots``.

        Raises:
            UnresolvableRangeError: A declared range matches no known version.
        """
        info_map: Dict[str, PackageInfo] = {}
        for name, snapshot in snapshots.items():
            info_map[name] = self.resolve(name, request_set.get(name), catalog, snapshot)
        return info_map

    def resolve(
        self,
        name: str,
        token: Optional[VersionToken],
        catalog: ManifestCatalog,
        snapshot: RegistrySnapshot,
    ) -> PackageInfo:
        """Resolve one package.

        Args:
            name: Package name.
            token: Requested token, or None when the package is not requested.
            catalog: Project dependency catalog.
            snapshot: Registry metadata of the package.

        Raises:
            UnresolvableRangeError: See :meth:`resolve_all`.
        """
        declared_range = catalog.get(name)
        if declared_range is None:
            raise UnresolvableRangeError(
                f"Package {name!r} was not found in package.json.",
                package_name=name,
            )

        installed = self._resolve_installed(name, declared_range, snapshot)
        target = self._resolve_target(name, token, installed, declared_range, snapshot)

        return PackageInfo(
            name=name,
            installed=installed,
            target=target,
            declared_range=declared_range,
            registry=snapshot,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve_installed(
        self,
        name: str,
        declared_range: str,
        snapshot: RegistrySnapshot,
    ) -> InstalledState:
        probed = self.probe(name)
        version: Optional[str] = probed.get("version") if probed else None

        if not version:
            version = max_satisfying(snapshot.versions.keys(), declared_range)
            if version is None:
                raise UnresolvableRangeError(
                    f"No published version of {name!r} satisfies {declared_range!r}.",
                    package_name=name,
                    declared_range=declared_range,
                )

        manifest = snapshot.manifest(version)
        if manifest is None and probed is not None:
            manifest = PackageManifestSnapshot.from_dict(probed, name=name, version=version)
        if manifest is None:
            raise UnresolvableRangeError(
                f"Package {name!r} has no version {version!r}.",
                package_name=name,
                declared_range=declared_range,
            )

        return InstalledState(
            version=version,
            manifest=manifest,
            update_metadata=extract_update_metadata(manifest, self.metadata_key),
        )

    def _resolve_target(
        self,
        name: str,
        token: Optional[VersionToken],
        installed: InstalledState,
        declared_range: str,
        snapshot: RegistrySnapshot,
    ) -> Optional[TargetState]:
        if token is None:
            return None

        version = self._target_candidate(name, token, snapshot)
        if version is None:
            return None

        if not is_greater(version, installed.version):
            logger.debug(
                "Package %s already satisfied by package.json (%s).",
                name,
                declared_range,
            )
            return None

        manifest = snapshot.versions[version]
        return TargetState(
            version=version,
            manifest=manifest,
            update_metadata=extract_update_metadata(manifest, self.metadata_key),
        )

    @staticmethod
    def _target_candidate(
        name: str,
        token: VersionToken,
        snapshot: RegistrySnapshot,
    ) -> Optional[str]:
        # dist-tags win over ranges, even for tag names like "v2" or "x"
        version = snapshot.tagged_version(token.raw)
        if version is not None:
            if version not in snapshot.versions:
                logger.debug("Dist-tag %r of %s points at unknown %s", token.raw, name, version)
                return None
            return version

        if isinstance(token, Tag):
            logger.debug("Package %s has no dist-tag %r", name, token.raw)
            return None

        if isinstance(token, ExactVersion) and token.raw in snapshot.versions:
            return token.raw

        version = max_satisfying(snapshot.versions.keys(), token.raw)
        if version is None:
            logger.debug("No published version of %s matches %r", name, token.raw)
        return version
