"""
Manifest and registry snapshot models for depshift.

These are read-only views of JSON documents: a published package manifest
(one entry of a registry packument's ``versions`` map) and the packument
itself. Both keep the raw mapping around so upgrade metadata can be
validated later, field by field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from depshift.constants import DEPENDENCIES, DEV_DEPENDENCIES, PEER_DEPENDENCIES


def _string_map(value: Any) -> Dict[str, str]:
    """Return the string-to-string entries of ``value``, or an empty dict."""
    if not isinstance(value, Mapping):
        return {}
    return {k: v for k, v in value.items() if isinstance(k, str) and isinstance(v, str)}


@dataclass(frozen=True)
class UpdateMetadata:
    """Upgrade metadata published by a package.

    Attributes:
        package_group: Packages that should be upgraded together with this one.
        requirements: Name -> range requirements declared for the upgrade.
        migrations: Path to the migration collection, if the package ships one.
    """

    package_group: Tuple[str, ...] = ()
    requirements: Mapping[str, str] = field(default_factory=dict)
    migrations: Optional[str] = None


@dataclass(frozen=True)
class PackageManifestSnapshot:
    """One published version of a package (a ``package.json`` document)."""

    name: str
    version: str
    dependencies: Mapping[str, str] = field(default_factory=dict)
    dev_dependencies: Mapping[str, str] = field(default_factory=dict)
    peer_dependencies: Mapping[str, str] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        *,
        name: Optional[str] = None,
        version: Optional[str] = None,
    ) -> "PackageManifestSnapshot":
        """Build a snapshot from a manifest mapping.

        ``name`` and ``version`` fill in for documents that omit them.
        """
        raw_name = data.get("name")
        raw_version = data.get("version")
        return cls(
            name=raw_name if isinstance(raw_name, str) else (name or ""),
            version=raw_version if isinstance(raw_version, str) else (version or ""),
            dependencies=_string_map(data.get(DEPENDENCIES)),
            dev_dependencies=_string_map(data.get(DEV_DEPENDENCIES)),
            peer_dependencies=_string_map(data.get(PEER_DEPENDENCIES)),
            raw=data,
        )


@dataclass(frozen=True)
class RegistrySnapshot:
    """Registry metadata for one package name.

    Attributes:
        name: Package name.
        dist_tags: Tag name -> version.
        versions: Version -> published manifest.
    """

    name: str
    dist_tags: Mapping[str, str] = field(default_factory=dict)
    versions: Mapping[str, PackageManifestSnapshot] = field(default_factory=dict)

    @classmethod
    def from_packument(cls, name: str, data: Mapping[str, Any]) -> "RegistrySnapshot":
        """Parse an npm packument, skipping version entries that are not objects."""
        versions: Dict[str, PackageManifestSnapshot] = {}
        raw_versions = data.get("versions")
        if isinstance(raw_versions, Mapping):
            for version, manifest in raw_versions.items():
                if isinstance(manifest, Mapping):
                    versions[version] = PackageManifestSnapshot.from_dict(
                        manifest, name=name, version=version
                    )

        return cls(
            name=name,
            dist_tags=_string_map(data.get("dist-tags")),
            versions=versions,
        )

    def tagged_version(self, tag: str) -> Optional[str]:
        """Return the version a dist-tag points at, if any."""
        return self.dist_tags.get(tag)

    def manifest(self, version: Optional[str]) -> Optional[PackageManifestSnapshot]:
        """Return the manifest of ``version``, or None if it is not published."""
        if version is None:
            return None
        return self.versions.get(version)
