"""Grow the request set through package groups and peer dependencies.

Two rules are applied to every requested package that has registry
metadata:

* **Group expansion**: names listed in the chosen version's
  ``packageGroup`` that the project declares are requested with the same
  token as the package that lists them.
* **Peer injection**: peer dependencies of the chosen version that are
  not requested yet are requested with their declared range.

Neither rule checks compatibility; that is the validator's job (and can
be overridden with ``--force``).

The walk is a single pass over the fetched metadata, in catalog order,
against the request set as grown so far. A package added by the pass is
expanded in turn only if its own metadata comes later in that order; the
pass is not repeated to a fixed point.
"""

from __future__ import annotations

from typing import List, Mapping, Optional, Tuple

from depshift.constants import DEFAULT_METADATA_KEY
from depshift.core.catalog import ManifestCatalog
from depshift.core.metadata import read_package_group
from depshift.models.manifest import PackageManifestSnapshot, RegistrySnapshot
from depshift.models.request_set import RequestSet
from depshift.models.version_token import Range, VersionToken
from depshift.utils.logger import get_logger

logger = get_logger("expansion")

__all__ = [
    "chosen_manifest",
    "expand_package_group",
    "inject_peer_dependencies",
    "expand_request_set",
]

Addition = Tuple[str, VersionToken]


def chosen_manifest(
    snapshot: RegistrySnapshot,
    token: VersionToken,
) -> Optional[PackageManifestSnapshot]:
    """Return the manifest a token selects, without range matching.

    The raw token is looked up in ``dist-tags`` first, whatever its type;
    otherwise it is used as a literal version key.
    """
    version = snapshot.tagged_version(token.raw)
    if version is None:
        version = token.raw
    return snapshot.manifest(version)


def expand_package_group(
    request_set: RequestSet,
    catalog: ManifestCatalog,
    snapshot: RegistrySnapshot,
    metadata_key: str = DEFAULT_METADATA_KEY,
) -> List[Addition]:
    """Return the group members ``snapshot`` pulls into the request set."""
    token = request_set.get(snapshot.name)
    if token is None:
        return []

    manifest = chosen_manifest(snapshot, token)
    if manifest is None:
        return []

    group = read_package_group(manifest, metadata_key)
    if not group:
        return []

    additions = [
        (name, token)
        for name in group
        if name not in request_set and name in catalog
    ]
    for name, _ in additions:
        logger.debug("Adding %s from package group of %s (%s)", name, snapshot.name, token)
    return additions


def inject_peer_dependencies(
    request_set: RequestSet,
    snapshot: RegistrySnapshot,
) -> List[Addition]:
    """Return the peers of ``snapshot``'s chosen version not yet requested."""
    token = request_set.get(snapshot.name)
    if token is None:
        return []

    manifest = chosen_manifest(snapshot, token)
    if manifest is None:
        return []

    additions: List[Addition] = [
        (peer, Range(range_))
        for peer, range_ in manifest.peer_dependencies.items()
        if peer not in request_set
    ]
    for peer, range_token in additions:
        logger.debug("Adding peer %s@%s of %s", peer, range_token, snapshot.name)
    return additions


def expand_request_set(
    request_set: RequestSet,
    catalog: ManifestCatalog,
    snapshots: Mapping[str, RegistrySnapshot],
    metadata_key: str = DEFAULT_METADATA_KEY,
) -> RequestSet:
    """Apply group expansion, then peer injection, to every fetched package.

    Args:
        request_set: Request set built from the selectors.
        catalog: Project dependency catalog.
        snapshots: Registry metadata by package name, in catalog order.
        metadata_key: Manifest field holding upgrade metadata.

    Returns:
        The grown request set. ``request_set`` itself is not modified.
    """
    current = request_set
    for snapshot in snapshots.values():
        current = current.with_additions(
            expand_package_group(current, catalog, snapshot, metadata_key)
        )
        current = current.with_additions(inject_peer_dependencies(current, snapshot))

    added = len(current) - len(request_set)
    if added:
        logger.info("Added %d package(s) from package groups and peers", added)
    return current
