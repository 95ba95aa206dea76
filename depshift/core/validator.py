"""Peer-dependency validation of a resolved update.

Two checks run for every package with a planned target:

* **forward**: every peer the *target* version declares must be known
  and its effective version (target if planned, else installed) must
  satisfy the declared range. The first violation ends the check for that
  package.
* **reverse**: every *other* package whose effective manifest declares a
  peer on the upgraded package must accept the new version.

Each check appends to a shared collector and returns whether it found
anything; the results are OR-ed across the whole map so that every
package is checked and every violation is reported in one run.
"""

from __future__ import annotations

import logging
from typing import List, Mapping

from depshift.exceptions import PeerCompatibilityError
from depshift.models.package import PackageInfo
from depshift.models.violation import INCOMPATIBLE, MISSING, PeerViolation
from depshift.utils.logger import get_logger, get_package_logger
from depshift.utils.version_utils import satisfies

logger = get_logger("validation")

__all__ = [
    "check_forward_peers",
    "check_reverse_peers",
    "find_peer_violations",
    "validate_update_packages",
]


def check_forward_peers(
    name: str,
    info_map: Mapping[str, PackageInfo],
    peers: Mapping[str, str],
    violations: List[PeerViolation],
) -> bool:
    """Check the peers declared by ``name``'s target version.

    Returns:
        True if a violation was found (and appended to ``violations``).
    """
    log = get_package_logger(logger, name)
    for peer, range_ in peers.items():
        log.debug("Checking forward peer %s...", peer)
        peer_info = info_map.get(peer)
        if peer_info is None:
            violations.append(PeerViolation(MISSING, name, peer, range_))
            return True

        peer_version = peer_info.effective_version
        if not satisfies(peer_version, range_):
            violations.append(
                PeerViolation(INCOMPATIBLE, name, peer, range_, peer_version)
            )
            return True
    return False


def check_reverse_peers(
    name: str,
    version: str,
    info_map: Mapping[str, PackageInfo],
    violations: List[PeerViolation],
) -> bool:
    """Check that packages peering on ``name`` accept ``version``.

    Returns:
        True if any violation was found.
    """
    log = get_package_logger(logger, name)
    found = False
    for other_name, other in info_map.items():
        if other_name == name:
            continue

        range_ = other.effective_manifest.peer_dependencies.get(name)
        if range_ is None:
            continue

        log.debug("Checking reverse peer %s...", other_name)
        if not satisfies(version, range_):
            violations.append(
                PeerViolation(INCOMPATIBLE, other_name, name, range_, version)
            )
            found = True
    return found


def find_peer_violations(info_map: Mapping[str, PackageInfo]) -> List[PeerViolation]:
    """Run both checks for every package with a target.

    Returns:
        Every violation, in the order found.
    """
    violations: List[PeerViolation] = []
    found = False

    for name, info in info_map.items():
        if info.target is None:
            continue

        found = (
            check_forward_peers(
                name, info_map, info.target.manifest.peer_dependencies, violations
            )
            or found
        )
        found = (
            check_reverse_peers(name, info.target.version, info_map, violations)
            or found
        )

    logger.debug("Peer validation finished: violations=%s", found)
    return violations


def validate_update_packages(
    info_map: Mapping[str, PackageInfo],
    force: bool = False,
) -> List[PeerViolation]:
    """Validate an update and decide whether it may proceed.

    Args:
        info_map: Resolved packages.
        force: Report violations as warnings instead of failing.

    Returns:
        The violations found (only non-empty when ``force`` is set).

    Raises:
        PeerCompatibilityError: Violations were found and ``force`` is unset.
    """
    logger.debug("Updating the following packages:")
    for info in info_map.values():
        if info.target is not None:
            logger.debug("  %s => %s", info.name, info.target.version)

    violations = find_peer_violations(info_map)

    level = logging.WARNING if force else logging.ERROR
    for violation in violations:
        logger.log(level, violation.to_display_string())

    if violations and not force:
        raise PeerCompatibilityError(
            "Incompatible peer dependencies found. See above.",
            violations=violations,
        )
    return violations
