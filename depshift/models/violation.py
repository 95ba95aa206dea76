"""
Peer-dependency violation model for depshift.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

MISSING = "missing"
INCOMPATIBLE = "incompatible"


@dataclass(frozen=True)
class PeerViolation:
    """A peer-dependency declaration that the planned versions break.

    Args:
        kind: ``"missing"`` or ``"incompatible"``.
        package: Package whose peer declaration is violated.
        peer: Name of the peer package.
        required_range: Range ``package`` declares for ``peer``.
        found_version: Version ``peer`` would have, or None when missing.
    """

    kind: str
    package: str
    peer: str
    required_range: str
    found_version: Optional[str] = None

    def to_display_string(self) -> str:
        """Return a human-readable description of the violation."""
        if self.kind == MISSING:
            return (
                f'Package "{self.package}" has a missing peer dependency of '
                f'"{self.peer}" @ "{self.required_range}".'
            )
        return (
            f'Package "{self.package}" has an incompatible peer dependency to '
            f'"{self.peer}" (requires "{self.required_range}", '
            f'would install "{self.found_version}").'
        )

    def to_json(self) -> Dict[str, Optional[str]]:
        """Return a JSON-serializable representation."""
        return {
            "kind": self.kind,
            "package": self.package,
            "peer": self.peer,
            "required_range": self.required_range,
            "found_version": self.found_version,
        }

    def __str__(self) -> str:
        return self.to_display_string()
