"""
depshift: peer-aware npm dependency upgrades

depshift reads a project's ``package.json``, resolves the packages you ask
to upgrade against the npm registry, grows that request through package
groups and peer dependencies, and only then proposes a plan: the new
manifest plus the migration tasks each upgraded package ships with.

Features include:
    • Package-group aware upgrades (``ng-update.packageGroup``)
    • Forward and reverse peer-dependency validation
    • Deterministic update plans with ordered migration tasks
    • Report mode listing outdated packages that ship upgrade metadata
"""

from __future__ import annotations

from depshift.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "depshift Contributors"
__license__ = "Apache-2.0"
__description__ = "Peer-aware npm dependency upgrades with migration planning."

__all__ = [
    "__version__",
]
