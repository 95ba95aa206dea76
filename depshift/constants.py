"""
Centralized constants for depshift.

This module defines immutable configuration values used across depshift,
including registry endpoints, manifest layout, network settings and
logging formats. All values are intended to be treated as read-only.
"""

from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "depshift/{version}"

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

#: Default npm registry endpoint.
DEFAULT_REGISTRY_URL: Final[str] = "https://registry.npmjs.org"

#: Dist-tag used when no version is given on the command line.
DEFAULT_CHANNEL: Final[str] = "latest"

#: Dist-tag used with ``--next``.
NEXT_CHANNEL: Final[str] = "next"

#: Supported release channels.
CHANNELS: Final[Sequence[str]] = (DEFAULT_CHANNEL, NEXT_CHANNEL)

# ---------------------------------------------------------------------------
# Manifest layout
# ---------------------------------------------------------------------------

#: File name of the project manifest.
MANIFEST_FILENAME: Final[str] = "package.json"

#: Directory holding installed packages, relative to the project root.
INSTALL_DIRNAME: Final[str] = "node_modules"

#: Manifest sections holding name -> range maps, highest priority first.
DEPENDENCIES: Final[str] = "dependencies"
DEV_DEPENDENCIES: Final[str] = "devDependencies"
PEER_DEPENDENCIES: Final[str] = "peerDependencies"

#: Field holding upgrade metadata inside a published package manifest.
DEFAULT_METADATA_KEY: Final[str] = "ng-update"

#: Indentation used when serializing the manifest.
MANIFEST_INDENT: Final[int] = 2

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

#: Maximum number of registry requests in flight.
DEFAULT_MAX_CONCURRENCY: Final[int] = 10

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading manifests.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
