"""Configuration file loader for depshift.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``depshift.toml``: settings under ``[depshift]`` table
- ``pyproject.toml``: settings under ``[tool.depshift]`` table

Discovery order:

1. Explicit path from ``--config`` or ``DEPSHIFT_CONFIG``
2. ``depshift.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.depshift]`` section

Configuration precedence: defaults < config file < environment < CLI args.

Example (``depshift.toml``)::

    [depshift]
    registry = "https://registry.example.com/npm"
    channel = "next"
    force = false
    metadata_key = "ng-update"
    timeout = 20
    max_concurrency = 8
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field

from depshift.exceptions import ConfigError
from depshift.utils.logger import get_logger
from depshift.constants import (
    CHANNELS,
    DEFAULT_CHANNEL,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_METADATA_KEY,
    DEFAULT_REGISTRY_URL,
    DEFAULT_TIMEOUT,
)

logger = get_logger("config")


@dataclass
class DepShiftConfig:
    """Parsed and validated depshift configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        registry: npm registry endpoint.
        channel: Default dist-tag, ``latest`` or ``next``.
        force: Do not fail on peer-dependency violations.
        metadata_key: Manifest field holding upgrade metadata.
        timeout: Registry request timeout in seconds.
        max_concurrency: Maximum registry requests in flight.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    registry: str = DEFAULT_REGISTRY_URL
    channel: str = DEFAULT_CHANNEL
    force: bool = False
    metadata_key: str = DEFAULT_METADATA_KEY
    timeout: int = DEFAULT_TIMEOUT
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return the options (without ``source_path``) for debug logging."""
        return {
            "registry": self.registry,
            "channel": self.channel,
            "force": self.force,
            "metadata_key": self.metadata_key,
            "timeout": self.timeout,
            "max_concurrency": self.max_concurrency,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    depshift_toml = cwd / "depshift.toml"
    if depshift_toml.is_file():
        logger.debug("Found depshift.toml: %s", depshift_toml)
        return depshift_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_depshift_section(pyproject_toml):
        logger.debug("Found [tool.depshift] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_depshift_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.depshift] section.

    An unreadable pyproject.toml is reported at debug level and treated as
    having no section.
    """
    try:
        raw = _read_toml(path)
    except ConfigError as exc:
        logger.debug("Ignoring %s: %s", path, exc)
        return False
    tool = raw.get("tool", {})
    return isinstance(tool, dict) and "depshift" in tool


def load_config(config_path: Optional[Path] = None) -> DepShiftConfig:
    """Load and validate depshift configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`DepShiftConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return DepShiftConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("depshift", {})
    else:
        section = raw.get("depshift", {})

    if not section:
        logger.debug("Config file found but no depshift section, using defaults")
        return DepShiftConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


#: option -> (expected type, type name used in error messages)
_OPTION_TYPES: Dict[str, Any] = {
    "registry": (str, "a string"),
    "channel": (str, "a string"),
    "force": (bool, "a boolean"),
    "metadata_key": (str, "a string"),
    "timeout": (int, "an integer"),
    "max_concurrency": (int, "an integer"),
}


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> DepShiftConfig:
    """Validate a ``[depshift]`` / ``[tool.depshift]`` table.

    Raises:
        ConfigError: Unknown keys, wrong types or out-of-range values.
    """
    unknown = set(section) - set(_OPTION_TYPES)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    config = DepShiftConfig()

    for option, (expected, type_name) in _OPTION_TYPES.items():
        if option not in section:
            continue

        value = section[option]
        # bool is a subclass of int; reject it for integer options
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(
                f"{option} must be {type_name}, got {type(value).__name__}",
                config_path=config_path,
                option=option,
            )
        setattr(config, option, value)

    if config.channel not in CHANNELS:
        raise ConfigError(
            f"channel must be one of {', '.join(CHANNELS)}, got {config.channel!r}",
            config_path=config_path,
            option="channel",
        )

    for option in ("timeout", "max_concurrency"):
        if getattr(config, option) <= 0:
            raise ConfigError(
                f"{option} must be positive",
                config_path=config_path,
                option=option,
            )

    if not config.registry.strip():
        raise ConfigError(
            "registry must not be empty",
            config_path=config_path,
            option="registry",
        )

    return config
