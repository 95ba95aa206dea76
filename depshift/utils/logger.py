"""
Logging utilities for depshift.

All diagnostics go through the standard :mod:`logging` hierarchy rooted at
``depshift``. Library use stays silent (a ``NullHandler`` is attached
until :func:`setup_logging` runs); the CLI installs a single stderr
handler whose level follows ``-v``/``-vv``.

Per-package messages are emitted through :class:`PackageLoggerAdapter`,
which prefixes the package name so interleaved checks stay readable::

    log = get_package_logger(get_logger("validation"), "@angular/core")
    log.debug("Checking forward peer rxjs...")
    # DEBUG: [@angular/core] Checking forward peer rxjs...
"""

from __future__ import annotations

import os
import sys
import copy
import logging
import threading
from typing import IO, Any, MutableMapping, Optional, Tuple

from depshift.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "depshift"

_logging_configured: bool = False
_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name with ANSI escapes.

    The record handed to other handlers is left untouched.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color and self.use_color and _stream_supports_color():
            record = copy.copy(record)
            record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _stream_supports_color() -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stderr.isatty()
    except (AttributeError, OSError):
        return False


class PackageLoggerAdapter(logging.LoggerAdapter):
    """Prefix every message with ``[<package>]``."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        package = (self.extra or {}).get("package", "?")
        return f"[{package}] {msg}", kwargs


def get_package_logger(logger: logging.Logger, package: str) -> PackageLoggerAdapter:
    """Return ``logger`` wrapped so its messages name ``package``."""
    return PackageLoggerAdapter(logger, {"package": package})


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Install the depshift log handler.

    Safe to call repeatedly; each call replaces the previous handler.

    Args:
        level: Logging level (e.g., ``logging.INFO``).
        verbose: Include timestamps and logger names.
        stream: Output stream; defaults to ``sys.stderr``.
    """
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.setLevel(level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(
            ColoredFormatter(
                LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
                datefmt=LOG_DATE_FORMAT,
                use_color=not os.environ.get("NO_COLOR"),
            )
        )

        root_logger.addHandler(handler)
        root_logger.propagate = False
        _logging_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger within the depshift namespace.

    Args:
        name: Short name (``"resolver"``) or a dotted module name.
    """
    if not name or name == ROOT_LOGGER_NAME:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
    elif name.startswith(ROOT_LOGGER_NAME + "."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    if not logger.handlers and (not logger.parent or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger


def is_logging_configured() -> bool:
    """Return True if :func:`setup_logging` has run."""
    return _logging_configured
