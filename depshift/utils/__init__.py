"""
Shared helpers: Rich console output, logging setup, atomic manifest
writes, the async registry HTTP client and npm semver queries.
"""

from __future__ import annotations

from depshift.utils.console import (
    colorize_update_type,
    confirm,
    get_console,
    print_error,
    print_info,
    print_json,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)
from depshift.utils.filesystem import create_backup, safe_read_file, safe_write_file
from depshift.utils.http import HTTPClient
from depshift.utils.logger import (
    get_logger,
    get_package_logger,
    is_logging_configured,
    setup_logging,
)
from depshift.utils.version_utils import (
    get_update_type,
    is_greater,
    max_satisfying,
    satisfies,
)

__all__ = [
    "HTTPClient",
    "colorize_update_type",
    "confirm",
    "create_backup",
    "get_console",
    "get_logger",
    "get_package_logger",
    "get_update_type",
    "is_greater",
    "is_logging_configured",
    "max_satisfying",
    "print_error",
    "print_info",
    "print_json",
    "print_success",
    "print_table",
    "print_warning",
    "reconfigure_console",
    "safe_read_file",
    "safe_write_file",
    "satisfies",
    "setup_logging",
]
