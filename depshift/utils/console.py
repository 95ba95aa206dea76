"""
Console output utilities for depshift using Rich.

User-facing output (status lines, tables, JSON, prompts) goes through this
module and to stdout. Diagnostics belong to :mod:`depshift.utils.logger`
and go to stderr, so ``--json`` output stays machine-readable.
"""

from __future__ import annotations

import os
import sys
import json
import threading
from typing import Any, Dict, List, Optional

from rich.table import Table
from rich.theme import Theme
from rich.console import Console

DEPSHIFT_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
    }
)

_UPDATE_TYPE_COLORS = {
    "major": "red",
    "minor": "yellow",
    "patch": "green",
    "update": "yellow",
    "downgrade": "red",
}

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def get_console() -> Console:
    """Return the shared Rich console, creating it on first use."""
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=DEPSHIFT_THEME,
                    no_color=not use_color,
                    highlight=use_color,
                )
    return _console


def reconfigure_console() -> None:
    """Drop the shared console so the next call picks up a new environment."""
    global _console
    with _console_lock:
        _console = None


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    get_console().print(f"{prefix} {message}", style="success")


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    get_console().print(f"{prefix} {message}", style="error")


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    get_console().print(f"{prefix} {message}", style="warning")


def print_info(message: str) -> None:
    get_console().print(message, style="info")


def print_json(data: Any) -> None:
    """Print ``data`` as indented JSON, without markup or highlighting."""
    get_console().print(
        json.dumps(data, indent=2, ensure_ascii=False),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def print_table(
    rows: List[Dict[str, Any]],
    *,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
) -> None:
    """Render ``rows`` as a table, one column per key of the first row.

    Args:
        rows: Row dictionaries; values may contain Rich markup.
        title: Optional table title.
        caption: Optional table caption.
        column_styles: Per-column ``style``/``justify``/``no_wrap`` settings.
    """
    if not rows:
        return

    table = Table(title=title, caption=caption, header_style="bold")

    column_styles = column_styles or {}
    headers = list(rows[0].keys())
    for header in headers:
        config = column_styles.get(header, {})
        table.add_column(
            header,
            style=config.get("style"),
            justify=config.get("justify", "left"),
            no_wrap=config.get("no_wrap", False),
        )

    for row in rows:
        table.add_row(*(str(row.get(h, "")) for h in headers))

    get_console().print(table)


def confirm(message: str, *, default: bool = False) -> bool:
    """Ask a yes/no question.

    Empty or unrecognised input returns ``default``; Ctrl+C or EOF
    returns False.
    """
    console = get_console()
    suffix = " [Y/n]: " if default else " [y/N]: "
    console.print(f"{message}{suffix}", end="", style="info")

    try:
        response = input().strip().lower()
    except (KeyboardInterrupt, EOFError):
        console.print()
        return False

    if response in ("y", "yes"):
        return True
    if response in ("n", "no"):
        return False
    return default


def colorize_update_type(update_type: str) -> str:
    """Return ``update_type`` wrapped in Rich colour markup."""
    color = _UPDATE_TYPE_COLORS.get(update_type.lower())
    return f"[{color}]{update_type}[/{color}]" if color else update_type
