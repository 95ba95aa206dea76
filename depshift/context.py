"""Per-invocation state shared by the ``depshift`` group and its commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from depshift.config import DepShiftConfig


class DepShiftContext:
    """What the top-level group resolved before a subcommand runs.

    Attributes:
        config_path: Configuration file in use, if one was found.
        verbose: Number of ``-v`` flags given.
        color: False when ``--no-color`` was passed.
        config: Settings loaded from ``config_path`` (defaults otherwise).
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.config: DepShiftConfig = DepShiftConfig()


#: Injects the :class:`DepShiftContext`, creating a default one if absent.
pass_context = click.make_pass_decorator(DepShiftContext, ensure=True)
