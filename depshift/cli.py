"""
The ``depshift`` command group.

Global flags (config file, verbosity, colour) are handled here; they set
up logging and the console and load the configuration once, then hand it
to subcommands through :class:`~depshift.context.DepShiftContext`.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from depshift.config import load_config
from depshift.__version__ import __version__
from depshift.context import DepShiftContext
from depshift.exceptions import ConfigError, DepShiftError
from depshift.utils.logger import get_logger, setup_logging
from depshift.commands.update import update
from depshift.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")

#: Log level per ``-v`` count; anything past the end means DEBUG.
_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="DEPSHIFT_CONFIG",
    help="Read settings from this TOML file.",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Show progress (-v) or debugging detail (-vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    envvar="DEPSHIFT_COLOR",
    help="Colour terminal output.",
)
@click.version_option(__version__, prog_name="depshift", message="%(prog)s %(version)s")
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: int, color: bool) -> None:
    """depshift: peer-aware upgrades for npm projects.

    \b
    Examples:
      depshift update                          list packages with upgrade metadata
      depshift update @angular/core @angular/cli
      depshift -v update --all --next
    """
    # The console and the log handler read NO_COLOR when they are created
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    level = _VERBOSITY_LEVELS[min(verbose, len(_VERBOSITY_LEVELS) - 1)]
    setup_logging(level=level)

    try:
        loaded = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    state = DepShiftContext()
    state.config_path = config or loaded.source_path
    state.verbose = verbose
    state.color = color
    state.config = loaded
    ctx.obj = state

    logger.debug(
        "depshift v%s (log level %s, config %s)",
        __version__,
        logging.getLevelName(level),
        state.config_path or "<defaults>",
    )


cli.add_command(update)


def main() -> int:
    """Run the CLI and turn its outcome into a process exit code.

    0 on success, 1 for depshift errors and anything unexpected, Click's
    own code (2) for usage errors and 130 on Ctrl+C.
    """
    try:
        cli(standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        print_warning("Aborted")
        return 1
    except DepShiftError as exc:
        print_error(str(exc))
        logger.debug("Error details: %s", exc.details or "<none>", exc_info=True)
        return 1
    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1
    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
