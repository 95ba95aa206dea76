"""
Executable module for depshift.

Running:
    python -m depshift

is equivalent to:
    depshift
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: BaseException) -> None:
    """Explain why the CLI could not be loaded."""
    try:
        from depshift.__version__ import __version__ as version
    except ImportError:
        version = "<unknown>"

    sys.stderr.write("depshift CLI could not be loaded.\n")
    sys.stderr.write(f"depshift version: {version}\n")
    sys.stderr.write(f"Python version : {sys.version}\n\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    """Run the CLI and return its exit code."""
    try:
        # Imported lazily so `python -m depshift` reports missing dependencies
        from depshift.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
