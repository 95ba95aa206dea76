"""depshift version string, shown by ``depshift --version``."""

__version__ = "0.1.0.dev0"
