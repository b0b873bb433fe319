"""CLI package for wintidy.

This package contains the Typer application and all subcommands.
"""

from wintidy.cli.main import app

__all__ = ["app"]
