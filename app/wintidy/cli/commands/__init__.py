"""CLI commands for wintidy.

This package contains all subcommand implementations.
"""

from wintidy.cli.commands import audit, config, remediate, run, scan

__all__ = ["audit", "config", "remediate", "run", "scan"]
