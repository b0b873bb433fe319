"""Utility modules for wintidy.

This module exports commonly used utility functions.
"""

from wintidy.utils.formatting import (
    console,
    create_item_table,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
    setup_logging,
)
from wintidy.utils.shell import (
    CommandResult,
    Completed,
    ProcessOutcome,
    SpawnError,
    TimedOut,
    command_exists,
    run_bounded,
    run_command,
    run_powershell,
)

__all__ = [
    "CommandResult",
    "Completed",
    "ProcessOutcome",
    "SpawnError",
    "TimedOut",
    "command_exists",
    "console",
    "create_item_table",
    "err_console",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_bounded",
    "run_command",
    "run_powershell",
    "setup_logging",
]
