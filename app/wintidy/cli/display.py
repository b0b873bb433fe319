"""Shared Rich display functions for diffs and module results.

Provides reusable table builders and summary printers used by the audit,
remediate, and run commands.
"""

from collections.abc import Sequence

from rich.markup import escape
from rich.table import Table

from wintidy.models.diff import DiffItem
from wintidy.models.result import ModuleResult, ModuleStatus
from wintidy.utils.formatting import confidence_style, console, print_success

_STATUS_STYLES: dict[ModuleStatus, str] = {
    ModuleStatus.SUCCESS: "success",
    ModuleStatus.WARNING: "warning",
    ModuleStatus.FAILED: "error",
    ModuleStatus.SKIPPED: "muted",
}


def create_diff_table(module: str, items: Sequence[DiffItem], dry_run: bool = False) -> Table:
    """Create a Rich table displaying a module's diff.

    Args:
        module: Module name (used in the title).
        items: Diff items in execution order.
        dry_run: Whether this is a dry-run (changes table title).

    Returns:
        Rich Table configured for diff display.
    """
    title = f"{module.capitalize()} Diff"
    if dry_run:
        title += " (Dry Run)"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Source", width=13)
    table.add_column("Item", no_wrap=True)
    table.add_column("Current -> Desired")
    table.add_column("Method", style="muted")
    table.add_column("Match", justify="right")

    for item in items:
        if item.confidence is not None:
            style = confidence_style(item.confidence)
            match = f"[{style}]{item.match_type} {item.confidence}[/{style}]"
        else:
            match = f"[muted]{item.matched_pattern or '-'}[/muted]"

        table.add_row(
            item.source.value,
            f"[removed]{escape(item.label)}[/removed]",
            f"{item.current_state} [muted]->[/muted] [added]{item.desired_state}[/added]",
            item.removal_method.value,
            match,
        )

    return table


def create_results_table(result: ModuleResult) -> Table:
    """Create a Rich table displaying per-item results of a module.

    Args:
        result: Module result to display.

    Returns:
        Rich Table configured for results display.
    """
    table = Table(
        title=f"{result.module_name.capitalize()} Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Item", no_wrap=True)
    table.add_column("Exit", justify="right")
    table.add_column("Message")

    for item in result.items:
        if item.success:
            status = "[success]OK[/success]"
            message = item.message or ""
        else:
            status = "[error]FAIL[/error]"
            message = item.error or "Unknown error"

        table.add_row(
            status,
            escape(item.key),
            "-" if item.exit_code is None else str(item.exit_code),
            f"[muted]{escape(message)}[/muted]",
        )

    return table


def create_summary_table(results: Sequence[ModuleResult]) -> Table:
    """Create a Rich table with one row per module result."""
    table = Table(
        title="Summary",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Module")
    table.add_column("Status", justify="center")
    table.add_column("Detected", justify="right")
    table.add_column("Processed", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Duration", justify="right", style="muted")

    for result in results:
        style = _STATUS_STYLES[result.status]
        table.add_row(
            result.module_name,
            f"[{style}]{result.status.value}[/{style}]",
            str(result.items_detected),
            str(result.items_processed),
            str(result.items_failed),
            f"{result.duration:.1f}s",
        )

    return table


def print_module_results(results: Sequence[ModuleResult], verbose: bool = False) -> None:
    """Print per-module result tables, errors, and the summary.

    Args:
        results: Module results in run order.
        verbose: Also print the per-item table of every module.
    """
    for result in results:
        if result.items and (verbose or result.items_failed):
            console.print(create_results_table(result))
        elif result.errors:
            for error in result.errors:
                console.print(f"  [error]x[/error] {result.module_name}: {escape(error)}")

    console.print(create_summary_table(results))

    if all(r.status in (ModuleStatus.SUCCESS, ModuleStatus.SKIPPED) for r in results):
        print_success("All modules completed successfully.")
