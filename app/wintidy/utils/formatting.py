"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from wintidy.models.item import InstalledItem

WINTIDY_THEME = Theme(
    {
        "text": "#ffffff",
        "muted": "#b2bec3",
        "bold_header": "bold #69B9A1",
        "border": "#29526d",
        "success": "#03b971",
        "warning": "#f5b332",
        "error": "bold #f53263",
        "info": "#0ec1c8",
        "added": "#c1ff62",
        "removed": "#f53263",
        "confidence_high": "#03b971",
        "confidence_medium": "#faf870",
        "confidence_low": "#d44ebc",
    }
)


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances
console = Console(theme=WINTIDY_THEME, color_system=_detect_color_system())
err_console = Console(theme=WINTIDY_THEME, stderr=True, color_system=_detect_color_system())


def create_item_table(title: str = "Detected Items") -> Table:
    """Create a pre-configured table for displaying installed items.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for item display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("Source", width=13)
    table.add_column("Name", no_wrap=True)
    table.add_column("Version", style="muted")
    table.add_column("Publisher", style="text", overflow="ellipsis")
    return table


def format_item_row(item: InstalledItem) -> tuple[str, str, str, str]:
    """Format an installed item as a table row.

    Args:
        item: The item to format.

    Returns:
        Tuple of (source, name, version, publisher) with Rich markup.
    """
    name = f"[text]{escape(item.label)}[/]"
    if item.display_name and item.display_name != item.name:
        name += f" [muted]({escape(item.name)})[/]"
    version = item.version or item.state or "-"
    if item.has_update:
        version += f" [added]-> {item.available_version}[/]"
    return (item.source.value, name, version, item.publisher or "-")


def confidence_style(confidence: int | None) -> str:
    """Return the theme style name for a confidence score."""
    if confidence is None or confidence >= 95:
        return "confidence_high"
    if confidence >= 80:
        return "confidence_medium"
    return "confidence_low"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route wintidy log records to stderr through Rich.

    Args:
        verbose: Log at DEBUG level.
        quiet: Only log errors.
    """
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR

    logger = logging.getLogger("wintidy")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=err_console,
        show_path=verbose,
        rich_tracebacks=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
