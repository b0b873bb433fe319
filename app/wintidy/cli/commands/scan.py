"""Scan command implementation.

Lists items detected by each available source adapter.
"""

import json
from enum import Enum
from typing import Annotated

import typer

from wintidy.adapters import get_adapters
from wintidy.cli.types import SourceChoice
from wintidy.core.errors import CollectionError
from wintidy.models.item import SOURCE_ORDER, InstalledItem, ItemSource
from wintidy.utils.formatting import (
    console,
    create_item_table,
    format_item_row,
    print_error,
    print_warning,
)

app = typer.Typer(
    help="Scan the system for installed items.",
    invoke_without_command=True,
)


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _selected_sources(source: SourceChoice) -> list[ItemSource]:
    if source == SourceChoice.ALL:
        return list(SOURCE_ORDER)
    return [ItemSource.parse(source.value)]


@app.callback(invoke_without_command=True)
def scan_items(
    ctx: typer.Context,
    source: Annotated[
        SourceChoice,
        typer.Option(
            "--source",
            "-s",
            help="Source to scan: registry, appx, winget, chocolatey, service, "
            "scheduledtask, or all.",
            case_sensitive=False,
        ),
    ] = SourceChoice.ALL,
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-n",
            help="Limit number of items to display.",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Scan and display detected items.

    Unavailable sources, or sources whose query fails, are skipped with a
    warning.

    Examples:
        wintidy scan                        # Scan all sources, show table
        wintidy scan --source winget        # Scan winget only
        wintidy scan --format json          # Output as JSON
    """
    if ctx.invoked_subcommand is not None:
        return

    items: list[InstalledItem] = []
    scanned = 0

    for item_source, adapter in get_adapters(_selected_sources(source)).items():
        if not adapter.is_available():
            print_warning(f"{item_source.value} is not available on this system.")
            continue
        try:
            items.extend(adapter.detect())
        except CollectionError as e:
            print_warning(f"{item_source.value} scan failed: {e}")
            continue
        scanned += 1

    if scanned == 0:
        print_error("No item sources could be scanned on this system.")
        raise typer.Exit(code=1)

    items.sort(key=lambda i: (SOURCE_ORDER.index(i.source), i.name.lower()))
    display_items = items[:limit] if limit else items

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps([item.to_dict() for item in display_items]))
        return

    table = create_item_table()
    for item in display_items:
        table.add_row(*format_item_row(item))
    console.print(table)

    console.print(f"\n[muted]Found {len(items)} item(s)[/muted]")
    if limit and len(display_items) < len(items):
        console.print(f"[muted](showing {len(display_items)} of {len(items)})[/muted]")
