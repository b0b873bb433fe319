"""Audit command implementation.

Detects items, classifies them against each module's baseline, and writes
the diff artifacts that ``wintidy remediate`` executes.
"""

import json
from enum import Enum
from typing import Annotated

import typer

from wintidy.adapters import get_adapters
from wintidy.cli.display import create_diff_table
from wintidy.cli.types import ModuleChoice, resolve_modules
from wintidy.core.capabilities import detect_capabilities
from wintidy.core.config import require_config
from wintidy.core.errors import ConfigurationError, DiffFileError
from wintidy.core.pipeline import AuditOutcome, audit_module
from wintidy.utils.formatting import console, print_error, print_info, print_success, print_warning

app = typer.Typer(
    help="Compute baseline diffs without changing the system.",
    invoke_without_command=True,
)


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _print_outcome(outcome: AuditOutcome, quiet: bool) -> None:
    for warning in outcome.warnings:
        print_warning(f"{outcome.module}: {warning}")

    if not outcome.enabled:
        print_info(f"{outcome.module}: disabled in config, skipped.")
        return
    if not outcome.diff:
        print_success(f"{outcome.module}: system matches the baseline.")
        return

    console.print(create_diff_table(outcome.module, outcome.diff))
    if not quiet:
        console.print(f"[muted]Diff written to {outcome.diff_path}[/muted]\n")


@app.callback(invoke_without_command=True)
def audit_modules(
    ctx: typer.Context,
    module: Annotated[
        ModuleChoice,
        typer.Option(
            "--module",
            "-m",
            help="Module to audit: bloatware, telemetry, upgrade, or all.",
            case_sensitive=False,
        ),
    ] = ModuleChoice.ALL,
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
    """Audit modules and persist their diffs.

    Examples:
        wintidy audit                       # Audit all modules
        wintidy audit --module telemetry    # Audit telemetry only
        wintidy audit --format json         # Print diffs as JSON
    """
    if ctx.invoked_subcommand is not None:
        return

    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    config = require_config()
    adapters = get_adapters()
    capabilities = detect_capabilities(adapters)

    outcomes: list[AuditOutcome] = []
    failed = False

    for name in resolve_modules(module):
        try:
            outcome = audit_module(name, config, adapters, capabilities)
        except (ConfigurationError, DiffFileError) as e:
            print_error(f"{name}: {e}")
            failed = True
            continue
        outcomes.append(outcome)
        if output_format == OutputFormat.TABLE:
            _print_outcome(outcome, quiet)

    if output_format == OutputFormat.JSON:
        data = {o.module: [item.to_dict() for item in o.diff] for o in outcomes}
        console.print_json(json.dumps(data))

    if failed:
        raise typer.Exit(code=1)
