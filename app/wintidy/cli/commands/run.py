"""Run command implementation.

Audits the selected modules and then remediates them in one invocation.
"""

from typing import Annotated

import typer

from wintidy.adapters import get_adapters
from wintidy.cli.commands.remediate import (
    confirm_changes,
    exit_on_failure,
    progress_printer,
)
from wintidy.cli.display import create_diff_table, print_module_results
from wintidy.cli.types import ModuleChoice, resolve_modules
from wintidy.core.capabilities import detect_capabilities
from wintidy.core.config import ModuleName, require_config
from wintidy.core.pipeline import audit_or_abort, remediate_module
from wintidy.models.result import ModuleResult
from wintidy.utils.formatting import console, print_error, print_info, print_warning

app = typer.Typer(
    help="Audit and remediate in one step.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def run_modules(
    ctx: typer.Context,
    module: Annotated[
        ModuleChoice,
        typer.Option(
            "--module",
            "-m",
            help="Module to run: bloatware, telemetry, upgrade, or all.",
            case_sensitive=False,
        ),
    ] = ModuleChoice.ALL,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt and proceed.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be done without making changes.",
        ),
    ] = False,
) -> None:
    """Audit then remediate the selected modules.

    A module whose baseline cannot be loaded ends with status Failed; the
    remaining modules still run.

    Examples:
        wintidy run --dry-run               # Preview all modules
        wintidy run --module upgrade --yes  # Upgrade packages unattended
    """
    if ctx.invoked_subcommand is not None:
        return

    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    config = require_config()
    if dry_run:
        config = config.with_dry_run(True)

    adapters = get_adapters()
    capabilities = detect_capabilities(adapters)

    aborted: list[ModuleResult] = []
    audited: list[ModuleName] = []
    total = 0

    for name in resolve_modules(module):
        outcome = audit_or_abort(name, config, adapters, capabilities)
        if isinstance(outcome, ModuleResult):
            print_error(f"{name}: {outcome.errors[0]}")
            aborted.append(outcome)
            continue

        for warning in outcome.warnings:
            print_warning(f"{name}: {warning}")
        if outcome.diff:
            console.print(create_diff_table(name, outcome.diff, dry_run=config.executor.dry_run))
        audited.append(name)
        total += len(outcome.diff)

    if total and not confirm_changes(total, config.executor.dry_run, yes):
        print_info("Aborted.")
        raise typer.Exit(code=0)

    on_item = progress_printer(quiet)
    results = aborted + [
        remediate_module(name, config, adapters, capabilities, on_item=on_item)
        for name in audited
    ]
    print_module_results(results, verbose=not quiet)
    exit_on_failure(results)
