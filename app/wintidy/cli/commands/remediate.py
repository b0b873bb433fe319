"""Remediate command implementation.

Executes the diff artifacts written by ``wintidy audit`` and writes one
result artifact per module.
"""

from typing import Annotated

import typer
from rich.markup import escape

from wintidy.adapters import get_adapters
from wintidy.cli.display import create_diff_table, print_module_results
from wintidy.cli.types import ModuleChoice, resolve_modules
from wintidy.core.config import ModuleName, RunConfig, require_config
from wintidy.core.diff import load_diff
from wintidy.core.errors import DiffFileError
from wintidy.core.executor import ProgressCallback
from wintidy.core.paths import get_diff_path
from wintidy.core.pipeline import remediate_module
from wintidy.models.diff import DiffItem
from wintidy.models.result import ModuleResult, ModuleStatus, PerItemResult
from wintidy.utils.formatting import console, print_info, print_warning

app = typer.Typer(
    help="Execute persisted diffs.",
    invoke_without_command=True,
)


def progress_printer(quiet: bool) -> ProgressCallback | None:
    """Return a callback printing one line per remediated item."""
    if quiet:
        return None

    def _print(index: int, total: int, item: DiffItem, result: PerItemResult) -> None:
        mark = "[success]OK[/success]" if result.success else "[error]FAIL[/error]"
        console.print(f"  [{index}/{total}] {mark} {escape(item.key_str)}", highlight=False)

    return _print


def confirm_changes(count: int, dry_run: bool, yes: bool) -> bool:
    """Ask for confirmation unless this is a dry-run or --yes was given."""
    if dry_run or yes:
        return True
    return typer.confirm(f"\nProceed with {count} change(s)?", default=False)


def execute_modules(
    modules: list[ModuleName],
    config: RunConfig,
    quiet: bool,
) -> list[ModuleResult]:
    """Remediate modules from their diff artifacts and print the results."""
    adapters = get_adapters()
    on_item = progress_printer(quiet)
    results = [remediate_module(name, config, adapters, on_item=on_item) for name in modules]
    print_module_results(results, verbose=not quiet)
    return results


def exit_on_failure(results: list[ModuleResult]) -> None:
    """Exit with code 1 if any module failed."""
    if any(result.status == ModuleStatus.FAILED for result in results):
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def remediate_modules(
    ctx: typer.Context,
    module: Annotated[
        ModuleChoice,
        typer.Option(
            "--module",
            "-m",
            help="Module to remediate: bloatware, telemetry, upgrade, or all.",
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
    """Execute the persisted diff of each module.

    Protected system components are never touched, even if they appear in a
    diff file.

    Examples:
        wintidy remediate --dry-run                  # Preview changes
        wintidy remediate --module bloatware --yes   # Remove bloatware
    """
    if ctx.invoked_subcommand is not None:
        return

    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    config = require_config()
    if dry_run:
        config = config.with_dry_run(True)
    modules = resolve_modules(module)

    total = 0
    for name in modules:
        if not config.module(name).enabled:
            continue
        try:
            diff = load_diff(get_diff_path(name))
        except DiffFileError as e:
            print_warning(f"{name}: {e} (run 'wintidy audit' first)")
            continue
        if diff:
            console.print(create_diff_table(name, diff, dry_run=config.executor.dry_run))
        total += len(diff)

    if total and not confirm_changes(total, config.executor.dry_run, yes):
        print_info("Aborted.")
        raise typer.Exit(code=0)

    exit_on_failure(execute_modules(modules, config, quiet))
