"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from wintidy import __version__
from wintidy.cli.commands import audit, config, remediate, run, scan
from wintidy.utils.formatting import setup_logging

app = typer.Typer(
    name="wintidy",
    help="Baseline-driven bloatware, telemetry, and upgrade maintenance for Windows.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"wintidy version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output and debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """wintidy - Keep a Windows machine on its bloatware, telemetry, and upgrade baselines.

    Audit the system against baseline files, review the computed diffs, and
    remediate them with bounded, verified package-manager calls.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    setup_logging(verbose=verbose, quiet=quiet)


app.add_typer(scan.app, name="scan")
app.add_typer(audit.app, name="audit")
app.add_typer(remediate.app, name="remediate")
app.add_typer(run.app, name="run")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
