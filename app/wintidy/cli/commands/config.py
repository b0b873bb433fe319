"""Config commands.

Create, show, and locate the run configuration file.
"""

from typing import Annotated

import tomli_w
import typer
from rich.markup import escape

from wintidy.core.config import RunConfig, config_to_dict, require_config, save_config
from wintidy.core.errors import ConfigurationError
from wintidy.core.paths import get_baseline_dir, get_config_path, get_state_dir
from wintidy.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Manage the run configuration.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config file.",
        ),
    ] = False,
) -> None:
    """Write a config.toml with default settings."""
    path = get_config_path()
    if path.exists() and not force:
        print_error(f"Config already exists: {path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    try:
        save_config(RunConfig(), path)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {path}")


@app.command()
def show() -> None:
    """Print the effective configuration as TOML."""
    config = require_config()
    console.print(escape(tomli_w.dumps(config_to_dict(config))), highlight=False)


@app.command()
def path() -> None:
    """Print the config file, baseline, and state locations."""
    config_path = get_config_path()
    marker = "" if config_path.exists() else " [muted](not created)[/muted]"
    console.print(f"Config:    {escape(str(config_path))}{marker}")
    console.print(f"Baselines: {escape(str(get_baseline_dir()))}")
    console.print(f"State:     {escape(str(get_state_dir()))}")
