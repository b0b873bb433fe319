"""Run configuration for maintenance modules.

The configuration is stored in config.toml in the wintidy config directory
and is passed explicitly to every pipeline stage. A missing file means
"use the defaults".

Example config.toml::

    [executor]
    timeout_seconds = 300

    [executor.benign_exit_codes]
    winget_no_applicable_update = -1978335189

    [modules.upgrade]
    enabled = false

    [protected]
    extra_patterns = ["Contoso.*"]
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any, Literal

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wintidy.core.errors import ConfigParseError, ConfigurationError
from wintidy.core.paths import get_config_path

# Names of the maintenance modules sharing the pipeline
ModuleName = Literal["bloatware", "telemetry", "upgrade"]
MODULE_NAMES: tuple[ModuleName, ...] = ("bloatware", "telemetry", "upgrade")

DEFAULT_TIMEOUT_SECONDS = 300

# Non-zero exit codes that still mean the item reached its desired state
DEFAULT_BENIGN_EXIT_CODES: dict[str, int] = {
    "winget_no_applicable_update": -1978335189,  # 0x8A15002B
    "winget_no_installed_package": -1978335212,  # 0x8A150014
    "reboot_required": 3010,
    "reboot_initiated": 1641,
    "msi_product_not_installed": 1605,
    "msi_product_uninstalled": 1614,
}


class ExecutorSettings(BaseModel):
    """Settings for the remediation executor.

    Attributes:
        timeout_seconds: Hard wall-clock limit per remediation command.
        benign_exit_codes: Named non-zero exit codes treated as success.
        dry_run: Plan commands without executing them.
    """

    model_config = ConfigDict(extra="forbid")

    timeout_seconds: Annotated[
        int,
        Field(ge=1, le=7200, description="Per-item timeout in seconds (1-7200)"),
    ] = DEFAULT_TIMEOUT_SECONDS
    benign_exit_codes: Annotated[
        dict[str, int],
        Field(
            default_factory=lambda: dict(DEFAULT_BENIGN_EXIT_CODES),
            description="Named exit codes that count as success",
        ),
    ]
    dry_run: Annotated[bool, Field(description="Plan without executing")] = False

    @property
    def success_codes(self) -> frozenset[int]:
        """All exit codes interpreted as success (0 plus the allow-list)."""
        return frozenset({0, *self.benign_exit_codes.values()})


class ModuleSettings(BaseModel):
    """Per-module settings.

    Attributes:
        enabled: Whether the module runs at all.
        baseline: Path to a baseline JSON overriding the bundled default.
    """

    model_config = ConfigDict(extra="forbid")

    enabled: Annotated[bool, Field(description="Run this module")] = True
    baseline: Annotated[Path | None, Field(description="Baseline file override")] = None


class ModulesConfig(BaseModel):
    """Settings for each maintenance module."""

    model_config = ConfigDict(extra="forbid")

    bloatware: Annotated[ModuleSettings, Field(default_factory=ModuleSettings)]
    telemetry: Annotated[ModuleSettings, Field(default_factory=ModuleSettings)]
    upgrade: Annotated[ModuleSettings, Field(default_factory=ModuleSettings)]


class ProtectedSettings(BaseModel):
    """Additional protected patterns on top of the built-in safety list."""

    model_config = ConfigDict(extra="forbid")

    extra_patterns: Annotated[list[str], Field(default_factory=list)]


class RunConfig(BaseModel):
    """Complete run configuration."""

    model_config = ConfigDict(extra="forbid")

    executor: Annotated[ExecutorSettings, Field(default_factory=ExecutorSettings)]
    modules: Annotated[ModulesConfig, Field(default_factory=ModulesConfig)]
    protected: Annotated[ProtectedSettings, Field(default_factory=ProtectedSettings)]

    def module(self, name: ModuleName) -> ModuleSettings:
        """Get settings for a module by name."""
        settings: ModuleSettings = getattr(self.modules, name)
        return settings

    def with_dry_run(self, dry_run: bool) -> RunConfig:
        """Return a copy with the executor dry-run flag overridden."""
        executor = self.executor.model_copy(update={"dry_run": dry_run})
        return self.model_copy(update={"executor": executor})


def load_config(path: Path | None = None) -> RunConfig:
    """Load run configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated RunConfig. Defaults are returned when the file is absent.

    Raises:
        ConfigParseError: If the TOML syntax or content is invalid.
        ConfigurationError: If the file exists but cannot be read.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return RunConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read config {config_path}: {e}") from e

    try:
        return RunConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigParseError(f"Invalid config content in {config_path}: {e}") from e


def config_to_dict(config: RunConfig) -> dict[str, Any]:
    """Convert a RunConfig to a TOML-serializable dictionary (no None values)."""
    return config.model_dump(mode="json", exclude_none=True)


def save_config(config: RunConfig, path: Path | None = None) -> Path:
    """Save run configuration to a TOML file atomically.

    Args:
        config: Configuration to save.
        path: Target path. If None, uses the default config path.

    Returns:
        Path where the configuration was saved.

    Raises:
        ConfigurationError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(config_to_dict(config), f)
        os.replace(tmp_path, config_path)
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigurationError(f"Failed to write config: {e}") from e

    return config_path


def require_config(path: Path | None = None) -> RunConfig:
    """Load run configuration or exit with a readable error message.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    import typer

    from wintidy.utils.formatting import print_error, print_info

    config_path = path or get_config_path()
    try:
        return load_config(config_path)
    except ConfigurationError as e:
        print_error(str(e))
        print_info("Fix the file or run 'wintidy config init --force' to reset it.")
        raise typer.Exit(code=1) from e
