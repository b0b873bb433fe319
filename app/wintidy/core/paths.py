"""Path management for wintidy.

Configuration and state live under per-user application directories:

- Windows: %APPDATA%\\wintidy (config), %LOCALAPPDATA%\\wintidy (state)
- Elsewhere: XDG_CONFIG_HOME/wintidy and XDG_STATE_HOME/wintidy

Setting WINTIDY_HOME places both under a single directory, which is how
scheduled maintenance runs pin their artifacts to a known location.
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "wintidy"

HOME_ENV = "WINTIDY_HOME"


def _get_app_dir(windows_var: str, xdg_var: str, default_subdir: str, kind: str) -> Path:
    """Resolve an application directory respecting environment overrides.

    Args:
        windows_var: Windows environment variable (e.g., "APPDATA").
        xdg_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").
        kind: Subdirectory used under WINTIDY_HOME ("config" or "state").

    Returns:
        Path to the application-specific directory.
    """
    home_override = os.environ.get(HOME_ENV)
    if home_override:
        return Path(home_override) / kind

    if os.name == "nt":
        base = os.environ.get(windows_var)
        if base:
            return Path(base) / APP_NAME

    base = os.environ.get(xdg_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    return _get_app_dir("APPDATA", "XDG_CONFIG_HOME", ".config", "config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State holds the diff and result artifacts exchanged between the audit
    and remediation phases.
    """
    return _get_app_dir("LOCALAPPDATA", "XDG_STATE_HOME", ".local/state", "state")


def get_config_path() -> Path:
    """Get the run configuration file path (config.toml)."""
    return get_config_dir() / "config.toml"


def get_baseline_dir() -> Path:
    """Get the directory holding user baseline overrides."""
    return get_config_dir() / "baselines"


def get_diff_path(module: str) -> Path:
    """Get the diff artifact path for a module.

    Returns:
        Path to <state>/diffs/<module>-diff.json.
    """
    return get_state_dir() / "diffs" / f"{module}-diff.json"


def get_result_path(module: str) -> Path:
    """Get the result artifact path for a module.

    Returns:
        Path to <state>/results/<module>-result.json.
    """
    return get_state_dir() / "results" / f"{module}-result.json"
