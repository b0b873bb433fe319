"""Baseline file loading.

Baselines are JSON documents. Each module ships a bundled default in
``wintidy.data``; a user file in the baselines config directory, or an
explicit path in config.toml, replaces it.
"""

import json
import logging
import platform
from importlib import resources
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from wintidy.core.config import ModuleName, ModuleSettings
from wintidy.core.errors import BaselineNotFoundError, BaselineParseError, ConfigurationError
from wintidy.core.paths import get_baseline_dir
from wintidy.models.baseline import (
    BaselinePattern,
    BloatwareBaseline,
    TelemetryBaseline,
    UpgradeBaseline,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# First build number of Windows 11
_WIN11_BUILD = 22000

_BASELINE_MODELS: dict[str, type[BaseModel]] = {
    "bloatware": BloatwareBaseline,
    "telemetry": TelemetryBaseline,
    "upgrade": UpgradeBaseline,
}


def get_bundled_baseline_path(module: ModuleName) -> Path:
    """Get the bundled default baseline path for a module.

    Returns:
        Path to data/<module>.json inside the installed package.
    """
    return resources.files("wintidy.data").joinpath(f"{module}.json")  # type: ignore[return-value]


def resolve_baseline_path(module: ModuleName, settings: ModuleSettings) -> Path:
    """Select the baseline file a module should load.

    Priority:
    1. Explicit ``baseline`` path in the module's config section
    2. User override at <config>/baselines/<module>.json
    3. Bundled default

    Args:
        module: Module name.
        settings: The module's settings.

    Returns:
        Path of the baseline file to load.
    """
    if settings.baseline is not None:
        return settings.baseline.expanduser()

    user_path = get_baseline_dir() / f"{module}.json"
    if user_path.exists():
        logger.debug("Using user baseline override %s", user_path)
        return user_path

    return Path(get_bundled_baseline_path(module))


def _read_json(path: Path) -> Any:
    """Read and parse a JSON baseline file.

    Raises:
        BaselineNotFoundError: If the file doesn't exist.
        BaselineParseError: If the JSON syntax is invalid.
        ConfigurationError: If the file cannot be read.
    """
    if not path.exists():
        raise BaselineNotFoundError(f"Baseline not found: {path}")

    try:
        with open(path, encoding="utf-8-sig") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise BaselineParseError(f"Invalid JSON in baseline {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read baseline {path}: {e}") from e


def load_baseline_model(path: Path, model: type[ModelT]) -> ModelT:
    """Load a baseline file and validate it against a schema.

    Args:
        path: Baseline file path.
        model: Pydantic model describing the file.

    Returns:
        Validated model instance.

    Raises:
        BaselineNotFoundError: If the file doesn't exist.
        BaselineParseError: If the file is invalid.
    """
    data = _read_json(path)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BaselineParseError(f"Invalid baseline content in {path}: {e}") from e


def detect_os_key() -> str | None:
    """Return the OS-release category key of the running system.

    Returns:
        'windows11' or 'windows10' on Windows, None elsewhere.
    """
    if platform.system() != "Windows":
        return None
    build = platform.version().rsplit(".", 1)[-1]
    if build.isdigit() and int(build) >= _WIN11_BUILD:
        return "windows11"
    return "windows10"


def load_patterns(
    module: ModuleName,
    settings: ModuleSettings,
    os_key: str | None = None,
) -> list[BaselinePattern]:
    """Load a module's baseline and flatten it into patterns.

    Args:
        module: Module name.
        settings: The module's settings (for the baseline override).
        os_key: OS-release key used to select release-specific bloatware lists.

    Returns:
        Patterns in baseline order.

    Raises:
        ConfigurationError: If the baseline cannot be loaded.
    """
    path = resolve_baseline_path(module, settings)
    logger.info("Loading %s baseline from %s", module, path)

    baseline = load_baseline_model(path, _BASELINE_MODELS[module])
    if isinstance(baseline, BloatwareBaseline):
        return baseline.to_patterns(os_key)
    if isinstance(baseline, TelemetryBaseline | UpgradeBaseline):
        return baseline.to_patterns()
    msg = f"Unsupported baseline type for module {module}"
    raise ConfigurationError(msg)
