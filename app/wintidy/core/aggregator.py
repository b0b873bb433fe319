"""Roll per-item results into a module result.

Status rules:

- Skipped: the diff was empty or the module is disabled
- Success: every attempted item succeeded (including nothing attempted
  because everything was protected)
- Warning: some attempted items succeeded and some failed
- Failed: every attempted item failed
"""

import logging
from collections.abc import Sequence
from pathlib import Path

from wintidy.core.artifacts import read_json, write_json_atomic
from wintidy.core.errors import DiffFileError
from wintidy.models.result import ModuleResult, ModuleStatus, PerItemResult

logger = logging.getLogger(__name__)


def _status(detected: int, processed: int, failed: int, enabled: bool) -> ModuleStatus:
    if not enabled or detected == 0:
        return ModuleStatus.SKIPPED
    if failed == 0:
        return ModuleStatus.SUCCESS
    if processed == 0:
        return ModuleStatus.FAILED
    return ModuleStatus.WARNING


def aggregate(
    module_name: str,
    detected: int,
    results: Sequence[PerItemResult],
    *,
    enabled: bool = True,
    duration: float = 0.0,
    errors: Sequence[str] = (),
) -> ModuleResult:
    """Build the ModuleResult for a module run.

    Args:
        module_name: Module identifier.
        detected: Diff size before the protection filter.
        results: Per-item results of attempted items.
        enabled: Whether the module is enabled in config.
        duration: Module wall time in seconds.
        errors: Module-level messages prepended to the per-item errors.

    Returns:
        ModuleResult with counts, status, and accumulated errors.
    """
    failed = [result for result in results if result.failed]
    processed = len(results) - len(failed)
    item_errors = [f"{result.key}: {result.error or 'failed'}" for result in failed]

    result = ModuleResult(
        module_name=module_name,
        status=_status(detected, processed, len(failed), enabled),
        items_detected=detected,
        items_processed=processed,
        items_failed=len(failed),
        errors=(*errors, *item_errors),
        duration=duration,
        items=tuple(results),
    )
    logger.info(
        "%s: %s (detected=%d processed=%d failed=%d)",
        module_name,
        result.status.value,
        detected,
        processed,
        len(failed),
    )
    return result


def failed_result(module_name: str, error: str, *, duration: float = 0.0) -> ModuleResult:
    """Build the result of a module aborted by a configuration error."""
    return ModuleResult(
        module_name=module_name,
        status=ModuleStatus.FAILED,
        errors=(error,),
        duration=duration,
    )


def save_result(result: ModuleResult, path: Path) -> Path:
    """Persist a module result as JSON.

    Raises:
        DiffFileError: If the file cannot be written.
    """
    logger.info("Writing %s result to %s", result.module_name, path)
    return write_json_atomic(path, result.to_dict())


def load_result(path: Path) -> ModuleResult:
    """Load a persisted module result.

    Raises:
        DiffFileError: If the file is missing or malformed.
    """
    data = read_json(path)
    if not isinstance(data, dict):
        raise DiffFileError(f"Result artifact {path} must contain a JSON object")
    try:
        return ModuleResult.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise DiffFileError(f"Invalid result artifact {path}: {e}") from e
