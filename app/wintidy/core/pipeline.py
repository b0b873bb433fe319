"""Module pipeline: audit (detect, match, diff) and remediate (execute, aggregate).

The two phases only communicate through the on-disk diff artifact, so a
module can be remediated in a later invocation than the one that audited it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from wintidy.adapters.base import SourceAdapter
from wintidy.adapters.registry import RegistryAdapter
from wintidy.core.aggregator import aggregate, failed_result, save_result
from wintidy.core.baseline import detect_os_key, load_patterns
from wintidy.core.capabilities import Capabilities, detect_capabilities
from wintidy.core.config import ModuleName, RunConfig
from wintidy.core.diff import DiffEngine, load_diff, save_diff
from wintidy.core.errors import CollectionError, ConfigurationError, DiffFileError
from wintidy.core.executor import ProgressCallback, RemediationExecutor
from wintidy.core.paths import get_diff_path, get_result_path
from wintidy.core.protected import get_protected_patterns
from wintidy.models.baseline import BaselinePattern
from wintidy.models.diff import DiffItem, DiffMode
from wintidy.models.item import InstalledItem, ItemSource
from wintidy.models.result import ModuleResult

logger = logging.getLogger(__name__)

# Sources whose items each module looks at
MODULE_SOURCES: dict[ModuleName, tuple[ItemSource, ...]] = {
    "bloatware": (
        ItemSource.REGISTRY,
        ItemSource.APPX,
        ItemSource.WINGET,
        ItemSource.CHOCOLATEY,
    ),
    "telemetry": (ItemSource.SERVICE, ItemSource.REGISTRY, ItemSource.SCHEDULED_TASK),
    "upgrade": (ItemSource.WINGET, ItemSource.CHOCOLATEY),
}

MODULE_MODES: dict[ModuleName, DiffMode] = {
    "bloatware": DiffMode.PRESENCE,
    "telemetry": DiffMode.PRESENCE,
    "upgrade": DiffMode.VERSION,
}


@dataclass(slots=True)
class AuditOutcome:
    """Result of auditing one module.

    Attributes:
        module: Module name.
        diff: Computed diff, in execution order.
        diff_path: Where the diff artifact was written (None if disabled).
        snapshot_size: Number of items the adapters reported.
        warnings: Degradation notices (unavailable sources, skipped patterns).
        enabled: Whether the module is enabled in config.
    """

    module: ModuleName
    diff: list[DiffItem] = field(default_factory=list)
    diff_path: Path | None = None
    snapshot_size: int = 0
    warnings: list[str] = field(default_factory=list)
    enabled: bool = True


def get_run_protected_patterns(config: RunConfig) -> list[str]:
    """Return the built-in protected patterns plus the configured extras."""
    return [*get_protected_patterns(), *config.protected.extra_patterns]


def collect_snapshot(
    module: ModuleName,
    patterns: Sequence[BaselinePattern],
    adapters: Mapping[ItemSource, SourceAdapter],
    capabilities: Capabilities,
) -> tuple[list[InstalledItem], list[str]]:
    """Query every source the module needs.

    A source that is unavailable or fails to answer is skipped with a
    warning; the snapshot is then partial.

    Returns:
        Tuple of (items, warnings).
    """
    items: list[InstalledItem] = []
    warnings: list[str] = []

    registry_values = [p.registry_value for p in patterns if p.registry_value is not None]
    settings_sources = {p.source for p in patterns if p.is_setting}

    for source in MODULE_SOURCES[module]:
        # Telemetry reads configured values, not every installed program
        if module == "telemetry" and source not in settings_sources:
            continue

        adapter = adapters.get(source)
        if adapter is None or not capabilities.is_available(source):
            warnings.append(f"{source.value} source unavailable, skipped")
            continue

        try:
            if module == "telemetry" and isinstance(adapter, RegistryAdapter):
                found = adapter.read_values(registry_values)
            else:
                found = list(adapter.detect())
        except CollectionError as e:
            warnings.append(f"{source.value} collection failed: {e}")
            continue

        logger.debug("%s reported %d item(s)", source.value, len(found))
        items.extend(found)

    return items, warnings


def audit_module(
    module: ModuleName,
    config: RunConfig,
    adapters: Mapping[ItemSource, SourceAdapter],
    capabilities: Capabilities | None = None,
    *,
    os_key: str | None = None,
) -> AuditOutcome:
    """Detect, match, and diff one module, then persist the diff artifact.

    Args:
        module: Module name.
        config: Run configuration.
        adapters: Source adapters keyed by source.
        capabilities: Capability table (detected here if None).
        os_key: OS-release key for bloatware lists (detected if None).

    Returns:
        AuditOutcome describing the diff.

    Raises:
        ConfigurationError: If the module's baseline cannot be loaded.
        DiffFileError: If the diff artifact cannot be written.
    """
    settings = config.module(module)
    if not settings.enabled:
        logger.info("Module %s disabled, skipping audit", module)
        return AuditOutcome(module=module, enabled=False)

    patterns = load_patterns(module, settings, os_key or detect_os_key())
    outcome = AuditOutcome(module=module)
    if not patterns:
        outcome.warnings.append(f"{module} baseline has no patterns")

    if capabilities is None:
        capabilities = detect_capabilities(adapters)

    snapshot, warnings = collect_snapshot(module, patterns, adapters, capabilities)
    outcome.warnings.extend(warnings)
    outcome.snapshot_size = len(snapshot)

    engine = DiffEngine(get_run_protected_patterns(config))
    outcome.diff = engine.compute(patterns, snapshot, mode=MODULE_MODES[module])
    outcome.warnings.extend(
        f"Skipped malformed pattern: {reason}" for reason in engine.rejected_patterns
    )
    outcome.diff_path = save_diff(outcome.diff, get_diff_path(module))

    for warning in outcome.warnings:
        logger.warning("%s: %s", module, warning)
    return outcome


def remediate_module(
    module: ModuleName,
    config: RunConfig,
    adapters: Mapping[ItemSource, SourceAdapter],
    capabilities: Capabilities | None = None,
    *,
    on_item: ProgressCallback | None = None,
) -> ModuleResult:
    """Execute a module's persisted diff and persist the result artifact.

    Args:
        module: Module name.
        config: Run configuration.
        adapters: Source adapters keyed by source.
        capabilities: Capability table (detected here if None).
        on_item: Optional per-item progress callback.

    Returns:
        The module's ModuleResult.
    """
    start = time.monotonic()
    if not config.module(module).enabled:
        result = aggregate(module, 0, [], enabled=False)
        save_result(result, get_result_path(module))
        return result

    try:
        diff = load_diff(get_diff_path(module))
    except DiffFileError as e:
        result = failed_result(module, str(e), duration=time.monotonic() - start)
        save_result(result, get_result_path(module))
        return result

    if capabilities is None:
        needed = {item.source: adapters[item.source] for item in diff if item.source in adapters}
        capabilities = detect_capabilities(needed)

    executor = RemediationExecutor(adapters, capabilities, config)
    report = executor.execute(diff, get_run_protected_patterns(config), on_item=on_item)

    result = aggregate(
        module,
        len(diff),
        report.results,
        duration=time.monotonic() - start,
    )
    save_result(result, get_result_path(module))
    return result


def audit_or_abort(
    module: ModuleName,
    config: RunConfig,
    adapters: Mapping[ItemSource, SourceAdapter],
    capabilities: Capabilities | None = None,
) -> AuditOutcome | ModuleResult:
    """Audit one module, recording a Failed result if it cannot be audited.

    A configuration error aborts only this module: the Failed result is
    persisted as the module's result artifact and returned in place of the
    audit outcome.

    Returns:
        The AuditOutcome, or the persisted Failed ModuleResult.
    """
    start = time.monotonic()
    try:
        return audit_module(module, config, adapters, capabilities)
    except (ConfigurationError, DiffFileError) as e:
        logger.error("Module %s aborted: %s", module, e)
        result = failed_result(module, str(e), duration=time.monotonic() - start)
        save_result(result, get_result_path(module))
        return result


def run_module(
    module: ModuleName,
    config: RunConfig,
    adapters: Mapping[ItemSource, SourceAdapter],
    capabilities: Capabilities | None = None,
    *,
    on_item: ProgressCallback | None = None,
) -> ModuleResult:
    """Audit then remediate one module.

    A configuration error aborts only this module, with status Failed.
    """
    audited = audit_or_abort(module, config, adapters, capabilities)
    if isinstance(audited, ModuleResult):
        return audited

    return remediate_module(module, config, adapters, capabilities, on_item=on_item)


def run_modules(
    modules: Sequence[ModuleName],
    config: RunConfig,
    adapters: Mapping[ItemSource, SourceAdapter],
    *,
    on_item: ProgressCallback | None = None,
) -> list[ModuleResult]:
    """Run several modules in order, checking source capabilities once.

    This is the unattended path. The ``run`` command drives the same two
    phases through :func:`audit_or_abort` and :func:`remediate_module` so it
    can ask for confirmation between them.

    Returns:
        One ModuleResult per module, in the given order.
    """
    capabilities = detect_capabilities(adapters)
    return [
        run_module(module, config, adapters, capabilities, on_item=on_item) for module in modules
    ]
