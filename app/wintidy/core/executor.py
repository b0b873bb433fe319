"""Remediation executor.

Runs a diff item by item, in list order:

1. Protection filter: protected items are skipped with a logged reason and
   no command is ever started for them.
2. Adapter lookup by source; an unavailable source is a per-item failure.
3. Bounded execution, exit code interpretation, and verification inside
   :meth:`SourceAdapter.apply`.

One item's failure never stops the batch and nothing is retried.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from wintidy.adapters.base import SourceAdapter
from wintidy.core.capabilities import Capabilities
from wintidy.core.config import RunConfig
from wintidy.core.protected import is_protected
from wintidy.models.diff import DiffItem
from wintidy.models.item import ItemSource
from wintidy.models.result import PerItemResult

logger = logging.getLogger(__name__)

# Called after each item with (index, total, item, result)
ProgressCallback = Callable[[int, int, DiffItem, PerItemResult], None]


@dataclass(slots=True)
class ExecutionReport:
    """Outcome of executing a diff.

    Attributes:
        results: Per-item results for attempted items, in execution order.
        skipped: Items filtered out before execution, with the reason.
        duration: Total wall time in seconds.
    """

    results: list[PerItemResult] = field(default_factory=list)
    skipped: list[tuple[DiffItem, str]] = field(default_factory=list)
    duration: float = 0.0

    @property
    def failed(self) -> list[PerItemResult]:
        """Results of items that failed."""
        return [result for result in self.results if result.failed]


class RemediationExecutor:
    """Executes diff items sequentially through their source adapters.

    Example:
        >>> executor = RemediationExecutor(adapters, detect_capabilities(adapters), config)
        >>> report = executor.execute(load_diff(path), get_protected_patterns())
    """

    def __init__(
        self,
        adapters: Mapping[ItemSource, SourceAdapter],
        capabilities: Capabilities,
        config: RunConfig,
    ) -> None:
        self._adapters = adapters
        self._capabilities = capabilities
        self._settings = config.executor

    def execute(
        self,
        diff: Sequence[DiffItem],
        protected_patterns: Sequence[str],
        on_item: ProgressCallback | None = None,
    ) -> ExecutionReport:
        """Execute a diff.

        Args:
            diff: Diff items in execution order.
            protected_patterns: Patterns of items that must never be touched.
            on_item: Optional progress callback invoked after each attempt.

        Returns:
            ExecutionReport with attempted results and skipped items.
        """
        start = time.monotonic()
        report = ExecutionReport()
        pending = [item for item in diff if not self._filter(item, protected_patterns, report)]

        if self._settings.dry_run:
            logger.info("Dry-run: %d item(s) will not be changed", len(pending))

        for index, item in enumerate(pending, start=1):
            result = self._execute_item(item)
            if result.success:
                logger.info("Remediated %s", result.key)
            else:
                logger.warning("Failed %s: %s", result.key, result.error)
            report.results.append(result)
            if on_item is not None:
                on_item(index, len(pending), item, result)

        report.duration = time.monotonic() - start
        return report

    def _filter(
        self,
        item: DiffItem,
        protected_patterns: Sequence[str],
        report: ExecutionReport,
    ) -> bool:
        """Record and return True if the item must be skipped."""
        names = [item.name, item.display_name, item.package_id]
        for name in names:
            if name and is_protected(name, protected_patterns):
                reason = f"protected component ({name})"
                logger.warning("Skipping %s: %s", item.key_str, reason)
                report.skipped.append((item, reason))
                return True
        return False

    def _execute_item(self, item: DiffItem) -> PerItemResult:
        adapter = self._adapters.get(item.source)
        if adapter is None or not self._capabilities.is_available(item.source):
            return PerItemResult(
                key=item.key_str,
                success=False,
                error=f"{item.source.value} source unavailable",
            )
        return adapter.apply(item, self._settings)
