"""Abstract base class for source adapters.

This module defines the SourceAdapter interface that every item source
(registry, AppX, winget, Chocolatey, services, scheduled tasks) implements.
An adapter both enumerates items and remediates them.
"""

import logging
import subprocess
import time
from abc import ABC, abstractmethod
from collections.abc import Iterator

from wintidy.core.config import ExecutorSettings
from wintidy.core.errors import CollectionError
from wintidy.models.diff import DiffItem, RemovalMethod
from wintidy.models.item import InstalledItem, ItemSource
from wintidy.models.result import PerItemResult
from wintidy.utils.shell import (
    POWERSHELL_EXE,
    CommandResult,
    Completed,
    SpawnError,
    TimedOut,
    command_exists,
    parse_json_records,
    powershell_args,
    run_bounded,
    run_command,
    run_powershell,
)

logger = logging.getLogger(__name__)

# Timeout for read-only queries (listing packages, re-checking state)
QUERY_TIMEOUT: float = 180.0

# Prefix making PowerShell exit non-zero on the first error
PS_STRICT = "$ErrorActionPreference = 'Stop'; "


class SourceAdapter(ABC):
    """Abstract base class for all source adapters.

    Adapters are responsible for querying one source for installed items
    and for driving that source's removal, disable, or upgrade commands.

    :meth:`apply` is a template: it resolves the command list for an item,
    runs each command under one shared per-item deadline, interprets exit
    codes against the configured allow-list, and finally re-queries the
    source through :meth:`verify`. A command that reports success but leaves
    the item unchanged is recorded as a failure.

    Example:
        >>> adapter = WingetAdapter()
        >>> if adapter.is_available():
        ...     for item in adapter.detect():
        ...         print(f"{item.name}: {item.version}")
    """

    @property
    @abstractmethod
    def source(self) -> ItemSource:
        """Return the source this adapter handles."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying tool or cmdlets exist on this system.

        Returns:
            True if the adapter can be used, False otherwise.
        """

    @abstractmethod
    def detect(self) -> Iterator[InstalledItem]:
        """Enumerate items currently present in this source.

        Yields:
            InstalledItem for each item found.

        Raises:
            CollectionError: If the source cannot be queried.
        """

    @abstractmethod
    def build_commands(self, item: DiffItem) -> list[list[str]]:
        """Resolve the command(s) that remediate an item.

        Args:
            item: Diff item to remediate.

        Returns:
            Argument lists, run in order.

        Raises:
            ValueError: If the item cannot be remediated by this adapter.
        """

    @abstractmethod
    def verify(self, item: DiffItem, timeout: float = QUERY_TIMEOUT) -> bool:
        """Re-query the source to confirm the item reached its desired state.

        Args:
            item: Diff item that was remediated.
            timeout: Seconds left for the re-query (capped at QUERY_TIMEOUT).

        Returns:
            True if the item is gone or changed as required.

        Raises:
            CollectionError: If the source cannot be re-queried.
        """

    @property
    def supported_methods(self) -> frozenset[RemovalMethod]:
        """Removal methods this adapter can perform."""
        return frozenset()

    def apply(self, item: DiffItem, settings: ExecutorSettings) -> PerItemResult:
        """Remediate one diff item and verify the outcome.

        Args:
            item: Diff item to remediate.
            settings: Executor settings (timeout, exit code allow-list, dry-run).

        Returns:
            PerItemResult describing the outcome. Never raises for
            per-item failures.
        """
        start = time.monotonic()
        key = item.key_str

        def _result(success: bool, *, exit_code: int | None = None, **kwargs: str) -> PerItemResult:
            return PerItemResult(
                key=key,
                success=success,
                exit_code=exit_code,
                duration=time.monotonic() - start,
                **kwargs,
            )

        if self.supported_methods and item.removal_method not in self.supported_methods:
            return _result(
                False,
                error=f"{self.source.value} cannot perform {item.removal_method.value}",
            )

        try:
            commands = self.build_commands(item)
        except ValueError as e:
            return _result(False, error=f"Cannot resolve removal command: {e}")

        if settings.dry_run:
            planned = " && ".join(subprocess.list2cmdline(args) for args in commands)
            return _result(True, message=f"Dry-run: {planned}")

        deadline = start + settings.timeout_seconds
        exit_code: int | None = None

        for args in commands:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return _result(
                    False,
                    exit_code=exit_code,
                    error=f"Timed out after {settings.timeout_seconds}s",
                )

            logger.info("Running %s for %s", args[0], key)
            outcome = run_bounded(args, timeout=remaining)

            if isinstance(outcome, TimedOut):
                return _result(
                    False,
                    exit_code=exit_code,
                    error=f"Timed out after {settings.timeout_seconds}s",
                )
            if isinstance(outcome, SpawnError):
                return _result(False, error=f"Failed to start {args[0]}: {outcome.error}")
            if isinstance(outcome, Completed):
                exit_code = outcome.returncode
                if exit_code not in settings.success_codes:
                    detail = _tail(outcome.stderr) or _tail(outcome.stdout)
                    error = f"Exit code {exit_code}"
                    if detail:
                        error += f": {detail}"
                    return _result(False, exit_code=exit_code, error=error)

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return _result(
                False,
                exit_code=exit_code,
                error=f"Timed out after {settings.timeout_seconds}s before verification",
            )

        try:
            verified = self.verify(item, timeout=remaining)
        except CollectionError as e:
            return _result(False, exit_code=exit_code, error=f"Verification failed: {e}")

        if not verified:
            return _result(
                False,
                exit_code=exit_code,
                error=f"Verification failed: {item.label} is still {item.current_state}",
            )

        return _result(True, exit_code=exit_code, message="Completed and verified")


def _tail(text: str, limit: int = 200) -> str:
    """Return the last non-empty line of command output, truncated."""
    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    if not lines:
        return ""
    return lines[-1][:limit]


class PowerShellAdapter(SourceAdapter):
    """Base for adapters that query and act through PowerShell cmdlets.

    Attributes:
        required_cmdlet: Cmdlet whose presence makes the adapter available.
    """

    required_cmdlet: str = "Get-Command"

    def is_available(self) -> bool:
        """Check that PowerShell exists and exposes the required cmdlet."""
        if not command_exists(POWERSHELL_EXE):
            return False
        script = (
            f"if (Get-Command {self.required_cmdlet} -ErrorAction SilentlyContinue) "
            "{ exit 0 } else { exit 1 }"
        )
        try:
            return run_powershell(script, timeout=60.0).success
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("Capability check for %s failed: %s", self.required_cmdlet, e)
            return False

    def query(self, script: str, timeout: float = QUERY_TIMEOUT) -> list[dict[str, object]]:
        """Run a read-only PowerShell query returning ConvertTo-Json output.

        Args:
            script: Script whose output is piped to ConvertTo-Json.
            timeout: Query timeout in seconds (capped at QUERY_TIMEOUT).

        Returns:
            Parsed records.

        Raises:
            CollectionError: If PowerShell fails or emits invalid JSON.
        """
        result = run_query(powershell_args(script), timeout=timeout)
        if not result.success:
            msg = f"PowerShell query failed ({result.returncode}): {_tail(result.stderr)}"
            raise CollectionError(msg)
        try:
            return parse_json_records(result.stdout)
        except ValueError as e:
            raise CollectionError(f"Unparseable PowerShell output: {e}") from e


def run_query(args: list[str], timeout: float = QUERY_TIMEOUT) -> CommandResult:
    """Run a read-only query command.

    Args:
        args: Command and arguments.
        timeout: Timeout in seconds, never more than QUERY_TIMEOUT.

    Raises:
        CollectionError: If the command cannot be started or times out.
    """
    timeout = min(timeout, QUERY_TIMEOUT)
    try:
        return run_command(args, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        msg = f"{args[0]} query timed out after {timeout:.0f}s"
        raise CollectionError(msg) from e
    except OSError as e:
        raise CollectionError(f"Cannot run {args[0]}: {e}") from e


def str_field(record: dict[str, object], *names: str) -> str | None:
    """Return the first non-empty string value among several field names."""
    for name in names:
        value = record.get(name)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None
