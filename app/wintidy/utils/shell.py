"""Shell execution utilities.

Provides subprocess execution for short queries (:func:`run_command`) and a
bounded-wait wrapper for remediation commands (:func:`run_bounded`) that
never lets a hung installer stall the caller.
"""

import json
import logging
import os
import shutil
import subprocess
import time
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Time allowed for a killed child to release its pipes
_REAP_TIMEOUT: float = 10.0

# Suppress console windows for child processes on Windows
_CREATION_FLAGS: int = getattr(subprocess, "CREATE_NO_WINDOW", 0)

POWERSHELL_EXE = "powershell"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
) -> CommandResult:
    """Execute a command and return the result.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory for the command. If None, uses current directory.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        errors="replace",
        check=check,
        timeout=timeout,
        cwd=cwd,
        creationflags=_CREATION_FLAGS,
    )
    return CommandResult(
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        returncode=result.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None


# =============================================================================
# Bounded execution
# =============================================================================


@dataclass(frozen=True, slots=True)
class Completed:
    """The process exited on its own within the timeout."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0


@dataclass(frozen=True, slots=True)
class TimedOut:
    """The process exceeded its timeout and was terminated."""

    timeout: float
    duration: float = 0.0


@dataclass(frozen=True, slots=True)
class SpawnError:
    """The process could not be started."""

    error: str
    duration: float = 0.0


ProcessOutcome = Completed | TimedOut | SpawnError


def _kill_tree(proc: subprocess.Popen[str]) -> None:
    """Forcibly terminate a process and, on Windows, its child processes."""
    if os.name == "nt":
        # Installers commonly spawn helpers that outlive the parent
        try:
            subprocess.run(
                ["taskkill", "/PID", str(proc.pid), "/T", "/F"],
                capture_output=True,
                check=False,
                timeout=_REAP_TIMEOUT,
                creationflags=_CREATION_FLAGS,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("taskkill failed for process %d: %s", proc.pid, e)
    proc.kill()


def run_bounded(args: list[str], *, timeout: float) -> ProcessOutcome:
    """Run a command with a hard wall-clock timeout.

    The child is killed when the timeout expires; the call returns within
    ``timeout`` plus a short reaping grace period.

    Args:
        args: Command and arguments to execute.
        timeout: Maximum time in seconds the child may run.

    Returns:
        Completed, TimedOut, or SpawnError.
    """
    start = time.monotonic()
    try:
        proc = subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            creationflags=_CREATION_FLAGS,
        )
    except OSError as e:
        logger.warning("Failed to start %s: %s", args[0] if args else "<empty>", e)
        return SpawnError(error=str(e), duration=time.monotonic() - start)

    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out after %.0fs, terminating: %s", timeout, args[0])
        _kill_tree(proc)
        try:
            proc.communicate(timeout=_REAP_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.error("Process %d did not release its pipes after kill", proc.pid)
        return TimedOut(timeout=timeout, duration=time.monotonic() - start)

    return Completed(
        returncode=proc.returncode,
        stdout=stdout or "",
        stderr=stderr or "",
        duration=time.monotonic() - start,
    )


# =============================================================================
# PowerShell helpers
# =============================================================================


def powershell_args(script: str) -> list[str]:
    """Build the argument list for a non-interactive PowerShell invocation.

    Args:
        script: PowerShell script text.

    Returns:
        Argument list suitable for run_command() or run_bounded().
    """
    return [POWERSHELL_EXE, "-NoProfile", "-NonInteractive", "-Command", script]


def run_powershell(script: str, *, timeout: float | None = 120.0) -> CommandResult:
    """Execute a PowerShell script and return the result.

    Raises:
        subprocess.TimeoutExpired: If the script exceeds timeout.
        FileNotFoundError: If PowerShell is not installed.
    """
    return run_command(powershell_args(script), timeout=timeout)


def parse_json_records(text: str) -> list[dict[str, Any]]:
    """Parse ConvertTo-Json output into a list of records.

    ConvertTo-Json emits a bare object for a single result and an array for
    several; both shapes are normalised to a list. Empty output yields an
    empty list.

    Args:
        text: JSON text from PowerShell or a package manager.

    Returns:
        List of dictionaries (non-object entries are dropped).

    Raises:
        json.JSONDecodeError: If the text is not valid JSON.
    """
    stripped = text.strip()
    if not stripped:
        return []
    data = json.loads(stripped)
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [entry for entry in data if isinstance(entry, dict)]
    return []


def ps_quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string literal."""
    return "'" + value.replace("'", "''") + "'"
