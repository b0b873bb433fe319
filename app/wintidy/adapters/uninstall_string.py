"""Parsing of registry UninstallString values into silent command lines.

Uninstall entries store a free-form command line. Two shapes are handled:

- MSI: ``MsiExec.exe /I{GUID}`` or ``MsiExec.exe /X{GUID}``. The install
  switch is rewritten to ``/X`` and ``/qn /norestart`` are appended.
- EXE: ``"C:\\Program Files\\App\\uninst.exe" --flag``. If no silent switch
  is already present, ``/S`` is appended (NSIS convention).
"""

import re
import shlex
from dataclasses import dataclass
from pathlib import PureWindowsPath

_MSIEXEC_NAMES = frozenset({"msiexec", "msiexec.exe"})

# /I{GUID}, /i {GUID}, /package, /X{GUID}
_MSI_ACTION = re.compile(r"^/(i|x|package|uninstall)(\{.*)?$", re.IGNORECASE)

_MSI_QUIET = re.compile(r"^/(q[nbr]?[+-]?|quiet|passive)$", re.IGNORECASE)

# Switches that already make common installer frameworks silent
_EXE_SILENT_FLAGS = frozenset(
    {
        "/s",
        "-s",
        "/silent",
        "-silent",
        "--silent",
        "/verysilent",
        "/quiet",
        "-quiet",
        "--quiet",
        "/q",
        "-q",
        "/qn",
    }
)


@dataclass(frozen=True, slots=True)
class UninstallCommand:
    """A parsed, silent uninstall command.

    Attributes:
        executable: Program to run.
        arguments: Arguments, already normalised for silent execution.
        is_msi: Whether this is an msiexec invocation.
    """

    executable: str
    arguments: tuple[str, ...]
    is_msi: bool

    @property
    def argv(self) -> list[str]:
        """Return the full argument list."""
        return [self.executable, *self.arguments]


def _split_executable(raw: str) -> tuple[str, str]:
    """Split a command line into (executable, remainder)."""
    if raw.startswith('"'):
        end = raw.find('"', 1)
        if end == -1:
            msg = f"unterminated quote in {raw!r}"
            raise ValueError(msg)
        return raw[1:end], raw[end + 1 :]

    # Unquoted paths with spaces are common; cut after the first ".exe"
    lowered = raw.lower()
    idx = lowered.find(".exe")
    if idx != -1:
        return raw[: idx + 4], raw[idx + 4 :]

    head, _, tail = raw.partition(" ")
    return head, tail


def _split_arguments(rest: str) -> list[str]:
    tokens = shlex.split(rest, posix=False)
    return [t[1:-1] if len(t) >= 2 and t[0] == t[-1] == '"' else t for t in tokens]


def _msi_arguments(arguments: list[str]) -> list[str]:
    normalised: list[str] = []
    has_action = False
    for arg in arguments:
        action = _MSI_ACTION.match(arg)
        if action:
            has_action = True
            normalised.append("/X" + (action.group(2) or ""))
        else:
            normalised.append(arg)

    if not has_action:
        msg = "msiexec command has no /I or /X product code"
        raise ValueError(msg)

    if not any(_MSI_QUIET.match(arg) for arg in normalised):
        normalised.append("/qn")
    if not any(arg.lower() == "/norestart" for arg in normalised):
        normalised.append("/norestart")
    return normalised


def parse_uninstall_string(raw: str | None) -> UninstallCommand:
    """Parse an UninstallString value into a silent command.

    Args:
        raw: UninstallString (or QuietUninstallString) value.

    Returns:
        UninstallCommand ready to execute.

    Raises:
        ValueError: If the string is empty or cannot be interpreted.
    """
    text = (raw or "").strip()
    if not text:
        msg = "no uninstall string"
        raise ValueError(msg)

    executable, rest = _split_executable(text)
    executable = executable.strip()
    if not executable:
        msg = f"no executable in {raw!r}"
        raise ValueError(msg)
    arguments = _split_arguments(rest)

    if PureWindowsPath(executable).name.lower() in _MSIEXEC_NAMES:
        return UninstallCommand(
            executable=executable,
            arguments=tuple(_msi_arguments(arguments)),
            is_msi=True,
        )

    if not any(arg.lower() in _EXE_SILENT_FLAGS for arg in arguments):
        arguments.append("/S")

    return UninstallCommand(executable=executable, arguments=tuple(arguments), is_msi=False)
