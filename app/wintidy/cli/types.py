"""Shared types and helpers for CLI commands."""

from enum import Enum

from wintidy.core.config import MODULE_NAMES, ModuleName


class ModuleChoice(str, Enum):
    """Maintenance modules selectable on the command line."""

    BLOATWARE = "bloatware"
    TELEMETRY = "telemetry"
    UPGRADE = "upgrade"
    ALL = "all"


class SourceChoice(str, Enum):
    """Item sources selectable for scanning."""

    REGISTRY = "registry"
    APPX = "appx"
    WINGET = "winget"
    CHOCOLATEY = "chocolatey"
    SERVICE = "service"
    SCHEDULED_TASK = "scheduledtask"
    ALL = "all"


def resolve_modules(choice: ModuleChoice) -> list[ModuleName]:
    """Expand a module choice into module names, in run order."""
    if choice == ModuleChoice.ALL:
        return list(MODULE_NAMES)
    return [name for name in MODULE_NAMES if name == choice.value]
