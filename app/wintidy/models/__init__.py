"""Data models for wintidy.

This module exports the core data structures used throughout the application.
"""

from wintidy.models.baseline import (
    BaselinePattern,
    BloatwareBaseline,
    RegistryValueSpec,
    TelemetryBaseline,
    UpgradeBaseline,
)
from wintidy.models.diff import DiffItem, DiffMode, RemovalMethod
from wintidy.models.item import InstalledItem, ItemSource
from wintidy.models.match import MatchResult, MatchType
from wintidy.models.result import ModuleResult, ModuleStatus, PerItemResult

__all__ = [
    "BaselinePattern",
    "BloatwareBaseline",
    "DiffItem",
    "DiffMode",
    "InstalledItem",
    "ItemSource",
    "MatchResult",
    "MatchType",
    "ModuleResult",
    "ModuleStatus",
    "PerItemResult",
    "RegistryValueSpec",
    "RemovalMethod",
    "TelemetryBaseline",
    "UpgradeBaseline",
]
