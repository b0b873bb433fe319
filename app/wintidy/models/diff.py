"""Diff item model: the unit of work handed from detection to remediation.

Diff items are persisted to a JSON artifact by the diff engine and read back
by the remediation executor, so every field must round-trip through
:meth:`DiffItem.to_dict` and :meth:`DiffItem.from_dict` unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from wintidy.models.baseline import RegistryValueSpec
from wintidy.models.item import ItemSource


class RemovalMethod(str, Enum):
    """Remediation action resolved for a diff item."""

    APPX_REMOVE = "appx-remove"
    WINGET_UNINSTALL = "winget-uninstall"
    WINGET_UPGRADE = "winget-upgrade"
    CHOCO_UNINSTALL = "choco-uninstall"
    CHOCO_UPGRADE = "choco-upgrade"
    UNINSTALL_STRING = "uninstall-string"
    REGISTRY_SET = "registry-set"
    SERVICE_DISABLE = "service-disable"
    TASK_DISABLE = "task-disable"

    @property
    def is_upgrade(self) -> bool:
        """Check if the method upgrades rather than removes or disables."""
        return self in (RemovalMethod.WINGET_UPGRADE, RemovalMethod.CHOCO_UPGRADE)


class DiffMode(str, Enum):
    """Diff computation used by a maintenance module."""

    PRESENCE = "presence"
    VERSION = "version"


@dataclass(frozen=True, slots=True)
class DiffItem:
    """A single baseline violation to remediate.

    Attributes:
        name: Item name as reported by the source.
        source: Source responsible for remediation.
        category: Baseline category that produced the entry.
        current_state: Observed state ('Present', installed version, 'Running').
        desired_state: Target state ('Absent', available version, 'Disabled').
        removal_method: Remediation action to perform.
        display_name: Human-readable name (if known).
        version: Installed version (if known).
        package_id: Winget/Chocolatey identifier.
        uninstall_string: Registry UninstallString.
        package_full_name: AppX package full name.
        package_family_name: AppX package family name.
        matched_pattern: Baseline pattern that produced this entry.
        match_type: Match rule name (Exact, Publisher+Name, Wildcard, Publisher).
        confidence: Match confidence score.
        registry_value: Desired registry value for registry settings.
    """

    name: str
    source: ItemSource
    category: str
    current_state: str
    desired_state: str
    removal_method: RemovalMethod
    display_name: str | None = field(default=None)
    version: str | None = field(default=None)
    package_id: str | None = field(default=None)
    uninstall_string: str | None = field(default=None)
    package_full_name: str | None = field(default=None)
    package_family_name: str | None = field(default=None)
    matched_pattern: str | None = field(default=None)
    match_type: str | None = field(default=None)
    confidence: int | None = field(default=None)
    registry_value: RegistryValueSpec | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate diff item data after initialization."""
        if not self.name:
            msg = "Diff item name cannot be empty"
            raise ValueError(msg)

    @property
    def key(self) -> tuple[str, ItemSource]:
        """Deduplication key: (name, source), case-insensitive."""
        return (self.name.lower(), self.source)

    @property
    def key_str(self) -> str:
        """Key rendered for results and error messages."""
        return f"{self.source.value}:{self.name}"

    @property
    def label(self) -> str:
        """Best human-readable name for display."""
        return self.display_name or self.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for the diff artifact.

        Returns:
            Dictionary with all non-None fields.
        """
        result: dict[str, Any] = {
            "key": self.key_str,
            "name": self.name,
            "source": self.source.value,
            "category": self.category,
            "currentState": self.current_state,
            "desiredState": self.desired_state,
            "removalMethod": self.removal_method.value,
        }
        optional = {
            "displayName": self.display_name,
            "version": self.version,
            "packageId": self.package_id,
            "uninstallString": self.uninstall_string,
            "packageFullName": self.package_full_name,
            "packageFamilyName": self.package_family_name,
            "matchedPattern": self.matched_pattern,
            "matchType": self.match_type,
            "confidence": self.confidence,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        if self.registry_value is not None:
            result["registry"] = {
                "path": self.registry_value.path,
                "name": self.registry_value.name,
                "value": self.registry_value.value,
                "type": self.registry_value.value_type,
            }
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiffItem:
        """Deserialize from a diff artifact entry.

        Args:
            data: Dictionary produced by :meth:`to_dict`.

        Returns:
            DiffItem instance.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If source or removal method is invalid.
        """
        registry = data.get("registry")
        registry_value = None
        if registry is not None:
            registry_value = RegistryValueSpec(
                path=registry["path"],
                name=registry["name"],
                value=registry["value"],
                value_type=registry.get("type", "DWord"),
            )
        return cls(
            name=data["name"],
            source=ItemSource.parse(data["source"]),
            category=data.get("category", "common"),
            current_state=data["currentState"],
            desired_state=data["desiredState"],
            removal_method=RemovalMethod(data["removalMethod"]),
            display_name=data.get("displayName"),
            version=data.get("version"),
            package_id=data.get("packageId"),
            uninstall_string=data.get("uninstallString"),
            package_full_name=data.get("packageFullName"),
            package_family_name=data.get("packageFamilyName"),
            matched_pattern=data.get("matchedPattern"),
            match_type=data.get("matchType"),
            confidence=data.get("confidence"),
            registry_value=registry_value,
        )
