"""Installed item models for system inventory.

This module defines the data structures for representing software and
settings discovered by the source adapters (registry uninstall keys, AppX,
winget, Chocolatey, services, scheduled tasks).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ItemSource(str, Enum):
    """Subsystem through which an item is discovered and acted upon."""

    REGISTRY = "Registry"
    APPX = "AppX"
    WINGET = "Winget"
    CHOCOLATEY = "Chocolatey"
    SERVICE = "Service"
    SCHEDULED_TASK = "ScheduledTask"

    @classmethod
    def parse(cls, value: str) -> ItemSource:
        """Parse a source name case-insensitively.

        Args:
            value: Source name (e.g., "winget", "AppX", "scheduledtask").

        Returns:
            Matching ItemSource.

        Raises:
            ValueError: If the name does not match any source.
        """
        lowered = value.strip().lower()
        for member in cls:
            if member.value.lower() == lowered or member.name.lower() == lowered:
                return member
        msg = f"Unknown item source: {value!r}"
        raise ValueError(msg)


# Stable ordering used when sorting diff output by source
SOURCE_ORDER: tuple[ItemSource, ...] = (
    ItemSource.REGISTRY,
    ItemSource.APPX,
    ItemSource.WINGET,
    ItemSource.CHOCOLATEY,
    ItemSource.SERVICE,
    ItemSource.SCHEDULED_TASK,
)


@dataclass(frozen=True, slots=True)
class InstalledItem:
    """Represents an item discovered on the system during detection.

    Items are recreated fresh on every run and never persisted as identity.
    Source-specific fields are populated only by the adapter that owns them.

    Attributes:
        name: Internal name (package name, service name, task path, ...).
        source: Adapter that discovered this item.
        display_name: Human-readable name, if different from name.
        version: Installed version string (if available).
        publisher: Publisher or vendor (if available).
        install_date: Installation date as reported by the source.
        uninstall_string: Registry UninstallString (Registry only).
        package_family_name: AppX package family name (AppX only).
        package_full_name: AppX package full name (AppX only).
        package_id: Winget or Chocolatey package identifier.
        available_version: Newer version offered by the package manager.
        state: Current runtime state (service start type, task state).
    """

    name: str
    source: ItemSource
    display_name: str | None = field(default=None)
    version: str | None = field(default=None)
    publisher: str | None = field(default=None)
    install_date: str | None = field(default=None)
    uninstall_string: str | None = field(default=None)
    package_family_name: str | None = field(default=None)
    package_full_name: str | None = field(default=None)
    package_id: str | None = field(default=None)
    available_version: str | None = field(default=None)
    state: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate item data after initialization."""
        if not self.name or not self.name.strip():
            msg = "Item name cannot be empty"
            raise ValueError(msg)

    @property
    def key(self) -> tuple[str, ItemSource]:
        """Case-insensitive identity of the item within one run."""
        return (self.name.lower(), self.source)

    @property
    def label(self) -> str:
        """Return the best human-readable name for display."""
        return self.display_name or self.name

    @property
    def has_update(self) -> bool:
        """Check if the package manager offers a different version."""
        return bool(self.available_version) and self.available_version != self.version

    def to_dict(self) -> dict[str, str]:
        """Serialize to dictionary for JSON output, omitting empty fields."""
        data = {
            "name": self.name,
            "source": self.source.value,
            "displayName": self.display_name,
            "version": self.version,
            "publisher": self.publisher,
            "installDate": self.install_date,
            "uninstallString": self.uninstall_string,
            "packageFamilyName": self.package_family_name,
            "packageFullName": self.package_full_name,
            "packageId": self.package_id,
            "availableVersion": self.available_version,
            "state": self.state,
        }
        return {key: value for key, value in data.items() if value is not None}
