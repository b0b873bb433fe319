"""Baseline models for bloatware, telemetry, and upgrade modules.

This module defines the BaselinePattern record consumed by the matcher and
diff engine, and the Pydantic models describing the JSON baseline files
from which those patterns are built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

from wintidy.models.item import ItemSource

# Registry value kinds accepted by Set-ItemProperty
RegistryValueType = Literal["DWord", "QWord", "String", "ExpandString"]

# Category keys that only apply to one Windows release
OS_CATEGORY_PREFIX = "windows"


@dataclass(frozen=True, slots=True)
class RegistryValueSpec:
    """Desired value for a single registry setting.

    Attributes:
        path: PowerShell registry path (e.g., 'HKLM:\\SOFTWARE\\Policies\\...').
        name: Value name under the key.
        value: Desired value data.
        value_type: Registry value kind.
    """

    path: str
    name: str
    value: str | int
    value_type: RegistryValueType = "DWord"

    @property
    def target(self) -> str:
        """Return the fully qualified value name used as the item name."""
        return f"{self.path}\\{self.name}"


@dataclass(frozen=True, slots=True)
class BaselinePattern:
    """A single baseline entry.

    For software baselines the pattern is a plain substring, a glob, or the
    dotted ``Publisher.NamePart`` form. For settings baselines the pattern is
    the target name (service name, task path, registry value path) and the
    expected state describes the compliant configuration.

    Attributes:
        pattern: Pattern string or settings target.
        category: Baseline group the entry came from (e.g., 'oem', 'services').
        source: Source restriction for settings entries (None = any source).
        expected_state: Compliant state for settings entries (e.g., 'Disabled').
        registry_value: Desired registry value for registry settings.
    """

    pattern: str
    category: str = field(default="common")
    source: ItemSource | None = field(default=None)
    expected_state: str | None = field(default=None)
    registry_value: RegistryValueSpec | None = field(default=None)

    @property
    def is_setting(self) -> bool:
        """Check if this entry describes a desired setting rather than software."""
        return self.expected_state is not None

    @property
    def dotted_parts(self) -> tuple[str, str] | None:
        """Split a ``Publisher.NamePart`` pattern into its two segments.

        Returns:
            Tuple of (publisher, name_part), or None if the pattern is not
            in dotted form (no dot, or an empty segment on either side).
        """
        publisher, sep, name_part = self.pattern.partition(".")
        if not sep or not publisher.strip() or not name_part.strip():
            return None
        return publisher.strip(), name_part.strip()


# =============================================================================
# Baseline file schemas
# =============================================================================


class BloatwareBaseline(RootModel[dict[str, list[str]]]):
    """Bloatware baseline file: pattern lists keyed by category.

    Keys are free-form categories (``common``, ``oem``, ``gaming``, ...) plus
    OS-release lists (``windows10``, ``windows11``) that only apply to the
    matching release.
    """

    def to_patterns(self, os_key: str | None = None) -> list[BaselinePattern]:
        """Flatten the baseline into an ordered pattern list.

        Args:
            os_key: Category key of the running OS release (e.g., 'windows11').
                OS-release categories other than this one are skipped.

        Returns:
            Patterns in file order, tagged with their category.
        """
        patterns: list[BaselinePattern] = []
        for category, entries in self.root.items():
            lowered = category.lower()
            if lowered.startswith(OS_CATEGORY_PREFIX) and lowered != (os_key or "").lower():
                continue
            patterns.extend(BaselinePattern(pattern=entry, category=category) for entry in entries)
        return patterns


class ActionGroup(BaseModel):
    """A ``{"disable": [...]}`` block for services or scheduled tasks."""

    model_config = ConfigDict(extra="forbid")

    disable: Annotated[list[str], Field(default_factory=list, description="Targets to disable")]


class RegistrySetting(BaseModel):
    """One desired registry value in a telemetry baseline."""

    model_config = ConfigDict(extra="forbid")

    path: Annotated[str, Field(min_length=1, description="Registry key path")]
    name: Annotated[str, Field(min_length=1, description="Value name")]
    value: Annotated[str | int, Field(description="Desired value data")]
    type: Annotated[RegistryValueType, Field(description="Registry value kind")] = "DWord"

    @field_validator("path")
    @classmethod
    def validate_hive(cls, v: str) -> str:
        """Require a PowerShell hive prefix such as HKLM: or HKCU:."""
        hive = v.split("\\", 1)[0].upper()
        if hive not in {"HKLM:", "HKCU:", "HKU:", "HKCR:"}:
            msg = f"registry path must start with a hive like HKLM: or HKCU:, got {v!r}"
            raise ValueError(msg)
        return v


class TelemetryBaseline(BaseModel):
    """Telemetry baseline file keyed by action group."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    services: Annotated[ActionGroup, Field(default_factory=ActionGroup)]
    registry: Annotated[dict[str, list[RegistrySetting]], Field(default_factory=dict)]
    scheduled_tasks: Annotated[
        ActionGroup,
        Field(default_factory=ActionGroup, alias="scheduledTasks"),
    ]

    def to_patterns(self) -> list[BaselinePattern]:
        """Flatten into settings patterns: services, then registry, then tasks."""
        patterns: list[BaselinePattern] = [
            BaselinePattern(
                pattern=name,
                category="services",
                source=ItemSource.SERVICE,
                expected_state="Disabled",
            )
            for name in self.services.disable
        ]
        for group, settings in self.registry.items():
            for setting in settings:
                spec = RegistryValueSpec(
                    path=setting.path,
                    name=setting.name,
                    value=setting.value,
                    value_type=setting.type,
                )
                patterns.append(
                    BaselinePattern(
                        pattern=spec.target,
                        category=f"registry.{group}",
                        source=ItemSource.REGISTRY,
                        expected_state=str(setting.value),
                        registry_value=spec,
                    )
                )
        patterns.extend(
            BaselinePattern(
                pattern=task,
                category="scheduledTasks",
                source=ItemSource.SCHEDULED_TASK,
                expected_state="Disabled",
            )
            for task in self.scheduled_tasks.disable
        )
        return patterns


class UpgradeBaseline(BaseModel):
    """Upgrade baseline file: packages excluded from automatic upgrades."""

    model_config = ConfigDict(extra="forbid")

    exclude: Annotated[list[str], Field(default_factory=list, description="Exclude patterns")]

    def to_patterns(self) -> list[BaselinePattern]:
        """Return the exclude list as patterns."""
        return [BaselinePattern(pattern=entry, category="exclude") for entry in self.exclude]
