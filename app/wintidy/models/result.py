"""Execution result models.

PerItemResult records the outcome of one remediation; ModuleResult rolls a
module's outcomes into the terminal artifact read by reporting tools.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ModuleStatus(str, Enum):
    """Overall status of a maintenance module run."""

    SUCCESS = "Success"
    WARNING = "Warning"
    FAILED = "Failed"
    SKIPPED = "Skipped"


@dataclass(frozen=True, slots=True)
class PerItemResult:
    """Outcome of remediating a single diff item.

    Attributes:
        key: Diff item key ('Source:Name').
        success: Whether the item reached its desired state.
        exit_code: Exit code of the last command run (None if none ran).
        error: Error description when the item failed.
        duration: Wall time spent on the item in seconds.
        message: Optional informational message (dry-run plan, notes).
    """

    key: str
    success: bool
    exit_code: int | None = None
    error: str | None = None
    duration: float = 0.0
    message: str | None = None

    @property
    def failed(self) -> bool:
        """Check if the item failed."""
        return not self.success

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "key": self.key,
            "success": self.success,
            "exitCode": self.exit_code,
            "error": self.error,
            "duration": round(self.duration, 3),
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class ModuleResult:
    """Standardized result of one maintenance module.

    Attributes:
        module_name: Module identifier ('bloatware', 'telemetry', 'upgrade').
        status: Rolled-up status.
        items_detected: Diff size before the protection filter.
        items_processed: Attempted items that reached their desired state.
        items_failed: Attempted items that failed.
        errors: Per-item and module-level error messages.
        duration: Module wall time in seconds.
        timestamp: ISO 8601 timestamp when the result was produced.
        items: Per-item outcomes, in execution order.
    """

    module_name: str
    status: ModuleStatus
    items_detected: int = 0
    items_processed: int = 0
    items_failed: int = 0
    errors: tuple[str, ...] = ()
    duration: float = 0.0
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    items: tuple[PerItemResult, ...] = ()

    @property
    def items_attempted(self) -> int:
        """Number of items the executor ran, successfully or not."""
        return self.items_processed + self.items_failed

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for the result artifact."""
        return {
            "moduleName": self.module_name,
            "status": self.status.value,
            "itemsDetected": self.items_detected,
            "itemsProcessed": self.items_processed,
            "itemsFailed": self.items_failed,
            "errors": list(self.errors),
            "duration": round(self.duration, 3),
            "timestamp": self.timestamp,
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModuleResult:
        """Deserialize from a result artifact.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If the status is invalid.
        """
        items = tuple(
            PerItemResult(
                key=entry["key"],
                success=entry["success"],
                exit_code=entry.get("exitCode"),
                error=entry.get("error"),
                duration=entry.get("duration", 0.0),
                message=entry.get("message"),
            )
            for entry in data.get("items", [])
        )
        return cls(
            module_name=data["moduleName"],
            status=ModuleStatus(data["status"]),
            items_detected=data.get("itemsDetected", 0),
            items_processed=data.get("itemsProcessed", 0),
            items_failed=data.get("itemsFailed", 0),
            errors=tuple(data.get("errors", [])),
            duration=data.get("duration", 0.0),
            timestamp=data.get("timestamp", ""),
            items=items,
        )
