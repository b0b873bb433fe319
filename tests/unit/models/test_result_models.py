"""Unit tests for diff items and result models."""

import pytest
from wintidy.models.baseline import RegistryValueSpec
from wintidy.models.diff import DiffItem, RemovalMethod
from wintidy.models.item import ItemSource
from wintidy.models.match import MatchType
from wintidy.models.result import ModuleResult, ModuleStatus, PerItemResult


class TestMatchType:
    """Tests for MatchType confidence scores."""

    @pytest.mark.parametrize(
        ("match_type", "confidence"),
        [
            (MatchType.EXACT, 100),
            (MatchType.PUBLISHER_NAME, 95),
            (MatchType.WILDCARD, 80),
            (MatchType.PUBLISHER, 70),
        ],
    )
    def test_confidence(self, match_type: MatchType, confidence: int) -> None:
        """Each match type has a fixed confidence."""
        assert match_type.confidence == confidence


class TestDiffItem:
    """Tests for DiffItem dataclass."""

    def test_empty_name_rejected(self) -> None:
        """DiffItem requires a name."""
        with pytest.raises(ValueError, match="cannot be empty"):
            DiffItem(
                name="",
                source=ItemSource.APPX,
                category="common",
                current_state="Present",
                desired_state="Absent",
                removal_method=RemovalMethod.APPX_REMOVE,
            )

    def test_key_str(self) -> None:
        """key_str renders 'Source:Name'."""
        item = DiffItem(
            name="DiagTrack",
            source=ItemSource.SERVICE,
            category="services",
            current_state="Automatic",
            desired_state="Disabled",
            removal_method=RemovalMethod.SERVICE_DISABLE,
        )

        assert item.key_str == "Service:DiagTrack"

    def test_to_dict_includes_registry_block(self) -> None:
        """Registry settings are serialized with their desired value."""
        spec = RegistryValueSpec(
            path="HKLM:\\SOFTWARE\\Policies\\Microsoft\\Windows\\DataCollection",
            name="AllowTelemetry",
            value=0,
        )
        item = DiffItem(
            name=spec.target,
            source=ItemSource.REGISTRY,
            category="registry.dataCollection",
            current_state="1",
            desired_state="0",
            removal_method=RemovalMethod.REGISTRY_SET,
            registry_value=spec,
        )

        data = item.to_dict()

        assert data["removalMethod"] == RemovalMethod.REGISTRY_SET.value
        assert data["registry"] == {
            "path": spec.path,
            "name": "AllowTelemetry",
            "value": 0,
            "type": "DWord",
        }
        assert "displayName" not in data
        assert DiffItem.from_dict(data) == item

    def test_from_dict_missing_field(self) -> None:
        """Missing required fields raise KeyError."""
        with pytest.raises(KeyError):
            DiffItem.from_dict({"name": "x", "source": "AppX"})

    def test_from_dict_invalid_method(self) -> None:
        """Unknown removal methods raise ValueError."""
        with pytest.raises(ValueError):
            DiffItem.from_dict(
                {
                    "name": "x",
                    "source": "AppX",
                    "currentState": "Present",
                    "desiredState": "Absent",
                    "removalMethod": "Format-Disk",
                }
            )


class TestModuleResult:
    """Tests for ModuleResult and PerItemResult."""

    def test_items_attempted(self) -> None:
        """items_attempted counts both succeeded and failed items."""
        result = ModuleResult(
            module_name="bloatware",
            status=ModuleStatus.WARNING,
            items_detected=3,
            items_processed=2,
            items_failed=1,
        )

        assert result.items_attempted == 3

    def test_to_dict_uses_camel_case(self) -> None:
        """Result artifact keys are camelCase."""
        result = ModuleResult(
            module_name="upgrade",
            status=ModuleStatus.SUCCESS,
            items_detected=1,
            items_processed=1,
            items=(PerItemResult(key="Winget:Git.Git", success=True, exit_code=0),),
        )

        data = result.to_dict()

        assert data["moduleName"] == "upgrade"
        assert data["status"] == "Success"
        assert data["itemsDetected"] == 1
        assert data["items"][0]["exitCode"] == 0

    def test_from_dict(self) -> None:
        """from_dict restores counts, errors, and items."""
        data = {
            "moduleName": "bloatware",
            "status": "Warning",
            "itemsDetected": 3,
            "itemsProcessed": 2,
            "itemsFailed": 1,
            "errors": ["Registry:Foo: Timed out after 600s"],
            "duration": 12.5,
            "timestamp": "2026-01-01T00:00:00+00:00",
            "items": [
                {"key": "Registry:Foo", "success": False, "error": "Timed out after 600s"},
            ],
        }

        result = ModuleResult.from_dict(data)

        assert result.status is ModuleStatus.WARNING
        assert result.items_failed == 1
        assert result.items[0].failed is True
        assert result.items[0].exit_code is None

    def test_from_dict_invalid_status(self) -> None:
        """Unknown status values raise ValueError."""
        with pytest.raises(ValueError):
            ModuleResult.from_dict({"moduleName": "x", "status": "Great"})
