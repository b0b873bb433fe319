"""Unit tests for the registry, AppX, service, and scheduled task adapters."""

import json
from unittest.mock import MagicMock, patch

import pytest
from wintidy.adapters import ADAPTER_TYPES, get_adapters
from wintidy.adapters.appx import AppxAdapter
from wintidy.adapters.registry import RegistryAdapter
from wintidy.adapters.scheduled_task import ScheduledTaskAdapter, split_task_path
from wintidy.adapters.service import ServiceAdapter
from wintidy.models.baseline import RegistryValueSpec
from wintidy.models.diff import DiffItem, RemovalMethod
from wintidy.models.item import ItemSource
from wintidy.utils.shell import CommandResult

TELEMETRY_SPEC = RegistryValueSpec(
    path="HKLM:\\SOFTWARE\\Policies\\Microsoft\\Windows\\DataCollection",
    name="AllowTelemetry",
    value=0,
)


def _json(data: object) -> CommandResult:
    return CommandResult(stdout=json.dumps(data), stderr="", returncode=0)


def _item(
    name: str,
    source: ItemSource,
    method: RemovalMethod,
    **kwargs: object,
) -> DiffItem:
    return DiffItem(
        name=name,
        source=source,
        category="test",
        current_state=str(kwargs.pop("current_state", "Present")),
        desired_state=str(kwargs.pop("desired_state", "Absent")),
        removal_method=method,
        **kwargs,  # type: ignore[arg-type]
    )


class TestAdapterRegistry:
    """Tests for the adapter lookup table."""

    def test_every_source_has_an_adapter(self) -> None:
        """Each source maps to exactly one adapter class."""
        assert set(ADAPTER_TYPES) == set(ItemSource)

    def test_get_adapters_subset(self) -> None:
        """get_adapters can build a subset."""
        adapters = get_adapters([ItemSource.APPX])

        assert list(adapters) == [ItemSource.APPX]
        assert isinstance(adapters[ItemSource.APPX], AppxAdapter)


class TestRegistryAdapter:
    """Tests for RegistryAdapter."""

    @patch("wintidy.adapters.base.run_command")
    def test_detect(self, mock_run: MagicMock) -> None:
        """Uninstall entries are reported; system components are skipped."""
        mock_run.return_value = _json(
            [
                {
                    "DisplayName": "McAfee LiveSafe",
                    "DisplayVersion": "16.0",
                    "Publisher": "McAfee, LLC",
                    "UninstallString": "C:\\McAfee\\uninst.exe",
                    "QuietUninstallString": "C:\\McAfee\\uninst.exe /quiet",
                },
                {"DisplayName": "Hidden Runtime", "SystemComponent": 1},
                {"DisplayName": None},
            ]
        )

        items = list(RegistryAdapter().detect())

        assert [i.name for i in items] == ["McAfee LiveSafe"]
        assert items[0].uninstall_string == "C:\\McAfee\\uninst.exe /quiet"
        assert items[0].version == "16.0"

    @patch("wintidy.adapters.base.run_command")
    def test_read_values(self, mock_run: MagicMock) -> None:
        """Values are read in one query; missing values have no state."""
        other = RegistryValueSpec(path="HKCU:\\Software\\Test", name="Enabled", value=1)
        mock_run.return_value = _json(
            [
                {"Path": TELEMETRY_SPEC.path, "Name": "AllowTelemetry", "Value": 3},
                {"Path": other.path, "Name": "Enabled", "Value": None},
            ]
        )

        items = RegistryAdapter().read_values([TELEMETRY_SPEC, other])

        assert [i.name for i in items] == [TELEMETRY_SPEC.target, other.target]
        assert items[0].state == "3"
        assert items[1].state is None
        mock_run.assert_called_once()

    def test_read_values_empty(self) -> None:
        """Nothing to read means no query."""
        assert RegistryAdapter().read_values([]) == []

    def test_build_uninstall_command(self) -> None:
        """Uninstall entries run their parsed UninstallString."""
        item = _item(
            "Contoso",
            ItemSource.REGISTRY,
            RemovalMethod.UNINSTALL_STRING,
            uninstall_string="MsiExec.exe /I{ABC}",
        )

        assert RegistryAdapter().build_commands(item) == [
            ["MsiExec.exe", "/X{ABC}", "/qn", "/norestart"]
        ]

    def test_build_registry_set_command(self) -> None:
        """Registry settings run Set-ItemProperty."""
        item = _item(
            TELEMETRY_SPEC.target,
            ItemSource.REGISTRY,
            RemovalMethod.REGISTRY_SET,
            current_state="1",
            desired_state="0",
            registry_value=TELEMETRY_SPEC,
        )

        (args,) = RegistryAdapter().build_commands(item)
        script = args[-1]

        assert args[0] == "powershell"
        assert "Set-ItemProperty -LiteralPath 'HKLM:\\SOFTWARE" in script
        assert "-Name 'AllowTelemetry' -Value 0 -Type DWord" in script
        assert script.startswith("$ErrorActionPreference = 'Stop'")

    def test_registry_set_without_value(self) -> None:
        """A registry-set item without a recorded value cannot be resolved."""
        item = _item("x", ItemSource.REGISTRY, RemovalMethod.REGISTRY_SET)

        with pytest.raises(ValueError, match="no registry value"):
            RegistryAdapter().build_commands(item)

    @patch("wintidy.adapters.base.run_command")
    def test_verify_registry_set(self, mock_run: MagicMock) -> None:
        """A value holding the desired data verifies."""
        item = _item(
            TELEMETRY_SPEC.target,
            ItemSource.REGISTRY,
            RemovalMethod.REGISTRY_SET,
            desired_state="0",
            registry_value=TELEMETRY_SPEC,
        )
        mock_run.return_value = _json(
            {"Path": TELEMETRY_SPEC.path, "Name": "AllowTelemetry", "Value": 0}
        )

        assert RegistryAdapter().verify(item) is True

    @patch("wintidy.adapters.base.run_command")
    def test_verify_uninstall(self, mock_run: MagicMock) -> None:
        """An entry still listed after uninstalling fails verification."""
        item = _item("McAfee LiveSafe", ItemSource.REGISTRY, RemovalMethod.UNINSTALL_STRING)
        mock_run.return_value = _json({"DisplayName": "McAfee LiveSafe"})

        assert RegistryAdapter().verify(item) is False


class TestAppxAdapter:
    """Tests for AppxAdapter."""

    @patch("wintidy.adapters.base.run_command")
    def test_detect_skips_system_packages(self, mock_run: MagicMock) -> None:
        """System-signed packages are not reported."""
        mock_run.return_value = _json(
            [
                {
                    "Name": "king.com.CandyCrushSaga",
                    "PackageFullName": "king.com.CandyCrushSaga_1.0_x64__kgqvnymyfvs32",
                    "PackageFamilyName": "king.com.CandyCrushSaga_kgqvnymyfvs32",
                    "Version": "1.0",
                    "Publisher": "CN=King",
                    "SignatureKind": "Store",
                },
                {"Name": "Microsoft.Windows.ShellExperienceHost", "SignatureKind": "System"},
            ]
        )

        items = list(AppxAdapter().detect())

        assert [i.name for i in items] == ["king.com.CandyCrushSaga"]
        assert items[0].package_family_name == "king.com.CandyCrushSaga_kgqvnymyfvs32"

    def test_build_commands(self) -> None:
        """Removal covers the installed and the provisioned package."""
        item = _item("king.com.CandyCrushSaga", ItemSource.APPX, RemovalMethod.APPX_REMOVE)

        installed, provisioned = AppxAdapter().build_commands(item)

        removal = "Get-AppxPackage -Name 'king.com.CandyCrushSaga' | Remove-AppxPackage"
        assert removal in installed[-1]
        assert "Remove-AppxProvisionedPackage -Online" in provisioned[-1]

    def test_names_are_quoted(self) -> None:
        """Single quotes in names are escaped for PowerShell."""
        item = _item("O'Brien.App", ItemSource.APPX, RemovalMethod.APPX_REMOVE)

        installed, _ = AppxAdapter().build_commands(item)

        assert "'O''Brien.App'" in installed[-1]

    @patch("wintidy.adapters.base.run_command")
    def test_verify(self, mock_run: MagicMock) -> None:
        """A package no longer returned by Get-AppxPackage verifies."""
        item = _item("king.com.CandyCrushSaga", ItemSource.APPX, RemovalMethod.APPX_REMOVE)

        mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)
        assert AppxAdapter().verify(item) is True

        mock_run.return_value = _json({"Name": "king.com.CandyCrushSaga"})
        assert AppxAdapter().verify(item) is False


class TestServiceAdapter:
    """Tests for ServiceAdapter."""

    @patch("wintidy.adapters.base.run_command")
    def test_detect(self, mock_run: MagicMock) -> None:
        """Services report their start type as state."""
        mock_run.return_value = _json(
            {
                "Name": "DiagTrack",
                "DisplayName": "Connected User Experiences and Telemetry",
                "Status": "Running",
                "StartType": "Automatic",
            }
        )

        (item,) = ServiceAdapter().detect()

        assert item.name == "DiagTrack"
        assert item.state == "Automatic"

    def test_build_commands(self) -> None:
        """The service is stopped and its start type set to Disabled."""
        item = _item("DiagTrack", ItemSource.SERVICE, RemovalMethod.SERVICE_DISABLE)

        (args,) = ServiceAdapter().build_commands(item)

        assert "Stop-Service -Name 'DiagTrack'" in args[-1]
        assert "Set-Service -Name 'DiagTrack' -StartupType Disabled" in args[-1]

    @patch("wintidy.adapters.base.run_command")
    def test_verify(self, mock_run: MagicMock) -> None:
        """Disabled or removed services verify."""
        item = _item("DiagTrack", ItemSource.SERVICE, RemovalMethod.SERVICE_DISABLE)

        mock_run.return_value = _json({"StartType": "Disabled"})
        assert ServiceAdapter().verify(item) is True

        mock_run.return_value = _json({"StartType": "Manual"})
        assert ServiceAdapter().verify(item) is False

        mock_run.return_value = CommandResult(stdout="", stderr="", returncode=0)
        assert ServiceAdapter().verify(item) is True


class TestScheduledTaskAdapter:
    """Tests for ScheduledTaskAdapter."""

    def test_split_task_path(self) -> None:
        """Full task paths split into folder and name."""
        folder, name = split_task_path("\\Microsoft\\Windows\\Autochk\\Proxy")

        assert folder == "\\Microsoft\\Windows\\Autochk\\"
        assert name == "Proxy"

    def test_split_root_task(self) -> None:
        """Tasks in the root folder keep the root path."""
        assert split_task_path("\\MyTask") == ("\\", "MyTask")

    @patch("wintidy.adapters.base.run_command")
    def test_detect(self, mock_run: MagicMock) -> None:
        """Tasks are named by their full path."""
        mock_run.return_value = _json(
            [
                {
                    "Path": "\\Microsoft\\Windows\\Autochk\\Proxy",
                    "TaskName": "Proxy",
                    "State": "Ready",
                }
            ]
        )

        (item,) = ScheduledTaskAdapter().detect()

        assert item.name == "\\Microsoft\\Windows\\Autochk\\Proxy"
        assert item.display_name == "Proxy"
        assert item.state == "Ready"

    def test_build_commands(self) -> None:
        """Tasks are disabled by folder and name."""
        item = _item(
            "\\Microsoft\\Windows\\Autochk\\Proxy",
            ItemSource.SCHEDULED_TASK,
            RemovalMethod.TASK_DISABLE,
        )

        (args,) = ScheduledTaskAdapter().build_commands(item)

        assert (
            "Disable-ScheduledTask -TaskPath '\\Microsoft\\Windows\\Autochk\\' -TaskName 'Proxy'"
            in args[-1]
        )

    @patch("wintidy.adapters.base.run_command")
    def test_verify(self, mock_run: MagicMock) -> None:
        """A Disabled task verifies."""
        item = _item(
            "\\Microsoft\\Windows\\Autochk\\Proxy",
            ItemSource.SCHEDULED_TASK,
            RemovalMethod.TASK_DISABLE,
        )

        mock_run.return_value = _json({"State": "Disabled"})
        assert ScheduledTaskAdapter().verify(item) is True

        mock_run.return_value = _json({"State": "Ready"})
        assert ScheduledTaskAdapter().verify(item) is False
