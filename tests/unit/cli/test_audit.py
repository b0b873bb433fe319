"""Unit tests for audit command.

Tests for the CLI audit command implementation.
"""

import json
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner
from wintidy.adapters.base import SourceAdapter
from wintidy.cli.main import app
from wintidy.core.diff import load_diff
from wintidy.core.paths import get_diff_path
from wintidy.models.item import ItemSource

runner = CliRunner()


def _text(output: str) -> str:
    """Collapse whitespace so wrapped console lines can be matched."""
    return " ".join(output.split())


class TestAuditCommand:
    """Tests for wintidy audit command."""

    def test_audit_writes_diff(
        self,
        bloatware_config: Path,
        fake_adapters: dict[ItemSource, SourceAdapter],
    ) -> None:
        """Audit shows the diff table and persists the diff artifact."""
        with patch("wintidy.cli.commands.audit.get_adapters", return_value=fake_adapters):
            result = runner.invoke(app, ["audit"])

        assert result.exit_code == 0
        output = _text(result.output)
        assert "Bloatware Diff" in output
        assert "Diff written to" in output
        assert "telemetry: disabled in config, skipped." in output

        diff = load_diff(get_diff_path("bloatware"))
        assert [item.key_str for item in diff] == ["AppX:Microsoft.BingNews"]

    def test_audit_clean_system(
        self,
        bloatware_config: Path,
        fake_adapters: dict[ItemSource, SourceAdapter],
    ) -> None:
        """A system without baseline items matches the baseline."""
        fake_adapters[ItemSource.APPX].items = []  # type: ignore[attr-defined]

        with patch("wintidy.cli.commands.audit.get_adapters", return_value=fake_adapters):
            result = runner.invoke(app, ["audit", "--module", "bloatware"])

        assert result.exit_code == 0
        assert "bloatware: system matches the baseline." in _text(result.output)
        assert load_diff(get_diff_path("bloatware")) == []

    def test_audit_json(
        self,
        bloatware_config: Path,
        fake_adapters: dict[ItemSource, SourceAdapter],
    ) -> None:
        """--format json prints every module's diff keyed by module."""
        with patch("wintidy.cli.commands.audit.get_adapters", return_value=fake_adapters):
            result = runner.invoke(app, ["audit", "--format", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert set(data) == {"bloatware", "telemetry", "upgrade"}
        assert [entry["name"] for entry in data["bloatware"]] == ["Microsoft.BingNews"]
        assert data["telemetry"] == []

    def test_audit_reports_unavailable_source(
        self,
        bloatware_config: Path,
        fake_adapters: dict[ItemSource, SourceAdapter],
    ) -> None:
        """Unavailable sources are reported as warnings."""
        fake_adapters[ItemSource.CHOCOLATEY].available = False  # type: ignore[attr-defined]

        with patch("wintidy.cli.commands.audit.get_adapters", return_value=fake_adapters):
            result = runner.invoke(app, ["audit", "--module", "bloatware"])

        assert result.exit_code == 0
        assert "Chocolatey source unavailable, skipped" in _text(result.output)

    def test_audit_missing_baseline(
        self,
        wintidy_home: Path,
        fake_adapters: dict[ItemSource, SourceAdapter],
    ) -> None:
        """A baseline that cannot be loaded fails the command."""
        (wintidy_home / "config").mkdir()
        (wintidy_home / "config" / "config.toml").write_text(
            '[modules.bloatware]\nbaseline = "missing.json"\n', encoding="utf-8"
        )

        with patch("wintidy.cli.commands.audit.get_adapters", return_value=fake_adapters):
            result = runner.invoke(app, ["audit", "--module", "bloatware"])

        assert result.exit_code == 1
        assert "bloatware:" in result.output
        assert not get_diff_path("bloatware").exists()

    def test_audit_invalid_config(self, wintidy_home: Path) -> None:
        """Invalid config.toml stops the command with a hint."""
        (wintidy_home / "config").mkdir()
        (wintidy_home / "config" / "config.toml").write_text("[executor\n", encoding="utf-8")

        result = runner.invoke(app, ["audit"])

        assert result.exit_code == 1
        assert "wintidy config init --force" in _text(result.output)
