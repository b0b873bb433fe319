"""Fixtures shared by the CLI command tests."""

import json
from pathlib import Path

import pytest
from wintidy.adapters.base import SourceAdapter
from wintidy.core.config import ModuleSettings, ModulesConfig, RunConfig, save_config
from wintidy.models.item import InstalledItem, ItemSource


@pytest.fixture
def bloatware_config(wintidy_home: Path) -> Path:
    """Write a config auditing only bloatware against a small baseline.

    Returns:
        Path to the written config.toml.
    """
    baseline = wintidy_home / "bloat.json"
    baseline.write_text(json.dumps({"common": ["Microsoft.BingNews"]}), encoding="utf-8")
    config = RunConfig(
        modules=ModulesConfig(
            bloatware=ModuleSettings(baseline=baseline),
            telemetry=ModuleSettings(enabled=False),
            upgrade=ModuleSettings(enabled=False),
        )
    )
    return save_config(config)


@pytest.fixture
def fake_adapters(make_adapter: type) -> dict[ItemSource, SourceAdapter]:
    """One available fake adapter per source, with a BingNews AppX package."""
    adapters = {source: make_adapter(source) for source in ItemSource}
    adapters[ItemSource.APPX].items = [
        InstalledItem(
            name="Microsoft.BingNews",
            source=ItemSource.APPX,
            version="4.55.0.0",
            publisher="CN=Microsoft Corporation",
        ),
        InstalledItem(
            name="Microsoft.WindowsCalculator",
            source=ItemSource.APPX,
            version="11.2401.0.0",
            publisher="CN=Microsoft Corporation",
        ),
    ]
    return adapters
