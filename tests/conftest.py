"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from wintidy.adapters.base import QUERY_TIMEOUT, SourceAdapter
from wintidy.core.diff import REMOVAL_METHODS
from wintidy.core.errors import CollectionError
from wintidy.models.diff import DiffItem
from wintidy.models.item import InstalledItem, ItemSource


@pytest.fixture
def wintidy_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config and state directories at a temporary WINTIDY_HOME."""
    monkeypatch.setenv("WINTIDY_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def sample_items() -> list[InstalledItem]:
    """Installed items from several sources."""
    return [
        InstalledItem(
            name="king.com.CandyCrushSaga",
            source=ItemSource.APPX,
            version="1.2.3.0",
            publisher="CN=King Digital Entertainment",
        ),
        InstalledItem(
            name="Microsoft.BingNews",
            source=ItemSource.APPX,
            version="4.55.0.0",
            publisher="CN=Microsoft Corporation",
        ),
        InstalledItem(
            name="Microsoft.WindowsStore",
            source=ItemSource.APPX,
            version="22403.1401.5.0",
            publisher="CN=Microsoft Corporation",
        ),
        InstalledItem(
            name="McAfee LiveSafe",
            source=ItemSource.REGISTRY,
            version="16.0",
            publisher="McAfee, LLC",
            uninstall_string=(
                '"C:\\Program Files\\McAfee\\MSC\\mcuihost.exe" '
                "/body:misp://MSCJsRes.dll::uninstall.html"
            ),
        ),
        InstalledItem(
            name="Git.Git",
            source=ItemSource.WINGET,
            display_name="Git",
            version="2.44.0",
            package_id="Git.Git",
            available_version="2.45.1",
        ),
    ]


@pytest.fixture
def mock_winget_json() -> str:
    """Sample `winget list --output json` output."""
    return """[
  {"Name": "Git", "Id": "Git.Git", "Version": "2.44.0", "Available": "2.45.1", "Source": "winget"},
  {"Name": "Mozilla Firefox", "Id": "Mozilla.Firefox", "Version": "126.0", "Source": "winget"}
]"""


@pytest.fixture
def mock_choco_list_output() -> str:
    """Sample `choco list --local-only --limit-output` output."""
    return """Chocolatey v2.2.2
chocolatey|2.2.2
7zip|23.1.0
vlc|3.0.20
"""


@pytest.fixture
def mock_choco_outdated_output() -> str:
    """Sample `choco outdated --limit-output` output."""
    return """7zip|23.1.0|24.5.0|false
vlc|3.0.20|3.0.21|true
"""


class FakeAdapter(SourceAdapter):
    """In-memory adapter returning canned items and recording verified keys."""

    def __init__(
        self,
        source: ItemSource,
        items: list[InstalledItem] | None = None,
        *,
        available: bool = True,
        verified: bool = True,
        error: str | None = None,
    ) -> None:
        self._source = source
        self.items = items or []
        self.available = available
        self.verified = verified
        self.error = error
        self.verify_calls: list[str] = []
        self.verify_timeouts: list[float] = []

    @property
    def source(self) -> ItemSource:
        return self._source

    def is_available(self) -> bool:
        return self.available

    def detect(self) -> Iterator[InstalledItem]:
        if self.error is not None:
            raise CollectionError(self.error)
        yield from self.items

    def build_commands(self, item: DiffItem) -> list[list[str]]:
        return [["fake-remove", item.name]]

    def verify(self, item: DiffItem, timeout: float = QUERY_TIMEOUT) -> bool:
        self.verify_calls.append(item.key_str)
        self.verify_timeouts.append(timeout)
        return self.verified


@pytest.fixture
def make_adapter() -> type[FakeAdapter]:
    """Factory for fake source adapters."""
    return FakeAdapter


@pytest.fixture
def make_diff_item() -> Callable[..., DiffItem]:
    """Factory for diff items with presence-diff defaults."""

    def _make(
        name: str,
        source: ItemSource = ItemSource.APPX,
        *,
        display_name: str | None = None,
    ) -> DiffItem:
        return DiffItem(
            name=name,
            source=source,
            category="common",
            current_state="Present",
            desired_state="Absent",
            removal_method=REMOVAL_METHODS[source],
            display_name=display_name,
        )

    return _make
