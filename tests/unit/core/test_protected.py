"""Unit tests for protected components, paths, and capabilities."""

from pathlib import Path

import pytest
from wintidy.core.capabilities import Capabilities, detect_capabilities
from wintidy.core.paths import (
    get_baseline_dir,
    get_config_path,
    get_diff_path,
    get_result_path,
    get_state_dir,
)
from wintidy.core.protected import get_protected_patterns, is_protected
from wintidy.models.item import ItemSource


class TestIsProtected:
    """Tests for is_protected."""

    @pytest.mark.parametrize(
        "name",
        [
            "Microsoft.WindowsStore",
            "microsoft.windowsstore_8wekyb3d8bbwe",
            "Microsoft.VCLibs.140.00.UWPDesktop",
            "Microsoft Visual C++ 2015-2022 Redistributable (x64)",
            "WinDefend",
            "wuauserv",
            "Microsoft.DesktopAppInstaller",
        ],
    )
    def test_builtin_protected(self, name: str) -> None:
        """Core components are protected."""
        assert is_protected(name) is True

    @pytest.mark.parametrize("name", ["Microsoft.BingNews", "king.com.CandyCrushSaga", "DiagTrack"])
    def test_not_protected(self, name: str) -> None:
        """Ordinary items are not protected."""
        assert is_protected(name) is False

    def test_custom_patterns(self) -> None:
        """Explicit patterns replace the built-in list."""
        assert is_protected("Contoso.App", ["contoso.*"]) is True
        assert is_protected("Microsoft.WindowsStore", ["contoso.*"]) is False

    def test_pattern_list_includes_names(self) -> None:
        """get_protected_patterns covers exact names as well."""
        patterns = get_protected_patterns()

        assert is_protected("WinDefend", patterns) is True
        assert is_protected("Microsoft.WindowsStore", patterns) is True


class TestPaths:
    """Tests for path helpers under WINTIDY_HOME."""

    def test_home_override(self, wintidy_home: Path) -> None:
        """WINTIDY_HOME holds config and state directories."""
        assert get_config_path() == wintidy_home / "config" / "config.toml"
        assert get_baseline_dir() == wintidy_home / "config" / "baselines"
        assert get_state_dir() == wintidy_home / "state"

    def test_artifact_paths(self, wintidy_home: Path) -> None:
        """Artifacts are named after their module."""
        assert get_diff_path("bloatware") == (
            wintidy_home / "state" / "diffs" / "bloatware-diff.json"
        )
        assert get_result_path("upgrade") == (
            wintidy_home / "state" / "results" / "upgrade-result.json"
        )

    def test_xdg_fallback(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Without WINTIDY_HOME, XDG variables are honored off Windows."""
        monkeypatch.delenv("WINTIDY_HOME", raising=False)
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))
        monkeypatch.setattr("wintidy.core.paths.os.name", "posix")

        assert get_state_dir() == tmp_path / "wintidy"


class TestCapabilities:
    """Tests for the capability table."""

    def test_detect(self, make_adapter: type) -> None:
        """Each adapter is checked and recorded."""
        adapters = {
            ItemSource.APPX: make_adapter(ItemSource.APPX),
            ItemSource.WINGET: make_adapter(ItemSource.WINGET, available=False),
        }

        capabilities = detect_capabilities(adapters)

        assert capabilities.is_available(ItemSource.APPX) is True
        assert capabilities.is_available(ItemSource.WINGET) is False

    def test_unchecked_source_unavailable(self) -> None:
        """Sources that were never checked count as unavailable."""
        capabilities = Capabilities({ItemSource.SERVICE: True})

        assert capabilities.is_available(ItemSource.SERVICE) is True
        assert capabilities.is_available(ItemSource.REGISTRY) is False
