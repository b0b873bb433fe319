"""Unit tests for UninstallString parsing."""

import pytest
from wintidy.adapters.uninstall_string import parse_uninstall_string

GUID = "{23170F69-40C1-2702-2301-000001000000}"


class TestMsiCommands:
    """Tests for msiexec uninstall strings."""

    def test_install_switch_rewritten(self) -> None:
        """/I{GUID} becomes /X{GUID} with quiet flags."""
        command = parse_uninstall_string(f"MsiExec.exe /I{GUID}")

        assert command.is_msi is True
        assert command.argv == ["MsiExec.exe", f"/X{GUID}", "/qn", "/norestart"]

    def test_uninstall_switch_kept(self) -> None:
        """/X{GUID} stays /X{GUID}."""
        command = parse_uninstall_string(f"msiexec /x{GUID}")

        assert command.arguments[0] == f"/X{GUID}"

    def test_separate_product_code(self) -> None:
        """A product code after a space is preserved."""
        command = parse_uninstall_string(f"MsiExec.exe /I {GUID}")

        assert command.argv == ["MsiExec.exe", "/X", GUID, "/qn", "/norestart"]

    def test_existing_quiet_flag(self) -> None:
        """An existing quiet switch is not duplicated."""
        command = parse_uninstall_string(f"MsiExec.exe /X{GUID} /quiet /norestart")

        assert command.argv == ["MsiExec.exe", f"/X{GUID}", "/quiet", "/norestart"]

    def test_full_path_to_msiexec(self) -> None:
        """A quoted full path to msiexec is recognised."""
        command = parse_uninstall_string(f'"C:\\Windows\\System32\\msiexec.exe" /I{GUID}')

        assert command.is_msi is True
        assert command.executable == "C:\\Windows\\System32\\msiexec.exe"

    def test_missing_product_code(self) -> None:
        """msiexec without an action cannot be resolved."""
        with pytest.raises(ValueError, match="no /I or /X"):
            parse_uninstall_string("MsiExec.exe /qn")


class TestExeCommands:
    """Tests for EXE uninstall strings."""

    def test_quoted_path_with_spaces(self) -> None:
        """A quoted executable gets /S appended."""
        command = parse_uninstall_string('"C:\\Program Files\\Contoso\\uninst.exe"')

        assert command.is_msi is False
        assert command.argv == ["C:\\Program Files\\Contoso\\uninst.exe", "/S"]

    def test_unquoted_path_with_spaces(self) -> None:
        """An unquoted path is cut after .exe."""
        command = parse_uninstall_string("C:\\Program Files\\Contoso\\uninstall.exe --remove")

        assert command.executable == "C:\\Program Files\\Contoso\\uninstall.exe"
        assert command.arguments == ("--remove", "/S")

    @pytest.mark.parametrize("flag", ["/S", "/SILENT", "/VERYSILENT", "--silent", "-q", "/quiet"])
    def test_existing_silent_flag(self, flag: str) -> None:
        """An existing silent switch is not duplicated."""
        command = parse_uninstall_string(f'"C:\\Apps\\uninst.exe" {flag}')

        assert command.arguments == (flag,)

    def test_quoted_arguments(self) -> None:
        """Quoted arguments are unwrapped."""
        command = parse_uninstall_string(
            '"C:\\Apps\\setup.exe" /uninstall "C:\\Program Files\\App\\app.ini"'
        )

        assert command.arguments == ("/uninstall", "C:\\Program Files\\App\\app.ini", "/S")

    def test_no_extension(self) -> None:
        """Commands without .exe split at the first space."""
        command = parse_uninstall_string("rundll32 dfshim.dll,ShArpMaintain App.application")

        assert command.executable == "rundll32"


class TestInvalidStrings:
    """Tests for unusable uninstall strings."""

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty(self, raw: str | None) -> None:
        """Empty strings cannot be parsed."""
        with pytest.raises(ValueError, match="no uninstall string"):
            parse_uninstall_string(raw)

    def test_unterminated_quote(self) -> None:
        """An unterminated quote is rejected."""
        with pytest.raises(ValueError, match="unterminated quote"):
            parse_uninstall_string('"C:\\Program Files\\uninst.exe /S')
