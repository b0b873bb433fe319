"""Protected Windows components.

This module defines names and patterns for core OS and runtime components
that must never be removed or disabled, regardless of how a baseline
pattern matched them.
"""

import fnmatch
from collections.abc import Iterable

# Protected name patterns (glob-style, case-insensitive)
PROTECTED_PATTERNS: tuple[str, ...] = (
    # Store and app platform
    "Microsoft.WindowsStore*",
    "Microsoft.StorePurchaseApp*",
    "Microsoft.DesktopAppInstaller*",
    "Microsoft.Services.Store.Engagement*",
    # Frameworks and runtimes
    "Microsoft.VCLibs*",
    "Microsoft.UI.Xaml*",
    "Microsoft.NET.*",
    "Microsoft.WindowsAppRuntime*",
    "Microsoft Visual C++*Redistributable*",
    "Microsoft .NET*",
    "Microsoft Edge WebView2*",
    # Shell and security
    "Microsoft.Windows.ShellExperienceHost*",
    "Microsoft.Windows.StartMenuExperienceHost*",
    "Microsoft.Windows.Search*",
    "Microsoft.SecHealthUI*",
    "Microsoft.Windows.SecHealthUI*",
    "Microsoft.AAD.BrokerPlugin*",
    "Microsoft.AccountsControl*",
    "Microsoft.LockApp*",
    "Microsoft.Win32WebViewHost*",
    "windows.immersivecontrolpanel*",
    # Drivers and hardware support
    "*Driver*Package*",
)

# Exact names that are always protected (compared case-insensitively)
PROTECTED_NAMES: frozenset[str] = frozenset(
    name.lower()
    for name in (
        # Package managers used by remediation itself
        "winget",
        "Microsoft.Winget.Source",
        "chocolatey",
        "PowerShell",
        "Microsoft.PowerShell",
        # Services the OS cannot run without
        "WinDefend",
        "wuauserv",
        "BITS",
        "CryptSvc",
        "TrustedInstaller",
        "RpcSs",
        "EventLog",
        "Dhcp",
        "Dnscache",
        "mpssvc",
        "Winmgmt",
        "AppXSvc",
        "ClipSVC",
    )
)


def get_protected_patterns() -> list[str]:
    """Get the built-in protected patterns, exact names included.

    Returns:
        List of glob-style patterns; exact names are valid patterns too.
    """
    return [*PROTECTED_PATTERNS, *sorted(PROTECTED_NAMES)]


def is_protected(name: str, patterns: Iterable[str] | None = None) -> bool:
    """Check if an item is protected and must not be touched.

    Args:
        name: Item name (or display name) to check.
        patterns: Glob patterns to check against. If None, uses the
            built-in protected list.

    Returns:
        True if the name matches any protected pattern, False otherwise.
    """
    lowered = name.lower()

    if patterns is None:
        # Check exact matches first (faster)
        if lowered in PROTECTED_NAMES:
            return True
        patterns = PROTECTED_PATTERNS

    return any(fnmatch.fnmatchcase(lowered, pattern.lower()) for pattern in patterns)
