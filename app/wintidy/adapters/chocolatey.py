"""Chocolatey package adapter.

Uses choco's ``--limit-output`` mode, which prints one ``name|version``
record per line.
"""

import logging
from collections.abc import Iterator

from wintidy.adapters.base import QUERY_TIMEOUT, SourceAdapter, run_query
from wintidy.core.errors import CollectionError
from wintidy.models.diff import DiffItem, RemovalMethod
from wintidy.models.item import InstalledItem, ItemSource
from wintidy.utils.shell import command_exists

logger = logging.getLogger(__name__)

CHOCO_EXE = "choco"

_ACTION_FLAGS: tuple[str, ...] = ("-y", "--limit-output", "--no-progress")


def parse_limit_output(text: str) -> list[list[str]]:
    """Split ``--limit-output`` text into pipe-separated fields.

    Lines without a separator (banners, warnings) are ignored.
    """
    rows: list[list[str]] = []
    for line in text.splitlines():
        line = line.strip()
        if "|" not in line:
            continue
        rows.append([part.strip() for part in line.split("|")])
    return rows


class ChocolateyAdapter(SourceAdapter):
    """Adapter for Chocolatey packages."""

    @property
    def source(self) -> ItemSource:
        """Return CHOCOLATEY as the item source."""
        return ItemSource.CHOCOLATEY

    @property
    def supported_methods(self) -> frozenset[RemovalMethod]:
        return frozenset({RemovalMethod.CHOCO_UNINSTALL, RemovalMethod.CHOCO_UPGRADE})

    def is_available(self) -> bool:
        """Check if the choco CLI is available."""
        return command_exists(CHOCO_EXE)

    def detect(self) -> Iterator[InstalledItem]:
        """Enumerate installed packages with their available upgrades.

        If ``choco outdated`` fails, packages are still reported without an
        available version.

        Raises:
            CollectionError: If ``choco list`` fails.
        """
        installed = self._installed()
        available = self._outdated()

        for name, version in installed:
            yield InstalledItem(
                name=name,
                source=ItemSource.CHOCOLATEY,
                version=version,
                package_id=name,
                available_version=available.get(name.lower()),
            )

    def _installed(self, *extra: str, timeout: float = QUERY_TIMEOUT) -> list[tuple[str, str]]:
        args = [CHOCO_EXE, "list", "--local-only", "--limit-output", *extra]
        result = run_query(args, timeout=timeout)
        if not result.success:
            msg = f"choco list failed ({result.returncode}): {result.stderr.strip()}"
            raise CollectionError(msg)
        return [(row[0], row[1]) for row in parse_limit_output(result.stdout) if row[0]]

    def _outdated(self) -> dict[str, str]:
        try:
            result = run_query([CHOCO_EXE, "outdated", "--limit-output"])
        except CollectionError as e:
            logger.warning("choco outdated unavailable: %s", e)
            return {}
        if not result.success:
            logger.warning("choco outdated failed (%d), no upgrade data", result.returncode)
            return {}

        available: dict[str, str] = {}
        for row in parse_limit_output(result.stdout):
            # name|current|available|pinned
            if len(row) < 3:
                continue
            if len(row) >= 4 and row[3].lower() == "true":
                continue
            available[row[0].lower()] = row[2]
        return available

    def build_commands(self, item: DiffItem) -> list[list[str]]:
        name = item.package_id or item.name
        verb = "upgrade" if item.removal_method.is_upgrade else "uninstall"
        return [[CHOCO_EXE, verb, name, *_ACTION_FLAGS]]

    def verify(self, item: DiffItem, timeout: float = QUERY_TIMEOUT) -> bool:
        """Confirm the package is gone, or its installed version changed."""
        name = (item.package_id or item.name).lower()
        installed = self._installed("--exact", name, timeout=timeout)
        versions = {pkg.lower(): version for pkg, version in installed}

        if item.removal_method.is_upgrade:
            return name in versions and versions[name] != item.version
        return name not in versions
