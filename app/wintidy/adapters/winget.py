"""winget package adapter.

Lists packages with ``winget list --output json`` and uninstalls or upgrades
them by package id.
"""

import json
import logging
from collections.abc import Iterator
from typing import Any

from wintidy.adapters.base import QUERY_TIMEOUT, SourceAdapter, run_query, str_field
from wintidy.core.errors import CollectionError
from wintidy.models.diff import DiffItem, RemovalMethod
from wintidy.models.item import InstalledItem, ItemSource
from wintidy.utils.shell import command_exists, parse_json_records

logger = logging.getLogger(__name__)

WINGET_EXE = "winget"

# APPINSTALLER_CLI_ERROR_NO_APPLICATIONS_FOUND
NO_PACKAGE_FOUND = -1978335212

_COMMON_FLAGS: tuple[str, ...] = ("--accept-source-agreements", "--disable-interactivity")

_ACTION_FLAGS: tuple[str, ...] = (
    "--silent",
    "--accept-package-agreements",
    "--accept-source-agreements",
    "--disable-interactivity",
)


def _flatten(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Unwrap the ``{"Sources": [{"Packages": [...]}]}`` shape if present."""
    packages: list[dict[str, Any]] = []
    for record in records:
        sources = record.get("Sources")
        if isinstance(sources, list):
            for source in sources:
                if isinstance(source, dict):
                    packages.extend(p for p in source.get("Packages", []) if isinstance(p, dict))
        else:
            packages.append(record)
    return packages


class WingetAdapter(SourceAdapter):
    """Adapter for packages known to winget.

    Items are named by their winget id; the human-readable package name is
    kept as the display name so baselines can target either.
    """

    @property
    def source(self) -> ItemSource:
        """Return WINGET as the item source."""
        return ItemSource.WINGET

    @property
    def supported_methods(self) -> frozenset[RemovalMethod]:
        return frozenset({RemovalMethod.WINGET_UNINSTALL, RemovalMethod.WINGET_UPGRADE})

    def is_available(self) -> bool:
        """Check if the winget CLI is available."""
        return command_exists(WINGET_EXE)

    def detect(self) -> Iterator[InstalledItem]:
        """Enumerate installed packages.

        Raises:
            CollectionError: If winget fails or prints invalid JSON.
        """
        yield from self._list()

    def _list(self, *extra: str, timeout: float = QUERY_TIMEOUT) -> list[InstalledItem]:
        args = [WINGET_EXE, "list", *extra, "--output", "json", *_COMMON_FLAGS]
        result = run_query(args, timeout=timeout)
        if result.returncode == NO_PACKAGE_FOUND:
            return []
        if not result.success:
            msg = f"winget list failed ({result.returncode}): {result.stderr.strip()}"
            raise CollectionError(msg)

        try:
            records = _flatten(parse_json_records(result.stdout))
        except json.JSONDecodeError as e:
            raise CollectionError(f"Unparseable winget output: {e}") from e

        items: list[InstalledItem] = []
        for record in records:
            item = self._parse_record(record)
            if item is not None:
                items.append(item)
        return items

    def _parse_record(self, record: dict[str, Any]) -> InstalledItem | None:
        package_id = str_field(record, "Id", "PackageIdentifier")
        if package_id is None:
            return None
        return InstalledItem(
            name=package_id,
            source=ItemSource.WINGET,
            display_name=str_field(record, "Name"),
            version=str_field(record, "Version", "InstalledVersion"),
            publisher=str_field(record, "Publisher"),
            package_id=package_id,
            available_version=str_field(record, "Available", "AvailableVersion"),
        )

    def build_commands(self, item: DiffItem) -> list[list[str]]:
        package_id = item.package_id or item.name
        verb = "upgrade" if item.removal_method.is_upgrade else "uninstall"
        return [[WINGET_EXE, verb, "--id", package_id, "--exact", *_ACTION_FLAGS]]

    def verify(self, item: DiffItem, timeout: float = QUERY_TIMEOUT) -> bool:
        """Confirm the package is gone, or now reports a different version."""
        package_id = item.package_id or item.name
        matches = [
            found
            for found in self._list("--id", package_id, "--exact", timeout=timeout)
            if found.name.lower() == package_id.lower()
        ]

        if item.removal_method.is_upgrade:
            if not matches:
                logger.warning("Package %s disappeared during upgrade", package_id)
                return False
            return matches[0].version != item.version
        return not matches
