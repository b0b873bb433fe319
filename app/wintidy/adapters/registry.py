"""Registry source adapter.

Covers two kinds of registry items:

- Uninstall entries under the machine, WOW6432Node, and per-user
  ``...\\CurrentVersion\\Uninstall`` keys, removed via their UninstallString.
- Individual registry values from the telemetry baseline, remediated with
  Set-ItemProperty.
"""

import logging
from collections.abc import Iterable, Iterator

from wintidy.adapters.base import PS_STRICT, QUERY_TIMEOUT, PowerShellAdapter, str_field
from wintidy.adapters.uninstall_string import parse_uninstall_string
from wintidy.models.baseline import RegistryValueSpec
from wintidy.models.diff import DiffItem, RemovalMethod
from wintidy.models.item import InstalledItem, ItemSource
from wintidy.utils.shell import powershell_args, ps_quote

logger = logging.getLogger(__name__)

UNINSTALL_KEYS: tuple[str, ...] = (
    "HKLM:\\SOFTWARE\\Microsoft\\Windows\\CurrentVersion\\Uninstall\\*",
    "HKLM:\\SOFTWARE\\WOW6432Node\\Microsoft\\Windows\\CurrentVersion\\Uninstall\\*",
    "HKCU:\\Software\\Microsoft\\Windows\\CurrentVersion\\Uninstall\\*",
)


def _uninstall_query() -> str:
    paths = ", ".join(ps_quote(key) for key in UNINSTALL_KEYS)
    return (
        f"Get-ItemProperty -Path @({paths}) -ErrorAction SilentlyContinue | "
        "Where-Object { $_.DisplayName } | "
        "Select-Object PSChildName, DisplayName, DisplayVersion, Publisher, InstallDate, "
        "UninstallString, QuietUninstallString, SystemComponent | "
        "ConvertTo-Json -Compress -Depth 2"
    )


def _ps_literal(value: str | int) -> str:
    if isinstance(value, int):
        return str(value)
    return ps_quote(value)


class RegistryAdapter(PowerShellAdapter):
    """Adapter for registry uninstall entries and registry values.

    Registry access goes through PowerShell's registry provider, so the
    same code path handles HKLM and HKCU without a native registry binding.
    """

    required_cmdlet = "Get-ItemProperty"

    @property
    def source(self) -> ItemSource:
        """Return REGISTRY as the item source."""
        return ItemSource.REGISTRY

    @property
    def supported_methods(self) -> frozenset[RemovalMethod]:
        return frozenset({RemovalMethod.UNINSTALL_STRING, RemovalMethod.REGISTRY_SET})

    def detect(self) -> Iterator[InstalledItem]:
        """Enumerate uninstall entries with a display name.

        System components (SystemComponent=1) are hidden from Programs and
        Features and are skipped here as well.

        Yields:
            InstalledItem for each uninstall entry.

        Raises:
            CollectionError: If the registry cannot be queried.
        """
        yield from self._uninstall_entries()

    def _uninstall_entries(self, timeout: float = QUERY_TIMEOUT) -> Iterator[InstalledItem]:
        for record in self.query(_uninstall_query(), timeout=timeout):
            item = self._parse_uninstall_record(record)
            if item is not None:
                yield item

    def _parse_uninstall_record(self, record: dict[str, object]) -> InstalledItem | None:
        name = str_field(record, "DisplayName")
        if name is None:
            return None
        if str(record.get("SystemComponent") or "0") == "1":
            return None

        return InstalledItem(
            name=name,
            source=ItemSource.REGISTRY,
            version=str_field(record, "DisplayVersion"),
            publisher=str_field(record, "Publisher"),
            install_date=str_field(record, "InstallDate"),
            uninstall_string=str_field(record, "QuietUninstallString", "UninstallString"),
        )

    def read_values(
        self, specs: Iterable[RegistryValueSpec], timeout: float = QUERY_TIMEOUT
    ) -> list[InstalledItem]:
        """Read the current data of registry values.

        Values that do not exist are reported with no state, which the diff
        engine treats as "NotSet".

        Args:
            specs: Registry values to read.
            timeout: Query timeout in seconds.

        Returns:
            One InstalledItem per requested value, named by the value's full target path.

        Raises:
            CollectionError: If the registry cannot be queried.
        """
        specs = list(specs)
        if not specs:
            return []

        entries = ", ".join(
            f"@{{P={ps_quote(spec.path)}; N={ps_quote(spec.name)}}}" for spec in specs
        )
        script = (
            f"@({entries}) | ForEach-Object {{ "
            "$v = (Get-ItemProperty -LiteralPath $_.P -Name $_.N "
            "-ErrorAction SilentlyContinue).($_.N); "
            "[pscustomobject]@{ Path = $_.P; Name = $_.N; Value = $v } "
            "} | ConvertTo-Json -Compress"
        )

        observed: dict[str, str | None] = {}
        for record in self.query(script, timeout=timeout):
            target = f"{record.get('Path')}\\{record.get('Name')}"
            value = record.get("Value")
            observed[target.lower()] = None if value is None else str(value)

        return [
            InstalledItem(
                name=spec.target,
                source=ItemSource.REGISTRY,
                display_name=spec.name,
                state=observed.get(spec.target.lower()),
            )
            for spec in specs
        ]

    def build_commands(self, item: DiffItem) -> list[list[str]]:
        if item.removal_method is RemovalMethod.REGISTRY_SET:
            spec = item.registry_value
            if spec is None:
                msg = f"no registry value recorded for {item.name}"
                raise ValueError(msg)
            path = ps_quote(spec.path)
            script = (
                f"{PS_STRICT}"
                f"if (-not (Test-Path -LiteralPath {path})) "
                f"{{ New-Item -Path {path} -Force | Out-Null }}; "
                f"Set-ItemProperty -LiteralPath {path} -Name {ps_quote(spec.name)} "
                f"-Value {_ps_literal(spec.value)} -Type {spec.value_type}"
            )
            return [powershell_args(script)]

        command = parse_uninstall_string(item.uninstall_string)
        logger.debug("Resolved uninstall command for %s: %s", item.name, command.argv)
        return [command.argv]

    def verify(self, item: DiffItem, timeout: float = QUERY_TIMEOUT) -> bool:
        """Confirm that a value now holds its desired data, or an entry is gone."""
        if item.removal_method is RemovalMethod.REGISTRY_SET and item.registry_value:
            current = self.read_values([item.registry_value], timeout=timeout)[0]
            return (current.state or "").lower() == item.desired_state.lower()

        target = item.name.lower()
        entries = self._uninstall_entries(timeout)
        return not any(found.name.lower() == target for found in entries)
