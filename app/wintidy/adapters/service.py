"""Windows service adapter."""

from collections.abc import Iterator

from wintidy.adapters.base import PS_STRICT, QUERY_TIMEOUT, PowerShellAdapter, str_field
from wintidy.models.diff import DiffItem, RemovalMethod
from wintidy.models.item import InstalledItem, ItemSource
from wintidy.utils.shell import powershell_args, ps_quote

_LIST_SCRIPT = (
    "Get-Service | Select-Object Name, DisplayName, "
    "@{n='Status';e={$_.Status.ToString()}}, "
    "@{n='StartType';e={$_.StartType.ToString()}} | "
    "ConvertTo-Json -Compress"
)


class ServiceAdapter(PowerShellAdapter):
    """Adapter for Windows services.

    An item's state is its start type (Automatic, Manual, Disabled), which
    is what the telemetry baseline prescribes.
    """

    required_cmdlet = "Get-Service"

    @property
    def source(self) -> ItemSource:
        """Return SERVICE as the item source."""
        return ItemSource.SERVICE

    @property
    def supported_methods(self) -> frozenset[RemovalMethod]:
        return frozenset({RemovalMethod.SERVICE_DISABLE})

    def detect(self) -> Iterator[InstalledItem]:
        """Enumerate services with their start type.

        Raises:
            CollectionError: If Get-Service fails.
        """
        for record in self.query(_LIST_SCRIPT):
            name = str_field(record, "Name")
            if name is None:
                continue
            yield InstalledItem(
                name=name,
                source=ItemSource.SERVICE,
                display_name=str_field(record, "DisplayName"),
                state=str_field(record, "StartType"),
            )

    def build_commands(self, item: DiffItem) -> list[list[str]]:
        name = ps_quote(item.name)
        script = (
            f"Stop-Service -Name {name} -Force -ErrorAction SilentlyContinue; "
            f"{PS_STRICT}Set-Service -Name {name} -StartupType Disabled"
        )
        return [powershell_args(script)]

    def verify(self, item: DiffItem, timeout: float = QUERY_TIMEOUT) -> bool:
        """Confirm the service's start type is now Disabled."""
        script = (
            f"Get-Service -Name {ps_quote(item.name)} -ErrorAction SilentlyContinue | "
            "Select-Object @{n='StartType';e={$_.StartType.ToString()}} | "
            "ConvertTo-Json -Compress"
        )
        records = self.query(script, timeout=timeout)
        if not records:
            return True
        return str_field(records[0], "StartType") == "Disabled"
