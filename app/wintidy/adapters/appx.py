"""AppX package adapter.

Enumerates Store packages with Get-AppxPackage and removes them in two
steps: the installed package, then its provisioned copy so new user
profiles do not get it back.
"""

from collections.abc import Iterator

from wintidy.adapters.base import PS_STRICT, QUERY_TIMEOUT, PowerShellAdapter, str_field
from wintidy.models.diff import DiffItem, RemovalMethod
from wintidy.models.item import InstalledItem, ItemSource
from wintidy.utils.shell import powershell_args, ps_quote

_LIST_SCRIPT = (
    "Get-AppxPackage | "
    "Select-Object Name, PackageFullName, PackageFamilyName, Version, Publisher, "
    "@{n='SignatureKind';e={$_.SignatureKind.ToString()}} | "
    "ConvertTo-Json -Compress -Depth 2"
)


class AppxAdapter(PowerShellAdapter):
    """Adapter for AppX (Microsoft Store) packages.

    System-signed packages are part of the OS image and are not reported.
    """

    required_cmdlet = "Get-AppxPackage"

    @property
    def source(self) -> ItemSource:
        """Return APPX as the item source."""
        return ItemSource.APPX

    @property
    def supported_methods(self) -> frozenset[RemovalMethod]:
        return frozenset({RemovalMethod.APPX_REMOVE})

    def detect(self) -> Iterator[InstalledItem]:
        """Enumerate AppX packages for the current user.

        Raises:
            CollectionError: If Get-AppxPackage fails.
        """
        for record in self.query(_LIST_SCRIPT):
            name = str_field(record, "Name")
            if name is None:
                continue
            if str_field(record, "SignatureKind") == "System":
                continue
            yield InstalledItem(
                name=name,
                source=ItemSource.APPX,
                version=str_field(record, "Version"),
                publisher=str_field(record, "Publisher"),
                package_full_name=str_field(record, "PackageFullName"),
                package_family_name=str_field(record, "PackageFamilyName"),
            )

    def build_commands(self, item: DiffItem) -> list[list[str]]:
        name = ps_quote(item.name)
        remove_installed = f"{PS_STRICT}Get-AppxPackage -Name {name} | Remove-AppxPackage"
        # No-op when the package is not provisioned
        remove_provisioned = (
            f"{PS_STRICT}Get-AppxProvisionedPackage -Online | "
            f"Where-Object {{ $_.DisplayName -eq {name} }} | "
            "Remove-AppxProvisionedPackage -Online | Out-Null"
        )
        return [powershell_args(remove_installed), powershell_args(remove_provisioned)]

    def verify(self, item: DiffItem, timeout: float = QUERY_TIMEOUT) -> bool:
        """Confirm no package with the item's name remains installed."""
        script = (
            f"Get-AppxPackage -Name {ps_quote(item.name)} | "
            "Select-Object Name | ConvertTo-Json -Compress"
        )
        return not self.query(script, timeout=timeout)
