"""Scheduled task adapter.

Tasks are named by their full path (``\\Microsoft\\Windows\\...\\Name``) so
baselines can target a task precisely or a folder with a glob.
"""

from collections.abc import Iterator

from wintidy.adapters.base import PS_STRICT, QUERY_TIMEOUT, PowerShellAdapter, str_field
from wintidy.models.diff import DiffItem, RemovalMethod
from wintidy.models.item import InstalledItem, ItemSource
from wintidy.utils.shell import powershell_args, ps_quote

_LIST_SCRIPT = (
    "Get-ScheduledTask | Select-Object "
    "@{n='Path';e={$_.TaskPath + $_.TaskName}}, TaskName, "
    "@{n='State';e={$_.State.ToString()}} | "
    "ConvertTo-Json -Compress"
)


def split_task_path(full_path: str) -> tuple[str, str]:
    """Split a full task path into (TaskPath, TaskName), keeping the trailing backslash."""
    folder, _, name = full_path.rpartition("\\")
    return f"{folder}\\", name


class ScheduledTaskAdapter(PowerShellAdapter):
    """Adapter for Task Scheduler tasks."""

    required_cmdlet = "Get-ScheduledTask"

    @property
    def source(self) -> ItemSource:
        """Return SCHEDULED_TASK as the item source."""
        return ItemSource.SCHEDULED_TASK

    @property
    def supported_methods(self) -> frozenset[RemovalMethod]:
        return frozenset({RemovalMethod.TASK_DISABLE})

    def detect(self) -> Iterator[InstalledItem]:
        """Enumerate scheduled tasks with their state.

        Raises:
            CollectionError: If Get-ScheduledTask fails.
        """
        for record in self.query(_LIST_SCRIPT):
            path = str_field(record, "Path")
            if path is None:
                continue
            yield InstalledItem(
                name=path,
                source=ItemSource.SCHEDULED_TASK,
                display_name=str_field(record, "TaskName"),
                state=str_field(record, "State"),
            )

    def _task_args(self, item: DiffItem) -> str:
        folder, name = split_task_path(item.name)
        return f"-TaskPath {ps_quote(folder)} -TaskName {ps_quote(name)}"

    def build_commands(self, item: DiffItem) -> list[list[str]]:
        script = f"{PS_STRICT}Disable-ScheduledTask {self._task_args(item)} | Out-Null"
        return [powershell_args(script)]

    def verify(self, item: DiffItem, timeout: float = QUERY_TIMEOUT) -> bool:
        """Confirm the task is now Disabled (or no longer exists)."""
        script = (
            f"Get-ScheduledTask {self._task_args(item)} -ErrorAction SilentlyContinue | "
            "Select-Object @{n='State';e={$_.State.ToString()}} | "
            "ConvertTo-Json -Compress"
        )
        records = self.query(script, timeout=timeout)
        if not records:
            return True
        return str_field(records[0], "State") == "Disabled"
