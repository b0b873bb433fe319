"""Source adapters for detecting and remediating items.

Each adapter owns one item source. :data:`ADAPTER_TYPES` maps a source to its
adapter class and :func:`get_adapters` builds the full set.
"""

from collections.abc import Iterable

from wintidy.adapters.appx import AppxAdapter
from wintidy.adapters.base import SourceAdapter
from wintidy.adapters.chocolatey import ChocolateyAdapter
from wintidy.adapters.registry import RegistryAdapter
from wintidy.adapters.scheduled_task import ScheduledTaskAdapter
from wintidy.adapters.service import ServiceAdapter
from wintidy.adapters.winget import WingetAdapter
from wintidy.models.item import ItemSource

ADAPTER_TYPES: dict[ItemSource, type[SourceAdapter]] = {
    ItemSource.REGISTRY: RegistryAdapter,
    ItemSource.APPX: AppxAdapter,
    ItemSource.WINGET: WingetAdapter,
    ItemSource.CHOCOLATEY: ChocolateyAdapter,
    ItemSource.SERVICE: ServiceAdapter,
    ItemSource.SCHEDULED_TASK: ScheduledTaskAdapter,
}


def get_adapters(sources: Iterable[ItemSource] | None = None) -> dict[ItemSource, SourceAdapter]:
    """Instantiate adapters keyed by source.

    Args:
        sources: Sources to include. If None, all sources are included.

    Returns:
        Dictionary mapping each source to its adapter instance.
    """
    selected = list(sources) if sources is not None else list(ADAPTER_TYPES)
    return {source: ADAPTER_TYPES[source]() for source in selected}


__all__ = [
    "ADAPTER_TYPES",
    "AppxAdapter",
    "ChocolateyAdapter",
    "RegistryAdapter",
    "ScheduledTaskAdapter",
    "ServiceAdapter",
    "SourceAdapter",
    "WingetAdapter",
    "get_adapters",
]
