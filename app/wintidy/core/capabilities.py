"""Per-run capability table of available item sources."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from wintidy.adapters.base import SourceAdapter
from wintidy.models.item import ItemSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Capabilities:
    """Which item sources can be queried and acted on in this run.

    Attributes:
        available: Mapping of source to availability. Sources not present
            in the mapping are unavailable.
    """

    available: Mapping[ItemSource, bool] = field(default_factory=dict)

    def is_available(self, source: ItemSource) -> bool:
        """Check if a source is available."""
        return self.available.get(source, False)


def detect_capabilities(adapters: Mapping[ItemSource, SourceAdapter]) -> Capabilities:
    """Run each adapter's availability check once.

    Args:
        adapters: Adapters keyed by source.

    Returns:
        Capabilities table for the run.
    """
    available: dict[ItemSource, bool] = {}
    for source, adapter in adapters.items():
        available[source] = adapter.is_available()
        if not available[source]:
            logger.warning("%s source unavailable on this system", source.value)
        else:
            logger.debug("%s source available", source.value)
    return Capabilities(available=available)
