"""Match result models produced by the pattern matcher."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from wintidy.models.baseline import BaselinePattern
from wintidy.models.item import InstalledItem, ItemSource


class MatchType(str, Enum):
    """How an item was matched against a baseline pattern.

    Members are declared in evaluation priority order. Each carries a fixed
    confidence score, see :attr:`confidence`.
    """

    EXACT = "Exact"
    PUBLISHER_NAME = "Publisher+Name"
    WILDCARD = "Wildcard"
    PUBLISHER = "Publisher"

    @property
    def confidence(self) -> int:
        """Return the confidence score associated with this match type."""
        return _CONFIDENCE[self]


_CONFIDENCE: dict[MatchType, int] = {
    MatchType.EXACT: 100,
    MatchType.PUBLISHER_NAME: 95,
    MatchType.WILDCARD: 80,
    MatchType.PUBLISHER: 70,
}


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Classification of one installed item by one baseline pattern.

    Attributes:
        item: The classified item.
        pattern: The baseline pattern that matched first.
        match_type: Rule that produced the match.
    """

    item: InstalledItem
    pattern: BaselinePattern
    match_type: MatchType

    @property
    def confidence(self) -> int:
        """Confidence score of the match (100, 95, 80 or 70)."""
        return self.match_type.confidence

    @property
    def source(self) -> ItemSource:
        """Source of the matched item."""
        return self.item.source

    @property
    def matched_pattern(self) -> str:
        """Pattern string that matched."""
        return self.pattern.pattern
