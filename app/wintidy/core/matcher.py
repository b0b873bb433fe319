"""Pattern matcher classifying installed items against a baseline.

Every item is classified by at most one pattern. Rules are evaluated in
priority order across the whole pattern list, so an exact match anywhere in
the baseline beats a wildcard match from an earlier pattern:

1. Exact: Name or DisplayName equals the pattern (confidence 100)
2. Publisher+Name: dotted ``Publisher.NamePart`` where Publisher contains
   the first segment and Name/DisplayName contains the second (95)
3. Wildcard: Name or DisplayName contains the pattern (80)
4. Publisher: Publisher contains the pattern (70)

All comparisons are case-insensitive. Patterns containing ``*`` or ``?`` are
glob patterns and must match the whole field instead of a substring.
Brackets are always literal, so ``HP Support [Beta]`` is a plain substring.
"""

import fnmatch
import logging
from collections.abc import Callable, Iterable, Sequence

from wintidy.core.errors import MatchError
from wintidy.models.baseline import BaselinePattern
from wintidy.models.item import InstalledItem
from wintidy.models.match import MatchResult, MatchType

logger = logging.getLogger(__name__)

_GLOB_CHARS = frozenset("*?")

# Characters that on their own would match every item
_MATCH_ALL_CHARS = frozenset("*?. ")

_MAX_PATTERN_LENGTH = 260

_Rule = Callable[[InstalledItem, BaselinePattern], bool]


def _is_glob(pattern: str) -> bool:
    return any(ch in _GLOB_CHARS for ch in pattern)


def _squash(value: str) -> str:
    """Lowercase and drop spaces for dotted-segment comparison."""
    return value.lower().replace(" ", "")


def _field_matches(value: str | None, pattern: str) -> bool:
    """Check if a field contains a plain pattern or matches a glob.

    Both arguments are expected to be lowercased already.
    """
    if not value:
        return False
    if _is_glob(pattern):
        return fnmatch.fnmatchcase(value, pattern.replace("[", "[[]"))
    return pattern in value


def validate_pattern(pattern: BaselinePattern) -> None:
    """Reject patterns that cannot be matched safely.

    Args:
        pattern: Baseline pattern to validate.

    Raises:
        MatchError: If the pattern is empty, too long, contains control
            characters, or would match every item.
    """
    text = pattern.pattern
    if not text or not text.strip():
        msg = f"Empty pattern in category {pattern.category!r}"
        raise MatchError(msg)
    if len(text) > _MAX_PATTERN_LENGTH:
        msg = f"Pattern longer than {_MAX_PATTERN_LENGTH} characters: {text[:40]!r}..."
        raise MatchError(msg)
    if any(ord(ch) < 32 for ch in text):
        msg = f"Pattern contains control characters: {text!r}"
        raise MatchError(msg)
    if set(text) <= _MATCH_ALL_CHARS:
        msg = f"Pattern would match every item: {text!r}"
        raise MatchError(msg)


class PatternMatcher:
    """Classifies installed items against a list of baseline patterns.

    Malformed patterns are dropped at construction time and reported through
    :attr:`rejected`; they never abort matching of the remaining patterns.

    Example:
        >>> matcher = PatternMatcher([BaselinePattern("king.candycrush")])
        >>> results = matcher.match(items)
    """

    def __init__(self, patterns: Iterable[BaselinePattern]) -> None:
        """Initialize the matcher, validating each pattern.

        Args:
            patterns: Baseline patterns in priority order.
        """
        self._patterns: list[BaselinePattern] = []
        self.rejected: list[tuple[BaselinePattern, str]] = []

        for pattern in patterns:
            try:
                validate_pattern(pattern)
            except MatchError as e:
                logger.warning("Skipping malformed pattern: %s", e)
                self.rejected.append((pattern, str(e)))
                continue
            self._patterns.append(pattern)

        self._rules: tuple[tuple[MatchType, _Rule], ...] = (
            (MatchType.EXACT, self._exact),
            (MatchType.PUBLISHER_NAME, self._publisher_name),
            (MatchType.WILDCARD, self._wildcard),
            (MatchType.PUBLISHER, self._publisher),
        )

    @property
    def is_empty(self) -> bool:
        """Check if no usable patterns are loaded."""
        return not self._patterns

    def match(self, items: Iterable[InstalledItem | None]) -> list[MatchResult]:
        """Classify items, returning one result per matched item.

        Args:
            items: Items to classify. None entries are ignored.

        Returns:
            Match results in input order; unmatched items are omitted.
        """
        results: list[MatchResult] = []
        for item in items:
            if item is None:
                continue
            result = self.match_item(item)
            if result is not None:
                results.append(result)
        return results

    def match_item(self, item: InstalledItem) -> MatchResult | None:
        """Classify a single item, stopping at the first matching rule.

        Args:
            item: Item to classify.

        Returns:
            MatchResult for the first match, or None if nothing matched.
        """
        for match_type, rule in self._rules:
            for pattern in self._patterns:
                if rule(item, pattern):
                    logger.debug(
                        "%s matched %r via %s (%d)",
                        item.name,
                        pattern.pattern,
                        match_type.value,
                        match_type.confidence,
                    )
                    return MatchResult(item=item, pattern=pattern, match_type=match_type)
        return None

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    @staticmethod
    def _names(item: InstalledItem) -> tuple[str, ...]:
        names = [item.name.lower()]
        if item.display_name:
            names.append(item.display_name.lower())
        return tuple(names)

    def _exact(self, item: InstalledItem, pattern: BaselinePattern) -> bool:
        target = pattern.pattern.strip().lower()
        return any(name == target for name in self._names(item))

    def _publisher_name(self, item: InstalledItem, pattern: BaselinePattern) -> bool:
        parts = pattern.dotted_parts
        if parts is None or not item.publisher:
            return False
        publisher_part, name_part = (_squash(part) for part in parts)
        if not _field_matches(_squash(item.publisher), _wrap_glob(publisher_part)):
            return False
        return any(
            _field_matches(_squash(name), _wrap_glob(name_part)) for name in self._names(item)
        )

    def _wildcard(self, item: InstalledItem, pattern: BaselinePattern) -> bool:
        target = pattern.pattern.strip().lower()
        return any(_field_matches(name, target) for name in self._names(item))

    def _publisher(self, item: InstalledItem, pattern: BaselinePattern) -> bool:
        if not item.publisher:
            return False
        return _field_matches(item.publisher.lower(), pattern.pattern.strip().lower())


def _wrap_glob(segment: str) -> str:
    """Turn a glob segment into a 'contains' glob; plain segments are unchanged."""
    if _is_glob(segment):
        return f"*{segment}*"
    return segment


def match_items(
    items: Sequence[InstalledItem | None],
    patterns: Sequence[BaselinePattern],
) -> list[MatchResult]:
    """Classify items against patterns.

    Convenience wrapper around :class:`PatternMatcher`.

    Args:
        items: Items to classify.
        patterns: Baseline patterns in priority order.

    Returns:
        At most one MatchResult per item, in input order.
    """
    return PatternMatcher(patterns).match(items)
