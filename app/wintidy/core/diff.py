"""Diff engine turning detected state into a remediation work list.

The DiffEngine reduces classified or raw system state against a baseline to
a minimal, deduplicated list of DiffItems. Two modes are supported:

- Presence diff (bloatware, telemetry): baseline targets that are present
  or non-compliant and should be removed or disabled.
- Version diff (upgrade): installed packages whose available version
  differs from the installed one, minus excluded packages.

Output is order-stable: identical inputs always produce the same list.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from wintidy.core.artifacts import read_json, write_json_atomic
from wintidy.core.errors import DiffFileError
from wintidy.core.matcher import PatternMatcher
from wintidy.core.protected import is_protected
from wintidy.models.baseline import BaselinePattern
from wintidy.models.diff import DiffItem, DiffMode, RemovalMethod
from wintidy.models.item import SOURCE_ORDER, InstalledItem, ItemSource
from wintidy.models.match import MatchResult

logger = logging.getLogger(__name__)

STATE_PRESENT = "Present"
STATE_ABSENT = "Absent"
STATE_NOT_SET = "NotSet"

# Removal method used for a presence-diff item discovered by each source
REMOVAL_METHODS: dict[ItemSource, RemovalMethod] = {
    ItemSource.REGISTRY: RemovalMethod.UNINSTALL_STRING,
    ItemSource.APPX: RemovalMethod.APPX_REMOVE,
    ItemSource.WINGET: RemovalMethod.WINGET_UNINSTALL,
    ItemSource.CHOCOLATEY: RemovalMethod.CHOCO_UNINSTALL,
    ItemSource.SERVICE: RemovalMethod.SERVICE_DISABLE,
    ItemSource.SCHEDULED_TASK: RemovalMethod.TASK_DISABLE,
}

UPGRADE_METHODS: dict[ItemSource, RemovalMethod] = {
    ItemSource.WINGET: RemovalMethod.WINGET_UPGRADE,
    ItemSource.CHOCOLATEY: RemovalMethod.CHOCO_UPGRADE,
}


def _sort_key(item: DiffItem) -> tuple[int, str, str]:
    return (SOURCE_ORDER.index(item.source), item.name.lower(), item.name)


class DiffEngine:
    """Engine for computing baseline violations from current system state.

    Protected items are dropped from every diff, so a protected component
    can never reach the remediation executor through the diff artifact.

    Example:
        >>> engine = DiffEngine(get_protected_patterns())
        >>> diff = engine.compute(patterns, snapshot)
        >>> save_diff(diff, get_diff_path("bloatware"))
    """

    def __init__(self, protected_patterns: Sequence[str] | None = None) -> None:
        """Initialize the DiffEngine.

        Args:
            protected_patterns: Patterns of items that must never appear in a
                diff. If None, uses the built-in protected list.
        """
        self._protected = list(protected_patterns) if protected_patterns is not None else None
        self.dropped_protected: list[str] = []
        self.rejected_patterns: list[str] = []

    def matcher(self, patterns: Iterable[BaselinePattern]) -> PatternMatcher:
        """Build a pattern matcher, recording why any pattern was rejected."""
        matcher = PatternMatcher(patterns)
        self.rejected_patterns.extend(reason for _, reason in matcher.rejected)
        return matcher

    def compute(
        self,
        patterns: Sequence[BaselinePattern],
        snapshot: Sequence[InstalledItem],
        *,
        mode: DiffMode = DiffMode.PRESENCE,
    ) -> list[DiffItem]:
        """Compute the diff between a baseline and the current snapshot.

        In presence mode, software patterns are run through the pattern matcher
        and settings patterns are compared with the observed state. In version
        mode, the patterns are the upgrade exclude list.

        Args:
            patterns: Baseline patterns.
            snapshot: Items reported by the source adapters.
            mode: Presence or version diff.

        Returns:
            Deduplicated, order-stable list of DiffItems.
        """
        if mode is DiffMode.VERSION:
            return self.version_diff(snapshot, patterns)

        software = [p for p in patterns if not p.is_setting]
        settings = [p for p in patterns if p.is_setting]

        items: list[DiffItem] = []
        if software:
            items.extend(self.presence_diff(self.matcher(software).match(snapshot)))
        if settings:
            items.extend(self.settings_diff(settings, snapshot))
        return self._finalize(items)

    def presence_diff(self, matches: Iterable[MatchResult]) -> list[DiffItem]:
        """Build the diff for matched items that should not be present.

        Args:
            matches: Match results from the pattern matcher.

        Returns:
            Deduplicated, order-stable list of DiffItems.
        """
        items: list[DiffItem] = []
        for match in matches:
            item = match.item
            items.append(
                DiffItem(
                    name=item.name,
                    source=item.source,
                    category=match.pattern.category,
                    current_state=item.state or STATE_PRESENT,
                    desired_state=STATE_ABSENT,
                    removal_method=REMOVAL_METHODS[item.source],
                    display_name=item.display_name,
                    version=item.version,
                    package_id=item.package_id,
                    uninstall_string=item.uninstall_string,
                    package_full_name=item.package_full_name,
                    package_family_name=item.package_family_name,
                    matched_pattern=match.matched_pattern,
                    match_type=match.match_type.value,
                    confidence=match.confidence,
                )
            )
        return self._finalize(items)

    def settings_diff(
        self,
        patterns: Iterable[BaselinePattern],
        snapshot: Iterable[InstalledItem],
    ) -> list[DiffItem]:
        """Build the diff for services, tasks, and registry values out of compliance.

        Service and task patterns may be globs. Targets that do not exist on
        the system are compliant. Registry values compare the observed data
        with the desired data as strings.

        Args:
            patterns: Settings patterns (entries with an expected state).
            snapshot: Current services, tasks, and registry values.

        Returns:
            Deduplicated, order-stable list of DiffItems.
        """
        by_source: dict[ItemSource, list[InstalledItem]] = {}
        for item in snapshot:
            by_source.setdefault(item.source, []).append(item)

        items: list[DiffItem] = []
        for pattern in patterns:
            if pattern.source is None or pattern.expected_state is None:
                logger.debug("Ignoring non-settings pattern %r in settings diff", pattern.pattern)
                continue

            target = pattern.pattern.lower()
            for current in by_source.get(pattern.source, []):
                if pattern.registry_value is not None:
                    if current.name.lower() != target:
                        continue
                elif not fnmatch.fnmatchcase(current.name.lower(), target):
                    continue

                current_state = current.state or STATE_NOT_SET
                if current_state.lower() == pattern.expected_state.lower():
                    continue

                items.append(
                    DiffItem(
                        name=current.name,
                        source=current.source,
                        category=pattern.category,
                        current_state=current_state,
                        desired_state=pattern.expected_state,
                        removal_method=(
                            RemovalMethod.REGISTRY_SET
                            if pattern.registry_value is not None
                            else REMOVAL_METHODS[current.source]
                        ),
                        display_name=current.display_name,
                        matched_pattern=pattern.pattern,
                        registry_value=pattern.registry_value,
                    )
                )
        return self._finalize(items)

    def version_diff(
        self,
        items: Iterable[InstalledItem],
        exclude_patterns: Sequence[BaselinePattern] = (),
    ) -> list[DiffItem]:
        """Build the diff of packages with a different available version.

        Args:
            items: Installed packages from upgrade-capable sources.
            exclude_patterns: Packages matching any of these are never upgraded.

        Returns:
            Deduplicated, order-stable list of DiffItems.
        """
        excluder = self.matcher(exclude_patterns)
        diff_items: list[DiffItem] = []

        for item in items:
            if item.source not in UPGRADE_METHODS or not item.has_update:
                continue
            if not excluder.is_empty and excluder.match_item(item) is not None:
                logger.info("Excluded from upgrade: %s", item.label)
                continue

            diff_items.append(
                DiffItem(
                    name=item.name,
                    source=item.source,
                    category="upgrade",
                    current_state=item.version or "unknown",
                    desired_state=item.available_version or "latest",
                    removal_method=UPGRADE_METHODS[item.source],
                    display_name=item.display_name,
                    version=item.version,
                    package_id=item.package_id,
                )
            )
        return self._finalize(diff_items)

    def _finalize(self, items: Iterable[DiffItem]) -> list[DiffItem]:
        """Drop protected items, deduplicate (first wins), and sort."""
        seen: set[tuple[str, ItemSource]] = set()
        unique: list[DiffItem] = []

        for item in items:
            if self._is_protected(item):
                logger.info("Protected item excluded from diff: %s", item.key_str)
                self.dropped_protected.append(item.key_str)
                continue
            if item.key in seen:
                logger.debug("Duplicate diff entry ignored: %s", item.key_str)
                continue
            seen.add(item.key)
            unique.append(item)

        unique.sort(key=_sort_key)
        return unique

    def _is_protected(self, item: DiffItem) -> bool:
        names = [item.name]
        if item.display_name:
            names.append(item.display_name)
        if item.package_id:
            names.append(item.package_id)
        return any(is_protected(name, self._protected) for name in names)


def save_diff(items: Sequence[DiffItem], path: Path) -> Path:
    """Persist a diff as a JSON array.

    Args:
        items: Diff items in execution order.
        path: Artifact path.

    Returns:
        The artifact path.

    Raises:
        DiffFileError: If the file cannot be written.
    """
    logger.info("Writing %d diff item(s) to %s", len(items), path)
    return write_json_atomic(path, [item.to_dict() for item in items])


def load_diff(path: Path) -> list[DiffItem]:
    """Load a persisted diff.

    Args:
        path: Artifact path written by :func:`save_diff`.

    Returns:
        Diff items in their persisted order.

    Raises:
        DiffFileError: If the file is missing or malformed.
    """
    data = read_json(path)
    if not isinstance(data, list):
        raise DiffFileError(f"Diff artifact {path} must contain a JSON array")

    try:
        return [DiffItem.from_dict(entry) for entry in data]
    except (KeyError, TypeError, ValueError) as e:
        raise DiffFileError(f"Invalid diff entry in {path}: {e}") from e


def compute_diff(
    patterns: Sequence[BaselinePattern],
    snapshot: Sequence[InstalledItem],
    *,
    mode: DiffMode = DiffMode.PRESENCE,
    protected_patterns: Sequence[str] | None = None,
) -> list[DiffItem]:
    """Compute a diff with a fresh DiffEngine.

    See :meth:`DiffEngine.compute`. ``protected_patterns`` overrides the
    built-in protected list.
    """
    return DiffEngine(protected_patterns).compute(patterns, snapshot, mode=mode)
