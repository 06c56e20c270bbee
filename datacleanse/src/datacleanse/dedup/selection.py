"""
Selection rules for duplicate groups.

Two separate operations with different overwrite semantics:
- Toggles (toggle_item, toggle_group): touch only the named item or group
- smart_select: recomputes the whole selection from one policy

A selection is a frozenset of item ids; every function returns a new one.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence

import structlog

from config.exceptions import InvalidPatternError
from datacleanse.src.datacleanse.dedup.models import (
    DuplicateGroup,
    ScannedItem,
    SmartSelectPolicy,
)

logger = structlog.get_logger(__name__)


def toggle_item(selection: Iterable[str], item_id: str) -> frozenset[str]:
    """Add the item if absent, remove it if present."""
    current = set(selection)
    if item_id in current:
        current.discard(item_id)
    else:
        current.add(item_id)
    return frozenset(current)


def toggle_group(
    selection: Iterable[str],
    groups: Sequence[DuplicateGroup],
    fingerprint: str,
) -> frozenset[str]:
    """
    Toggle every non-original member of one group as a unit.

    All selected -> deselect them all, otherwise select them all. The rest of
    the selection is untouched. Unknown fingerprint -> selection unchanged.
    """
    current = set(selection)
    group = next((g for g in groups if g.fingerprint == fingerprint), None)
    if group is None:
        logger.warning("dedup_toggle_unknown_group", fingerprint=fingerprint)
        return frozenset(current)

    duplicate_ids = [entry.item_id for entry in group.duplicates]
    if all(item_id in current for item_id in duplicate_ids):
        current.difference_update(duplicate_ids)
    else:
        current.update(duplicate_ids)
    return frozenset(current)


def smart_select(
    groups: Sequence[DuplicateGroup],
    policy: SmartSelectPolicy,
    pattern: Optional[str] = None,
) -> frozenset[str]:
    """
    Replace the whole selection using one policy per group.

    Policies:
    - newest: keep the oldest member (by last_modified), select the rest
    - oldest: keep the newest member, select the rest
    - pattern: select members whose name matches ``pattern`` (case-insensitive
      search); never selects a whole group, the first unselected survivor is
      the designated original

    Raises:
        InvalidPatternError: pattern missing or not a valid regex
    """
    policy = SmartSelectPolicy(policy)
    regex = _compile_pattern(pattern) if policy == SmartSelectPolicy.pattern else None

    selected: set[str] = set()
    for group in groups:
        if policy == SmartSelectPolicy.pattern:
            to_select = _select_matching(group, regex)
        else:
            to_select = _select_by_age(group, policy)
        selected.update(entry.item_id for entry in to_select)

    logger.info(
        "dedup_smart_select_applied",
        policy=policy.value,
        groups=len(groups),
        selected=len(selected),
    )
    return frozenset(selected)


def selected_size(groups: Sequence[DuplicateGroup], selection: Iterable[str]) -> int:
    """Total bytes of selected group members."""
    current = set(selection)
    return sum(
        entry.size_bytes
        for group in groups
        for entry in group.files
        if entry.item_id in current
    )


def _compile_pattern(pattern: Optional[str]) -> re.Pattern:
    if not pattern:
        raise InvalidPatternError("Pattern policy requires a non-empty regex")
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.warning("dedup_invalid_pattern", pattern=pattern, error=str(e))
        raise InvalidPatternError(f"Invalid pattern {pattern!r}: {e}") from e


def _select_by_age(group: DuplicateGroup, policy: SmartSelectPolicy) -> list[ScannedItem]:
    # Stable sort: equal timestamps keep group order
    by_age = sorted(group.files, key=lambda entry: entry.last_modified)
    if policy == SmartSelectPolicy.newest:
        return by_age[1:]
    return by_age[:-1]


def _select_matching(group: DuplicateGroup, regex: re.Pattern) -> list[ScannedItem]:
    matching = [entry for entry in group.files if regex.search(entry.name)]
    if len(matching) == len(group.files):
        # Never select 100% of a group
        matching = matching[1:]
    return matching
