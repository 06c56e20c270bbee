"""
Reconciliation: apply a removal selection to a ScanResult.

Pure transform ``reconcile(result, selection) -> ScanResult`` plus an explicit
two-phase transaction for callers that delay the mutation (removal
animation): ``begin_removal`` returns a PendingRemoval, ``commit`` applies it
exactly once. Nothing is deleted on disk.
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional

import structlog

from config.exceptions import RemovalAlreadyCommittedError
from datacleanse.src.datacleanse.dedup.grouping import compute_wasted_size
from datacleanse.src.datacleanse.dedup.models import DuplicateGroup, ScannedItem, ScanResult

logger = structlog.get_logger(__name__)


class ReconciliationOutcome:
    """Result of a committed removal."""

    def __init__(self, result: ScanResult, removed: list[ScannedItem], dissolved: list[str]):
        self.result = result
        self.removed = removed
        self.dissolved = dissolved
        self.selection: frozenset[str] = frozenset()

    @property
    def recovered_bytes(self) -> int:
        return sum(entry.size_bytes for entry in self.removed)

    @property
    def removed_count(self) -> int:
        return len(self.removed)


def apply_removal(result: ScanResult, selection: Iterable[str]) -> ReconciliationOutcome:
    """
    Remove selected members from every group.

    Per group: members split into removed/remaining (order kept); fewer than
    2 remaining -> group dissolves; otherwise remaining[0] is the original and
    wasted size is recomputed. Group order is preserved.
    """
    selected = set(selection)
    if not selected:
        return ReconciliationOutcome(result.model_copy(), removed=[], dissolved=[])

    groups: list[DuplicateGroup] = []
    removed: list[ScannedItem] = []
    dissolved: list[str] = []
    vanished_fingerprints = 0

    for group in result.groups:
        group_removed = [entry for entry in group.files if entry.item_id in selected]
        if not group_removed:
            groups.append(group)
            continue

        remaining = [entry for entry in group.files if entry.item_id not in selected]
        removed.extend(group_removed)

        if len(remaining) < 2:
            dissolved.append(group.fingerprint)
            if not remaining:
                vanished_fingerprints += 1
            continue

        groups.append(
            DuplicateGroup(
                fingerprint=group.fingerprint,
                files=remaining,
                wasted_size_bytes=compute_wasted_size(remaining),
            )
        )

    updated = result.model_copy(
        update={
            "total_files": result.total_files - len(removed),
            "total_size_bytes": result.total_size_bytes - sum(e.size_bytes for e in removed),
            "groups": groups,
            "wasted_space_bytes": sum(group.wasted_size_bytes for group in groups),
            "unique_count": result.unique_count - vanished_fingerprints,
        }
    )
    return ReconciliationOutcome(updated, removed=removed, dissolved=dissolved)


def reconcile(result: ScanResult, selection: Iterable[str]) -> ScanResult:
    """Pure removal transform. Empty selection returns an equal result."""
    return apply_removal(result, selection).result


class PendingRemoval:
    """
    Removal captured at selection time, applied later exactly once.

    The selection is frozen when the transaction begins, so later selection
    changes do not leak into the commit.
    """

    def __init__(self, result: ScanResult, selection: Iterable[str]):
        self.result = result
        self.selection: frozenset[str] = frozenset(selection)
        self._outcome: Optional[ReconciliationOutcome] = None

    @property
    def committed(self) -> bool:
        return self._outcome is not None

    def commit(self) -> ReconciliationOutcome:
        if self._outcome is not None:
            raise RemovalAlreadyCommittedError("Pending removal already committed")

        self._outcome = apply_removal(self.result, self.selection)

        logger.info(
            "dedup_reconciliation_committed",
            removed=self._outcome.removed_count,
            dissolved_groups=len(self._outcome.dissolved),
            recovered_bytes=self._outcome.recovered_bytes,
            wasted_space_bytes=self._outcome.result.wasted_space_bytes,
        )
        return self._outcome


def begin_removal(result: ScanResult, selection: Iterable[str]) -> PendingRemoval:
    return PendingRemoval(result, selection)


def commit(pending: PendingRemoval) -> ReconciliationOutcome:
    return pending.commit()


async def reconcile_after_delay(
    result: ScanResult,
    selection: Iterable[str],
    delay_seconds: float,
) -> ReconciliationOutcome:
    """Begin a removal, wait ``delay_seconds``, then commit it."""
    pending = begin_removal(result, selection)
    await asyncio.sleep(delay_seconds)
    return commit(pending)
