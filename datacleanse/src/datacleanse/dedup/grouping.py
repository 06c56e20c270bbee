"""
Grouping & metrics: items -> ScanResult.

- Partition by fingerprint, keeping arrival order inside each partition
- Partitions with 2+ members become DuplicateGroups (position 0 = original)
- Wasted size = sizes of every member after the original
- Groups sorted by wasted size, descending (stable on first-seen fingerprint)
"""

from __future__ import annotations

from typing import Optional, Sequence

from datacleanse.src.datacleanse.dedup.models import (
    DuplicateGroup,
    ScannedItem,
    ScanResult,
)


def compute_wasted_size(files: Sequence[ScannedItem]) -> int:
    """Sum of sizes of every member at position >= 1."""
    return sum(entry.size_bytes for entry in files[1:])


def partition_by_fingerprint(items: Sequence[ScannedItem]) -> dict[str, list[ScannedItem]]:
    partitions: dict[str, list[ScannedItem]] = {}
    for item in items:
        partitions.setdefault(item.fingerprint, []).append(item)
    return partitions


def build_groups(partitions: dict[str, list[ScannedItem]]) -> list[DuplicateGroup]:
    groups = [
        DuplicateGroup(
            fingerprint=fingerprint,
            files=list(members),
            wasted_size_bytes=compute_wasted_size(members),
        )
        for fingerprint, members in partitions.items()
        if len(members) >= 2
    ]
    # sorted() is stable: ties keep first-encountered fingerprint order
    return sorted(groups, key=lambda group: group.wasted_size_bytes, reverse=True)


def build_scan_result(
    items: Sequence[ScannedItem],
    partitions: Optional[dict[str, list[ScannedItem]]] = None,
) -> ScanResult:
    """
    Build a ScanResult from scanned items.

    Args:
        items: Scanned items in arrival order
        partitions: Fingerprint -> items map already built during ingestion
            (computed from ``items`` when omitted)

    Empty input yields a zero ScanResult.
    """
    if partitions is None:
        partitions = partition_by_fingerprint(items)
    groups = build_groups(partitions)

    return ScanResult(
        total_files=len(items),
        total_size_bytes=sum(item.size_bytes for item in items),
        groups=groups,
        wasted_space_bytes=sum(group.wasted_size_bytes for group in groups),
        unique_count=len(partitions),
    )
