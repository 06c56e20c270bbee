"""
Dedup engine.

Modules:
- models: Pydantic data models
- fingerprints: Exact (SHA256) and perceptual (average hash) fingerprints
- worker_pool: Correlated request/response fingerprint worker pool
- dispatcher: Family routing and worker failure policy
- ingestion: Chunked scan driver with progress
- grouping: Duplicate groups and wasted-space metrics
- selection: Manual toggles and smart-select policies
- reconciliation: Removal transactions against a ScanResult
- sources: Directory collection into SourceFile items
- report_generator: CSV/JSON exports and history summary
- engine: Entry points (scan, remove_after_delay)
"""

from datacleanse.src.datacleanse.dedup.engine import remove_after_delay, scan
from datacleanse.src.datacleanse.dedup.models import (
    DuplicateGroup,
    MatchMode,
    ScannedItem,
    ScanProgress,
    ScanResult,
    SmartSelectPolicy,
    SourceFile,
)
from datacleanse.src.datacleanse.dedup.reconciliation import (
    PendingRemoval,
    begin_removal,
    commit,
    reconcile,
)
from datacleanse.src.datacleanse.dedup.selection import (
    smart_select,
    toggle_group,
    toggle_item,
)

__all__ = [
    "DuplicateGroup",
    "MatchMode",
    "PendingRemoval",
    "ScannedItem",
    "ScanProgress",
    "ScanResult",
    "SmartSelectPolicy",
    "SourceFile",
    "begin_removal",
    "commit",
    "reconcile",
    "remove_after_delay",
    "scan",
    "smart_select",
    "toggle_group",
    "toggle_item",
]
