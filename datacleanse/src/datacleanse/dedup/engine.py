"""
Dedup engine entry points for external collaborators (UI, history, CLI).

- scan(sources, mode) -> ScanResult (async, progress side channel)
- smart_select / toggle_item / toggle_group (pure selection ops)
- reconcile (pure) and remove_after_delay (two-phase, delayed commit)
"""

from __future__ import annotations

import time
from typing import Callable, Iterable, Optional, Sequence

import structlog

from datacleanse.src.datacleanse.dedup.dispatcher import FingerprintDispatcher
from datacleanse.src.datacleanse.dedup.grouping import build_scan_result
from datacleanse.src.datacleanse.dedup.ingestion import IngestionController
from datacleanse.src.datacleanse.dedup.models import (
    MatchMode,
    ScanProgress,
    ScanResult,
    SourceFile,
)
from datacleanse.src.datacleanse.dedup.reconciliation import (
    ReconciliationOutcome,
    reconcile_after_delay,
)
from datacleanse.src.datacleanse.dedup.settings import DedupSettings, get_settings

logger = structlog.get_logger(__name__)


async def scan(
    sources: Sequence[SourceFile],
    mode: MatchMode = MatchMode.exact,
    settings: Optional[DedupSettings] = None,
    progress_callback: Optional[Callable[[ScanProgress], None]] = None,
    dispatcher: Optional[FingerprintDispatcher] = None,
) -> ScanResult:
    """
    Scan sources and group duplicates.

    Args:
        sources: Raw items in arrival order
        mode: Active match mode (exact or visual)
        settings: Engine settings (env defaults if omitted)
        progress_callback: Receives ScanProgress after each item
        dispatcher: Running dispatcher to reuse; when omitted a session is
            opened for this scan and torn down afterwards

    Returns:
        ScanResult (zero result for empty input)
    """
    settings = settings or get_settings()
    mode = MatchMode(mode)
    start_time = time.time()

    logger.info("dedup_scan_started", total=len(sources), mode=mode.value)

    if dispatcher is not None:
        controller = IngestionController(dispatcher, settings.chunk_size, progress_callback)
        outcome = await controller.ingest(sources, mode)
    else:
        async with FingerprintDispatcher(settings) as session:
            controller = IngestionController(session, settings.chunk_size, progress_callback)
            outcome = await controller.ingest(sources, mode)

    result = build_scan_result(outcome.items, outcome.fingerprint_map)

    logger.info(
        "dedup_scan_completed",
        total_files=result.total_files,
        duplicate_groups=result.duplicate_groups_count,
        total_duplicates=result.total_duplicates,
        wasted_space_bytes=result.wasted_space_bytes,
        unique_count=result.unique_count,
        elapsed_seconds=round(time.time() - start_time, 3),
    )
    return result


async def remove_after_delay(
    result: ScanResult,
    selection: Iterable[str],
    settings: Optional[DedupSettings] = None,
) -> ReconciliationOutcome:
    """Reconcile a selection after the configured removal delay."""
    settings = settings or get_settings()
    return await reconcile_after_delay(result, selection, settings.removal_delay_seconds)
