"""
Ingestion controller: drives a scan chunk by chunk.

Chunks are processed sequentially; items inside a chunk are dispatched
concurrently and the whole chunk is awaited before the next one starts.
Items keep their input (arrival) order regardless of completion order.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Sequence

import structlog

from datacleanse.src.datacleanse.dedup.dispatcher import FingerprintDispatcher
from datacleanse.src.datacleanse.dedup.models import (
    MatchMode,
    ScannedItem,
    ScanProgress,
    SourceFile,
)

logger = structlog.get_logger(__name__)

DEFAULT_CHUNK_SIZE = 50


class IngestionOutcome:
    """Items in arrival order plus the fingerprint -> items mapping."""

    def __init__(self):
        self.items: list[ScannedItem] = []
        self.fingerprint_map: dict[str, list[ScannedItem]] = {}

    def add(self, item: ScannedItem) -> None:
        self.items.append(item)
        self.fingerprint_map.setdefault(item.fingerprint, []).append(item)


class IngestionController:
    """
    Chunked scan driver with progress reporting.

    Progress counter and fingerprint map are only mutated here, on the
    event loop, never from worker tasks.
    """

    def __init__(
        self,
        dispatcher: FingerprintDispatcher,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        progress_callback: Optional[Callable[[ScanProgress], None]] = None,
    ):
        """
        Initialize controller.

        Args:
            dispatcher: Running fingerprint dispatcher
            chunk_size: Items dispatched concurrently per chunk
            progress_callback: Called after each item resolves
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self.dispatcher = dispatcher
        self.chunk_size = chunk_size
        self.progress_callback = progress_callback
        self.progress = ScanProgress()

    async def ingest(self, sources: Sequence[SourceFile], mode: MatchMode) -> IngestionOutcome:
        """
        Fingerprint every source.

        Args:
            sources: Raw items in arrival order
            mode: Active match mode

        Returns:
            IngestionOutcome with ScannedItems in arrival order
        """
        outcome = IngestionOutcome()
        self.progress = ScanProgress(total_count=len(sources))

        for start in range(0, len(sources), self.chunk_size):
            chunk = sources[start : start + self.chunk_size]
            fingerprints = await asyncio.gather(
                *(self._fingerprint(source, mode) for source in chunk),
                return_exceptions=True,
            )
            # Whole chunk has settled; surface the first failure (e.g. session closed)
            errors = [result for result in fingerprints if isinstance(result, BaseException)]
            if errors:
                logger.error(
                    "dedup_chunk_failed",
                    chunk_start=start,
                    chunk_items=len(chunk),
                    failed=len(errors),
                    error=str(errors[0]),
                )
                raise errors[0]

            for source, fingerprint in zip(chunk, fingerprints):
                outcome.add(
                    ScannedItem(
                        name=source.name,
                        relative_path=source.relative_path or source.name,
                        size_bytes=source.size_bytes,
                        content_type=source.content_type,
                        last_modified=source.last_modified,
                        fingerprint=fingerprint,
                    )
                )

            logger.debug(
                "dedup_chunk_completed",
                chunk_start=start,
                chunk_items=len(chunk),
                processed=self.progress.processed_count,
                total=self.progress.total_count,
            )

        return outcome

    async def _fingerprint(self, source: SourceFile, mode: MatchMode) -> str:
        fingerprint = await self.dispatcher.dispatch(source, mode)

        self.progress.processed_count += 1
        self.progress.current_name = source.name
        if self.progress_callback:
            self.progress_callback(self.progress.model_copy())

        return fingerprint
