"""
Fingerprint dispatcher: routes items to the right worker pool.

One pool per fingerprint family (exact, visual). Routing depends on the
active match mode and the item's declared content type. A worker failure
never aborts a scan: the item gets a synthetic, globally unique fingerprint
and therefore never joins a duplicate group.
"""

from __future__ import annotations

from typing import Optional

import structlog

from datacleanse.src.datacleanse.dedup.fingerprints import (
    ExactFingerprint,
    FingerprintFunction,
    PerceptualFingerprint,
    select_family,
    synthetic_fingerprint,
)
from datacleanse.src.datacleanse.dedup.models import MatchMode, SourceFile
from datacleanse.src.datacleanse.dedup.settings import DedupSettings, get_settings
from datacleanse.src.datacleanse.dedup.worker_pool import WorkerPool

logger = structlog.get_logger(__name__)


class FingerprintDispatcher:
    """
    Scanning session over the two fingerprint worker pools.

    Usage:
        async with FingerprintDispatcher(settings) as dispatcher:
            fingerprint = await dispatcher.dispatch(source, MatchMode.exact)
    """

    def __init__(
        self,
        settings: Optional[DedupSettings] = None,
        exact_function: Optional[FingerprintFunction] = None,
        perceptual_function: Optional[FingerprintFunction] = None,
    ):
        self.settings = settings or get_settings()
        exact = exact_function or ExactFingerprint()
        perceptual = perceptual_function or PerceptualFingerprint(self.settings.perceptual_grid_size)
        self.pools: dict[str, WorkerPool] = {
            ExactFingerprint.family: WorkerPool(exact, self.settings.exact_workers, name="exact"),
            PerceptualFingerprint.family: WorkerPool(perceptual, self.settings.visual_workers, name="visual"),
        }

    async def __aenter__(self) -> FingerprintDispatcher:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        for pool in self.pools.values():
            await pool.start()

    async def close(self) -> None:
        """End the session: tear down every pool."""
        for pool in self.pools.values():
            await pool.shutdown()

    async def dispatch(self, source: SourceFile, mode: MatchMode) -> str:
        """
        Fingerprint one item.

        Args:
            source: Item to fingerprint
            mode: Active match mode

        Returns:
            Fingerprint string (synthetic if every attempt failed)

        Raises:
            WorkerPoolClosedError: Session already ended
        """
        family = select_family(mode, source)
        timeout = self.settings.dispatch_timeout_seconds

        response = await self.pools[family].submit(source, timeout=timeout)
        if response.ok:
            return response.fingerprint

        error = response.error
        if family == PerceptualFingerprint.family and self.settings.perceptual_fallback_to_exact:
            logger.info("dedup_perceptual_fallback_exact", name=source.name, error=error)
            response = await self.pools[ExactFingerprint.family].submit(source, timeout=timeout)
            if response.ok:
                return response.fingerprint
            error = response.error

        fingerprint = synthetic_fingerprint()
        logger.warning(
            "dedup_fingerprint_failed",
            name=source.name,
            family=family,
            error=error,
            fingerprint=fingerprint,
        )
        return fingerprint
