"""
Fingerprint worker pool with correlated request/response channels.

Each pool owns:
- a request channel feeding N interchangeable, stateless worker tasks
- a response channel drained by a single router task
- one future per in-flight request, keyed by a unique request id

The router resolves a request's future exactly once and retires it; later or
duplicate responses referencing a retired id are dropped. After shutdown the
pool refuses new requests and fails every in-flight future with
WorkerPoolClosedError so no caller waits forever.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import Optional

import structlog

from config.exceptions import WorkerPoolClosedError
from datacleanse.src.datacleanse.dedup.fingerprints import FingerprintFunction
from datacleanse.src.datacleanse.dedup.models import SourceFile

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FingerprintRequest:
    request_id: str
    source: SourceFile


@dataclass(frozen=True)
class FingerprintResponse:
    request_id: str
    fingerprint: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class WorkerPool:
    """
    Fixed pool of fingerprint workers for one fingerprint family.

    Workers read content and compute fingerprints off the event loop
    (asyncio.to_thread). Only the coordinator touches ``_pending``.
    """

    def __init__(self, function: FingerprintFunction, size: int = 1, name: Optional[str] = None):
        """
        Initialize pool.

        Args:
            function: Fingerprint function run by every worker
            size: Number of worker tasks
            name: Pool name for logs (defaults to the function family)
        """
        if size < 1:
            raise ValueError("Worker pool size must be >= 1")
        self.function = function
        self.size = size
        self.name = name or function.family
        self._requests: Optional[asyncio.Queue] = None
        self._responses: Optional[asyncio.Queue] = None
        self._pending: dict[str, asyncio.Future] = {}
        self._workers: list[asyncio.Task] = []
        self._router: Optional[asyncio.Task] = None
        self._started = False
        self._closed = False

    @property
    def is_running(self) -> bool:
        return self._started and not self._closed

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def start(self) -> None:
        """Spawn worker and router tasks. No-op if already running."""
        if self._closed:
            raise WorkerPoolClosedError(f"Worker pool '{self.name}' is closed")
        if self._started:
            return

        self._requests = asyncio.Queue()
        self._responses = asyncio.Queue()
        self._workers = [
            asyncio.create_task(self._worker_loop(index), name=f"{self.name}-worker-{index}")
            for index in range(self.size)
        ]
        self._router = asyncio.create_task(self._route_responses(), name=f"{self.name}-router")
        self._started = True

        logger.info("dedup_worker_pool_started", pool=self.name, workers=self.size)

    async def submit(
        self,
        source: SourceFile,
        timeout: Optional[float] = None,
    ) -> FingerprintResponse:
        """
        Send one item to the pool and wait for its response.

        Args:
            source: Item to fingerprint
            timeout: Seconds before the request is retired (None = wait)

        Returns:
            FingerprintResponse (error set on worker failure or timeout)

        Raises:
            WorkerPoolClosedError: Pool torn down before or during the request
        """
        if self._closed:
            raise WorkerPoolClosedError(f"Worker pool '{self.name}' is closed")
        if not self._started:
            await self.start()

        request_id = uuid.uuid4().hex
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        await self._requests.put(FingerprintRequest(request_id=request_id, source=source))

        if timeout is None:
            return await future

        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            self._pending.pop(request_id, None)
            logger.warning(
                "dedup_fingerprint_timeout",
                pool=self.name,
                name=source.name,
                timeout_seconds=timeout,
            )
            return FingerprintResponse(request_id=request_id, error=f"Timed out after {timeout}s")

    async def shutdown(self) -> None:
        """Tear down workers, refuse further requests, fail in-flight ones."""
        if self._closed:
            return
        self._closed = True

        tasks = list(self._workers)
        if self._router is not None:
            tasks.append(self._router)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        abandoned = 0
        for request_id, future in self._pending.items():
            if not future.done():
                future.set_exception(
                    WorkerPoolClosedError(f"Worker pool '{self.name}' closed with request {request_id} in flight")
                )
                abandoned += 1
        self._pending.clear()

        logger.info("dedup_worker_pool_stopped", pool=self.name, abandoned=abandoned)

    async def _worker_loop(self, index: int) -> None:
        while True:
            request = await self._requests.get()
            try:
                fingerprint = await asyncio.to_thread(self._compute, request.source)
            except Exception as e:
                # Worker boundary: every failure travels back as an error response
                response = FingerprintResponse(
                    request_id=request.request_id,
                    error=f"{type(e).__name__}: {e}",
                )
            else:
                response = FingerprintResponse(request_id=request.request_id, fingerprint=fingerprint)
            finally:
                self._requests.task_done()
            await self._responses.put(response)

    def _compute(self, source: SourceFile) -> str:
        stream = getattr(self.function, "compute_file", None)
        if stream is not None and source.data is None and source.path is not None:
            return stream(source.path)
        content = source.read_bytes()
        return self.function.compute(content, source.content_type)

    async def _route_responses(self) -> None:
        while True:
            response = await self._responses.get()
            self._deliver(response)

    def _deliver(self, response: FingerprintResponse) -> bool:
        """
        Resolve the waiting future for a response and retire it.

        Returns:
            True if a caller was resolved, False if the response was stale
        """
        future = self._pending.pop(response.request_id, None)
        if future is None or future.done():
            logger.debug(
                "dedup_stale_response_dropped",
                pool=self.name,
                request_id=response.request_id,
            )
            return False
        future.set_result(response)
        return True
