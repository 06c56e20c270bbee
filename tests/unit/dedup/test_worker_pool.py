"""
Unit tests for WorkerPool.

Tests:
- Request/response correlation under concurrency
- On-disk sources streamed in bounded reads
- Worker failure -> error response
- Stale and duplicate responses dropped
- Timeout retires the request
- Teardown refuses new requests and fails in-flight ones
"""

import asyncio
import hashlib
import threading

import pytest

from config.exceptions import WorkerPoolClosedError
from datacleanse.src.datacleanse.dedup.fingerprints import ExactFingerprint
from datacleanse.src.datacleanse.dedup.models import SourceFile
from datacleanse.src.datacleanse.dedup.worker_pool import FingerprintResponse, WorkerPool


class BlockingFingerprint:
    """Fingerprint function that blocks until released."""

    family = "blocking"

    def __init__(self):
        self.release = threading.Event()

    def compute(self, content, content_type=None):
        self.release.wait(timeout=5)
        return "done"


async def _wait_for_pending(pool: WorkerPool, count: int) -> None:
    for _ in range(200):
        if pool.pending_count == count:
            return
        await asyncio.sleep(0.005)
    raise AssertionError(f"pending_count never reached {count}")


@pytest.fixture
async def pool():
    p = WorkerPool(ExactFingerprint(), size=3)
    await p.start()
    yield p
    await p.shutdown()


class TestCorrelation:
    """Test responses reach the right caller."""

    @pytest.mark.asyncio
    async def test_submit_returns_fingerprint(self, pool, source_factory):
        response = await pool.submit(source_factory("a.txt", b"content A"))

        assert response.ok
        assert response.fingerprint == hashlib.sha256(b"content A").hexdigest()

    @pytest.mark.asyncio
    async def test_concurrent_requests_matched_by_id(self, pool, source_factory):
        sources = [source_factory(f"f{i}.txt", f"content {i}".encode()) for i in range(30)]

        responses = await asyncio.gather(*(pool.submit(s) for s in sources))

        for source, response in zip(sources, responses):
            assert response.fingerprint == hashlib.sha256(source.data).hexdigest()
        assert pool.pending_count == 0

    @pytest.mark.asyncio
    async def test_lazy_start(self, source_factory):
        p = WorkerPool(ExactFingerprint(), size=1)
        try:
            response = await p.submit(source_factory("a.txt", b"x"))
            assert response.ok
            assert p.is_running
        finally:
            await p.shutdown()

    @pytest.mark.asyncio
    async def test_disk_source_streamed_in_chunks(self, tmp_path, recorded_reads):
        content = b"\x5a" * (1024 * 1024 + 17)
        target = tmp_path / "large.bin"
        target.write_bytes(content)
        p = WorkerPool(ExactFingerprint(chunk_size=65536), size=1)
        try:
            response = await p.submit(SourceFile.from_path(target, tmp_path))
        finally:
            await p.shutdown()

        assert response.fingerprint == hashlib.sha256(content).hexdigest()
        assert max(recorded_reads) <= 65536

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            WorkerPool(ExactFingerprint(), size=0)


class TestFailures:
    """Test worker failures and stale responses."""

    @pytest.mark.asyncio
    async def test_unreadable_source_error_response(self, pool):
        source = SourceFile(name="ghost.txt", size_bytes=10)

        response = await pool.submit(source)

        assert not response.ok
        assert response.fingerprint is None
        assert "OSError" in response.error

    @pytest.mark.asyncio
    async def test_stale_response_dropped(self, pool):
        stale = FingerprintResponse(request_id="never-issued", fingerprint="x")
        assert pool._deliver(stale) is False

    @pytest.mark.asyncio
    async def test_duplicate_response_resolves_once(self, pool):
        future = asyncio.get_running_loop().create_future()
        pool._pending["req-1"] = future

        first = FingerprintResponse(request_id="req-1", fingerprint="first")
        second = FingerprintResponse(request_id="req-1", fingerprint="second")

        assert pool._deliver(first) is True
        assert pool._deliver(second) is False
        assert future.result().fingerprint == "first"
        assert pool.pending_count == 0

    @pytest.mark.asyncio
    async def test_timeout_retires_request(self, source_factory):
        blocking = BlockingFingerprint()
        p = WorkerPool(blocking, size=1)
        try:
            response = await p.submit(source_factory("slow.bin", b"x"), timeout=0.05)

            assert not response.ok
            assert "Timed out" in response.error
            assert p.pending_count == 0
        finally:
            blocking.release.set()
            await p.shutdown()


class TestTeardown:
    """Test session teardown."""

    @pytest.mark.asyncio
    async def test_submit_after_shutdown_refused(self, source_factory):
        p = WorkerPool(ExactFingerprint(), size=1)
        await p.start()
        await p.shutdown()

        assert p.is_closed
        with pytest.raises(WorkerPoolClosedError):
            await p.submit(source_factory("a.txt", b"x"))

    @pytest.mark.asyncio
    async def test_start_after_shutdown_refused(self):
        p = WorkerPool(ExactFingerprint(), size=1)
        await p.shutdown()

        with pytest.raises(WorkerPoolClosedError):
            await p.start()

    @pytest.mark.asyncio
    async def test_in_flight_request_fails_on_shutdown(self, source_factory):
        blocking = BlockingFingerprint()
        p = WorkerPool(blocking, size=1)
        await p.start()
        try:
            task = asyncio.create_task(p.submit(source_factory("slow.bin", b"x")))
            await _wait_for_pending(p, 1)

            await p.shutdown()

            with pytest.raises(WorkerPoolClosedError):
                await task
            assert p.pending_count == 0
        finally:
            blocking.release.set()

    @pytest.mark.asyncio
    async def test_shutdown_idempotent(self):
        p = WorkerPool(ExactFingerprint(), size=2)
        await p.start()
        await p.shutdown()
        await p.shutdown()
        assert p.is_closed
