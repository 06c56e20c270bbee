"""
Fixtures pytest partagees pour les tests DataCleanse.

Ce fichier contient :
- PYTHONPATH setup (repo root)
- Configuration structlog lisible pour les tests
- Factories pour ScannedItem / SourceFile / images de test

Note : L'event loop est gere automatiquement par pytest-asyncio en mode auto.
Voir pyproject.toml pour la configuration.
"""

import io
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# ==========================================
# PYTHONPATH Setup
# ==========================================

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from config.logging import configure_logging  # noqa: E402
from datacleanse.src.datacleanse.dedup.models import ScannedItem, SourceFile  # noqa: E402

configure_logging(level="DEBUG", json_format=False)

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


# ==========================================
# Factories
# ==========================================


def make_item(
    item_id: str,
    fingerprint: str,
    size_bytes: int = 100,
    t: int = 0,
    name: str = None,
) -> ScannedItem:
    """ScannedItem with last_modified = BASE_TIME + t seconds."""
    return ScannedItem(
        item_id=item_id,
        name=name or f"{item_id}.bin",
        relative_path=f"folder/{name or item_id + '.bin'}",
        size_bytes=size_bytes,
        last_modified=BASE_TIME + timedelta(seconds=t),
        fingerprint=fingerprint,
    )


def make_source(name: str, data: bytes, content_type: str = None, t: int = 0) -> SourceFile:
    """In-memory SourceFile."""
    return SourceFile(
        name=name,
        relative_path=f"folder/{name}",
        size_bytes=len(data),
        content_type=content_type,
        last_modified=BASE_TIME + timedelta(seconds=t),
        data=data,
    )


def make_image_bytes(fmt: str = "PNG", size: int = 64, inverted: bool = False) -> bytes:
    """Two-tone test image: white left half / black right half (or inverted)."""
    from PIL import Image

    light, dark = (255, 255, 255), (0, 0, 0)
    if inverted:
        light, dark = dark, light

    img = Image.new("RGB", (size, size), dark)
    img.paste(light, (0, 0, size // 2, size))
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def item_factory():
    return make_item


@pytest.fixture
def source_factory():
    return make_source


@pytest.fixture
def image_factory():
    return make_image_bytes


# ==========================================
# Disk read recording
# ==========================================


class RecordingReader:
    """File handle wrapper recording the size of every read."""

    def __init__(self, handle, reads):
        self._handle = handle
        self._reads = reads

    def read(self, size=-1):
        data = self._handle.read(size)
        self._reads.append(len(data))
        return data

    def __getattr__(self, name):
        return getattr(self._handle, name)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self._handle.close()


@pytest.fixture
def recorded_reads(monkeypatch):
    """Sizes of every read made through Path.open() (Path.read_bytes included)."""
    reads: list[int] = []
    original_open = Path.open

    def recording_open(self, *args, **kwargs):
        return RecordingReader(original_open(self, *args, **kwargs), reads)

    monkeypatch.setattr(Path, "open", recording_open)
    return reads
