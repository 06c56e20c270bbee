"""
Fingerprint functions for the dedup engine.

Two families share one contract, ``compute(content, content_type) -> str``:
- ExactFingerprint: SHA256 over the complete byte stream
- PerceptualFingerprint: average-luminance hash on a 16x16 grid (images only)

Perceptual fingerprints carry the ``v-`` prefix so the two families never
collide. Both raise UnreadableContentError when content cannot be decoded.
"""

from __future__ import annotations

import hashlib
import io
import uuid
from pathlib import Path
from typing import Optional, Protocol

from PIL import Image, UnidentifiedImageError

from config.exceptions import UnreadableContentError
from datacleanse.src.datacleanse.dedup.models import MatchMode, SourceFile

PERCEPTUAL_PREFIX = "v-"
SYNTHETIC_PREFIX = "err-"


class FingerprintFunction(Protocol):
    """
    Contract shared by every fingerprint family.

    A function may also expose ``compute_file(path)``; workers then stream
    on-disk content through it instead of loading the whole file.
    """

    family: str

    def compute(self, content: bytes, content_type: Optional[str] = None) -> str:
        ...


class ExactFingerprint:
    """SHA256 content hash. Name, path and timestamps never influence it."""

    family = "exact"

    def __init__(self, chunk_size: int = 65536):
        self.chunk_size = chunk_size

    def compute(self, content: bytes, content_type: Optional[str] = None) -> str:
        if not isinstance(content, (bytes, bytearray, memoryview)):
            raise UnreadableContentError(f"Expected bytes, got {type(content).__name__}")

        sha256 = hashlib.sha256()
        view = memoryview(content)
        for offset in range(0, len(view), self.chunk_size):
            sha256.update(view[offset : offset + self.chunk_size])
        return sha256.hexdigest()

    def compute_file(self, path: Path) -> str:
        """Hash a file on disk, reading at most ``chunk_size`` bytes at a time."""
        sha256 = hashlib.sha256()
        try:
            with path.open("rb") as f:
                while chunk := f.read(self.chunk_size):
                    sha256.update(chunk)
        except OSError as e:
            raise UnreadableContentError(f"Cannot read {path}: {e}") from e
        return sha256.hexdigest()


class PerceptualFingerprint:
    """
    Average hash on a fixed grid.

    Steps:
    1. Decode and resize to grid x grid (RGB)
    2. Luminance per cell = (R + G + B) / 3
    3. Bit = 1 if cell >= mean luminance else 0
    4. Pack bits into a fixed-width hex string with the ``v-`` prefix

    Near-duplicates with minor edits may share a value; that is expected.
    """

    family = "visual"

    def __init__(self, grid_size: int = 16):
        self.grid_size = grid_size

    def compute(self, content: bytes, content_type: Optional[str] = None) -> str:
        try:
            with Image.open(io.BytesIO(content)) as img:
                thumb = img.convert("RGB").resize(
                    (self.grid_size, self.grid_size), Image.Resampling.BILINEAR
                )
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise UnreadableContentError(f"Not a decodable image: {e}") from e

        pixels = thumb.tobytes()
        luminance = [
            (pixels[i] + pixels[i + 1] + pixels[i + 2]) / 3 for i in range(0, len(pixels), 3)
        ]
        mean = sum(luminance) / len(luminance)

        bits = 0
        for value in luminance:
            bits = (bits << 1) | (1 if value >= mean else 0)

        width = (self.grid_size * self.grid_size + 3) // 4
        return f"{PERCEPTUAL_PREFIX}{bits:0{width}x}"


def synthetic_fingerprint() -> str:
    """Globally unique fingerprint for items whose fingerprinting failed."""
    return f"{SYNTHETIC_PREFIX}{uuid.uuid4().hex}"


def is_synthetic(fingerprint: str) -> bool:
    return fingerprint.startswith(SYNTHETIC_PREFIX)


def select_family(mode: MatchMode, source: SourceFile) -> str:
    """
    Pick the fingerprint family for an item.

    Visual mode uses the perceptual family for images only; everything else
    falls back to exact hashing.
    """
    if mode == MatchMode.visual and source.is_image:
        return PerceptualFingerprint.family
    return ExactFingerprint.family
