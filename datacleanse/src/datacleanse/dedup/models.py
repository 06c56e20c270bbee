"""
Pydantic models for the dedup engine.

Models:
- SourceFile: Raw file-like input handed to a scan
- ScannedItem: Single scanned file with its fingerprint
- DuplicateGroup: Items sharing one fingerprint (position 0 = original)
- ScanResult: Final scan result with wasted-space accounting
- ScanProgress: Progress event emitted while scanning
- ScanHistorySummary: Summary payload for the history collaborator
"""

from __future__ import annotations

import mimetypes
import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MatchMode(str, Enum):
    """Active matching policy for a scan."""

    exact = "exact"
    visual = "visual"


class SmartSelectPolicy(str, Enum):
    """Global selection policy applied to every duplicate group."""

    newest = "newest"
    oldest = "oldest"
    pattern = "pattern"


class SourceFile(BaseModel):
    """Raw file-like item supplied by the file-selection surface."""

    name: str
    relative_path: str = ""
    size_bytes: int = Field(ge=0)
    content_type: Optional[str] = None
    last_modified: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    path: Optional[Path] = None
    data: Optional[bytes] = Field(default=None, repr=False)

    @property
    def is_image(self) -> bool:
        """Declared content type is an image."""
        return bool(self.content_type) and self.content_type.startswith("image/")

    def read_bytes(self) -> bytes:
        """Return the full content (inline data first, then the file on disk)."""
        if self.data is not None:
            return self.data
        if self.path is None:
            raise OSError(f"No content available for {self.name}")
        return self.path.read_bytes()

    @classmethod
    def from_path(cls, path: Path, root: Optional[Path] = None) -> SourceFile:
        """Build a SourceFile from a file on disk (content is read lazily)."""
        stat = path.stat()
        content_type, _encoding = mimetypes.guess_type(path.name)
        relative = path.relative_to(root).as_posix() if root is not None else path.name
        return cls(
            name=path.name,
            relative_path=relative,
            size_bytes=stat.st_size,
            content_type=content_type,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            path=path,
        )


class ScannedItem(BaseModel):
    """Single scanned entity. Immutable once ingestion assigns its fingerprint."""

    model_config = ConfigDict(frozen=True)

    item_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    relative_path: str
    size_bytes: int
    content_type: Optional[str] = None
    last_modified: datetime
    fingerprint: str


class DuplicateGroup(BaseModel):
    """Group of items sharing one fingerprint, in arrival order."""

    fingerprint: str
    files: list[ScannedItem] = Field(default_factory=list)
    wasted_size_bytes: int = 0

    @property
    def original(self) -> ScannedItem:
        """Designated original (position 0)."""
        return self.files[0]

    @property
    def duplicates(self) -> list[ScannedItem]:
        """All members after the designated original."""
        return self.files[1:]

    @property
    def item_ids(self) -> list[str]:
        return [entry.item_id for entry in self.files]


class ScanResult(BaseModel):
    """Final scan result."""

    scan_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    total_files: int = 0
    total_size_bytes: int = 0
    groups: list[DuplicateGroup] = Field(default_factory=list)
    wasted_space_bytes: int = 0
    unique_count: int = 0

    @property
    def duplicate_groups_count(self) -> int:
        return len(self.groups)

    @property
    def total_duplicates(self) -> int:
        return sum(len(group.files) - 1 for group in self.groups)

    def find_group(self, fingerprint: str) -> Optional[DuplicateGroup]:
        for group in self.groups:
            if group.fingerprint == fingerprint:
                return group
        return None


class ScanProgress(BaseModel):
    """Progress event emitted after each item resolves (display only)."""

    processed_count: int = 0
    total_count: int = 0
    current_name: str = ""

    @property
    def percent(self) -> int:
        if self.total_count == 0:
            return 100
        return round(self.processed_count * 100 / self.total_count)


class TopDuplicate(BaseModel):
    """One entry of the history summary top list."""

    name: str
    wasted_size_bytes: int


class ScanHistorySummary(BaseModel):
    """Summary of a ScanResult for the write-only history collaborator."""

    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    total_files: int = 0
    total_size_bytes: int = 0
    wasted_space_bytes: int = 0
    duplicate_count: int = 0
    top_duplicates: list[TopDuplicate] = Field(default_factory=list)
