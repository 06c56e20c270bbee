"""
Source collection: turns a directory tree into SourceFile items.

Features:
- Recursive walk in sorted order (stable arrival order between runs)
- Exclusions (folders, filenames, Office temp files, symlinks)
- Size window (min/max bytes)
- Content type guessed from the file name
"""

from __future__ import annotations

from pathlib import Path

import structlog
from pydantic import BaseModel, Field

from datacleanse.src.datacleanse.dedup.models import SourceFile

logger = structlog.get_logger(__name__)


class SourceConfig(BaseModel):
    """Configuration for collecting sources under a root."""

    root_path: Path = Field(description="Root directory to collect")
    excluded_folders: set[str] = Field(
        default_factory=lambda: {
            ".git",
            "node_modules",
            "__pycache__",
            ".venv",
            "venv",
            "$recycle.bin",
        },
        description="Folder names to exclude (lowercased)",
    )
    excluded_filenames: set[str] = Field(
        default_factory=lambda: {
            "desktop.ini",
            ".ds_store",
            "thumbs.db",
        },
        description="Exact filenames to exclude (lowercased)",
    )
    min_file_size: int = Field(default=1, ge=0, description="Minimum file size in bytes")
    max_file_size: int = Field(
        default=2 * 1024 * 1024 * 1024,  # 2 GB
        description="Maximum file size in bytes",
    )
    follow_symlinks: bool = False


def should_collect(file_path: Path, config: SourceConfig) -> bool:
    """
    Check if a file should be collected (exclusions).

    Args:
        file_path: File to check
        config: Collection configuration

    Returns:
        True if file should be collected
    """
    try:
        relative_parts = file_path.relative_to(config.root_path).parts[:-1]
    except ValueError:
        relative_parts = file_path.parts[:-1]

    for part in relative_parts:
        if part.lower() in config.excluded_folders:
            return False

    if file_path.name.lower() in config.excluded_filenames:
        return False

    # Office temp files (~$*)
    if file_path.name.startswith("~$"):
        return False

    if file_path.is_symlink() and not config.follow_symlinks:
        return False

    try:
        file_size = file_path.stat().st_size
    except OSError:
        return False

    return config.min_file_size <= file_size <= config.max_file_size


def collect_sources(config: SourceConfig) -> list[SourceFile]:
    """
    Collect every eligible file under the configured root.

    Returns:
        SourceFile list in sorted path order
    """
    root = config.root_path
    sources: list[SourceFile] = []
    skipped = 0

    for file_path in sorted(root.rglob("*")):
        if not file_path.is_file():
            continue
        if not should_collect(file_path, config):
            skipped += 1
            continue
        try:
            sources.append(SourceFile.from_path(file_path, root=root))
        except OSError as e:
            skipped += 1
            logger.debug("dedup_source_unreadable", file_path=str(file_path), error=str(e))

    logger.info(
        "dedup_sources_collected",
        root_path=str(root),
        collected=len(sources),
        skipped=skipped,
    )
    return sources
