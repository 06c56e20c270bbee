"""
Export and summary generation for scan results.

Generates:
- CSV report (header stats as comments, one row per group member)
- JSON export (summary + groups, human-readable sizes)
- History summary for the persistence collaborator
"""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any, TextIO

import structlog

from datacleanse.src.datacleanse.dedup.models import (
    ScanHistorySummary,
    ScanResult,
    TopDuplicate,
)

logger = structlog.get_logger(__name__)

SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB", "PB"]
HISTORY_TOP_GROUPS = 5


def format_bytes(size_bytes: int, decimals: int = 2) -> str:
    """
    Human-readable size, base 1024.

    Examples: 0 -> "0 Bytes", 1536 -> "1.5 KB"
    """
    if size_bytes <= 0:
        return "0 Bytes"
    value = float(size_bytes)
    index = 0
    while value >= 1024 and index < len(SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{round(value, max(decimals, 0)):g} {SIZE_UNITS[index]}"


def build_history_summary(result: ScanResult) -> ScanHistorySummary:
    """Summary payload handed to the history collaborator (top 5 groups)."""
    return ScanHistorySummary(
        total_files=result.total_files,
        total_size_bytes=result.total_size_bytes,
        wasted_space_bytes=result.wasted_space_bytes,
        duplicate_count=len(result.groups),
        top_duplicates=[
            TopDuplicate(name=group.original.name, wasted_size_bytes=group.wasted_size_bytes)
            for group in result.groups[:HISTORY_TOP_GROUPS]
        ],
    )


class ReportGenerator:
    """Generate CSV and JSON exports from scan results."""

    CSV_COLUMNS = [
        "group_hash",
        "filename",
        "path",
        "size_bytes",
        "status",
        "last_modified",
    ]

    def generate_csv(self, scan_result: ScanResult, output_path: Path) -> Path:
        """
        Generate CSV report file (UTF-8).

        Returns:
            Path to generated CSV file
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            self._write_csv(f, scan_result)

        logger.info(
            "dedup_report_generated",
            output_path=str(output_path),
            groups=len(scan_result.groups),
            format="csv",
        )
        return output_path

    def generate_csv_string(self, scan_result: ScanResult) -> str:
        output = io.StringIO()
        self._write_csv(output, scan_result)
        return output.getvalue()

    def generate_json(self, scan_result: ScanResult, output_path: Path) -> Path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.generate_json_string(scan_result), encoding="utf-8")

        logger.info(
            "dedup_report_generated",
            output_path=str(output_path),
            groups=len(scan_result.groups),
            format="json",
        )
        return output_path

    def generate_json_string(self, scan_result: ScanResult) -> str:
        return json.dumps(self.build_export(scan_result), indent=2, ensure_ascii=False)

    @staticmethod
    def build_export(scan_result: ScanResult) -> dict[str, Any]:
        return {
            "summary": {
                "totalFiles": scan_result.total_files,
                "totalSize": format_bytes(scan_result.total_size_bytes),
                "wastedSpace": format_bytes(scan_result.wasted_space_bytes),
                "duplicateGroups": len(scan_result.groups),
            },
            "duplicateGroups": [
                {
                    "hash": group.fingerprint,
                    "wastedSize": format_bytes(group.wasted_size_bytes),
                    "files": [
                        {
                            "name": entry.name,
                            "path": entry.relative_path,
                            "size": format_bytes(entry.size_bytes),
                            "lastModified": entry.last_modified.isoformat(),
                        }
                        for entry in group.files
                    ],
                }
                for group in scan_result.groups
            ],
        }

    def _write_csv(self, f: TextIO, scan_result: ScanResult) -> None:
        self._write_header_stats(f, scan_result)

        writer = csv.DictWriter(f, fieldnames=self.CSV_COLUMNS, quoting=csv.QUOTE_ALL)
        writer.writeheader()

        for group in scan_result.groups:
            for position, entry in enumerate(group.files):
                writer.writerow(
                    {
                        "group_hash": group.fingerprint,
                        "filename": entry.name,
                        "path": entry.relative_path,
                        "size_bytes": entry.size_bytes,
                        "status": "Original" if position == 0 else "Duplicate",
                        "last_modified": entry.last_modified.isoformat(),
                    }
                )

    @staticmethod
    def _write_header_stats(f: TextIO, scan_result: ScanResult) -> None:
        """Write header statistics as CSV comments."""
        f.write(f"# Scan Date: {scan_result.scan_date.strftime('%Y-%m-%d %H:%M:%S')}\n")
        f.write(f"# Total Files Scanned: {scan_result.total_files:,}\n")
        f.write(f"# Duplicate Groups: {len(scan_result.groups):,}\n")
        f.write(f"# Total Duplicates: {scan_result.total_duplicates:,}\n")
        f.write(f"# Space Reclaimable: {format_bytes(scan_result.wasted_space_bytes)}\n")
