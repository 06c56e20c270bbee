#!/usr/bin/env python3
"""
Scan a folder for duplicate files and preview a cleanup.

Workflow :
1. Collect files under ROOT (exclusions from SourceConfig)
2. Scan in exact or visual mode, progress logged per chunk of items
3. Optionally smart-select (newest / oldest / pattern)
4. Optionally export CSV / JSON
5. With --apply, reconcile the selection in memory and print recovered space

Nothing is ever deleted on disk.

Usage:
    python scripts/dedup_scan.py ~/Pictures
    python scripts/dedup_scan.py ~/Pictures --mode visual --csv report.csv
    python scripts/dedup_scan.py ~/Downloads --smart-select pattern --pattern "copy|\\(\\d+\\)" --apply
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Ajouter repo root au path
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))

import structlog  # noqa: E402

from config.exceptions import InvalidPatternError  # noqa: E402
from config.logging import configure_logging_from_settings  # noqa: E402
from datacleanse.src.datacleanse.dedup.engine import scan  # noqa: E402
from datacleanse.src.datacleanse.dedup.reconciliation import begin_removal  # noqa: E402
from datacleanse.src.datacleanse.dedup.models import MatchMode, ScanProgress, SmartSelectPolicy  # noqa: E402
from datacleanse.src.datacleanse.dedup.report_generator import ReportGenerator, format_bytes  # noqa: E402
from datacleanse.src.datacleanse.dedup.selection import selected_size, smart_select  # noqa: E402
from datacleanse.src.datacleanse.dedup.settings import get_settings  # noqa: E402
from datacleanse.src.datacleanse.dedup.sources import SourceConfig, collect_sources  # noqa: E402

logger = structlog.get_logger(__name__)

PROGRESS_LOG_EVERY = 100


def _log_progress(progress: ScanProgress) -> None:
    if progress.processed_count % PROGRESS_LOG_EVERY == 0 or progress.processed_count == progress.total_count:
        logger.info(
            "dedup_scan_progress",
            percent=progress.percent,
            processed=progress.processed_count,
            total=progress.total_count,
            current=progress.current_name,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find duplicate and visually similar files")
    parser.add_argument("root", type=Path, help="Folder to scan")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in MatchMode],
        default=MatchMode.exact.value,
        help="Matching mode (default: exact)",
    )
    parser.add_argument(
        "--smart-select",
        choices=[p.value for p in SmartSelectPolicy],
        default=None,
        help="Selection policy applied to every group",
    )
    parser.add_argument("--pattern", type=str, default=None, help="Regex for --smart-select pattern")
    parser.add_argument("--csv", type=Path, default=None, help="Write CSV report")
    parser.add_argument("--json", type=Path, default=None, help="Write JSON export")
    parser.add_argument("--apply", action="store_true", help="Reconcile the selection in memory")
    return parser


async def main() -> int:
    args = build_parser().parse_args()
    settings = get_settings()
    configure_logging_from_settings(settings)

    if not args.root.is_dir():
        print(f"Not a directory: {args.root}", file=sys.stderr)
        return 2

    sources = collect_sources(SourceConfig(root_path=args.root))
    result = await scan(sources, MatchMode(args.mode), settings=settings, progress_callback=_log_progress)

    print(f"Files scanned     : {result.total_files}")
    print(f"Total size        : {format_bytes(result.total_size_bytes)}")
    print(f"Duplicate groups  : {result.duplicate_groups_count}")
    print(f"Wasted space      : {format_bytes(result.wasted_space_bytes)}")

    generator = ReportGenerator()
    if args.csv:
        generator.generate_csv(result, args.csv)
    if args.json:
        generator.generate_json(result, args.json)

    if not args.smart_select:
        return 0

    try:
        selection = smart_select(result.groups, SmartSelectPolicy(args.smart_select), args.pattern)
    except InvalidPatternError as e:
        print(f"Invalid pattern: {e}", file=sys.stderr)
        return 2

    print(f"Selected          : {len(selection)} files ({format_bytes(selected_size(result.groups, selection))})")

    if args.apply:
        outcome = begin_removal(result, selection).commit()
        print(f"Recovered         : {format_bytes(outcome.recovered_bytes)}")
        print(f"Remaining groups  : {outcome.result.duplicate_groups_count}")
        print(f"Wasted space now  : {format_bytes(outcome.result.wasted_space_bytes)}")

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
