"""Command-line entry point: mirror Notion images into COS, one collection at a time."""

import argparse
import asyncio
import sys
from collections.abc import Sequence

import structlog

from src.config import settings
from src.core.exceptions import ConfigurationError
from src.core.logging import configure_logging
from src.schemas.assets import MirrorStats
from src.services.collections import COLLECTIONS, DEFAULT_COLLECTIONS
from src.services.mirror import run_mirror

logger = structlog.get_logger()

MB = 1024 * 1024


def format_summary(stats: MirrorStats) -> str:
    lines = [
        "=" * 50,
        "Optimization complete",
        f"  Processed: {stats.processed} images",
        f"  Skipped: {stats.skipped} images",
        f"  Errors: {stats.errors} images",
        f"  Original total size: {stats.original_total_size / MB:.2f}MB",
        f"  Optimized total size: {stats.optimized_total_size / MB:.2f}MB",
    ]
    if stats.original_total_size > 0:
        lines.append(f"  Total savings: {stats.savings_percent:.1f}%")
    lines.append("=" * 50)
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notion-image-mirror",
        description="Mirror and optimize images referenced by Notion databases into the COS bucket",
    )
    parser.add_argument(
        "collections",
        nargs="*",
        metavar="COLLECTION",
        help=f"Collections to process (default: {' '.join(DEFAULT_COLLECTIONS)}; choices: {', '.join(sorted(COLLECTIONS))})",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    unknown = [name for name in args.collections if name not in COLLECTIONS]
    if unknown:
        parser.error(f"unknown collection(s): {', '.join(unknown)}")
    configure_logging(args.log_level, json_logs=settings.log_json)
    collections = args.collections or list(DEFAULT_COLLECTIONS)

    try:
        stats = asyncio.run(run_mirror(settings, collections))
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e))
        return 1

    print(format_summary(stats))
    return 0


if __name__ == "__main__":
    sys.exit(main())
