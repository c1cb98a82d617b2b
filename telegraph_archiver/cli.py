"""Command-line entry point for the Telegraph archiver."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from typing import Sequence

from .archiver import Archiver
from .config import SECONDARY_BACKENDS, ArchiveConfig, debug_from_env
from .errors import BatchError

logger = logging.getLogger("telegraph_archiver.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Capture web pages and republish them on Telegraph.",
        epilog="example:\n  telegraph-archiver https://www.eff.org/ https://www.fsf.org/",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("urls", nargs="+", help="One or more URLs to archive")
    parser.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Deadline in seconds for capturing all pages",
    )
    parser.add_argument(
        "--publish-timeout",
        type=float,
        default=None,
        help="Deadline in seconds for converting and publishing each page",
    )
    parser.add_argument(
        "--secondary",
        choices=(*SECONDARY_BACKENDS, "none"),
        default=None,
        help="Image host used when the Telegraph upload fails",
    )
    parser.add_argument(
        "--remote",
        default=None,
        help="CDP endpoint of a running headless browser",
    )
    parser.add_argument(
        "--split-height",
        type=int,
        default=None,
        help="Slice screenshots taller than this many pixels before upload",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ArchiveConfig:
    overrides = {
        "capture_timeout": args.timeout,
        "publish_timeout": args.publish_timeout,
        "split_height": args.split_height,
    }
    if args.secondary is not None:
        overrides["secondary_backend"] = None if args.secondary == "none" else args.secondary
    if args.remote:
        overrides["browser_remote"] = args.remote
    return ArchiveConfig.from_env(**overrides)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose or debug_from_env() else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    archiver = Archiver(build_config(args))
    overall_start = time.perf_counter()
    status = 0
    try:
        published = asyncio.run(archiver.archive_batch(args.urls))
    except BatchError as exc:
        logger.error("%s", exc)
        published = exc.results
        status = 1
    total_elapsed = time.perf_counter() - overall_start

    for orig, dest in published.items():
        print(orig, "=>", dest)
    logger.debug("Finished in %.2fs", total_elapsed)
    return status


if __name__ == "__main__":
    sys.exit(main())
