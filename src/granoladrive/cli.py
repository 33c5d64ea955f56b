"""Command-line interface for granoladrive."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

from .config import load_config
from .errors import GranolaDriveError
from .models import RunStatus
from .sync_engine import run_sync


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="granoladrive",
        description="Sync project meeting transcripts from Granola to a shared Google Drive folder",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to config YAML (default: ~/.config/granoladrive/config.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be written without writing files or state",
    )

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1) from None

    try:
        summary = asyncio.run(run_sync(config, dry_run=args.dry_run))
    except (GranolaDriveError, httpx.HTTPError) as e:
        logging.getLogger(__name__).debug("Sync aborted", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1) from None

    if summary.status is RunStatus.LOCKED:
        print("Another sync is already running")
        return

    if summary.delivered:
        print(f"Synced {summary.delivered} note(s)")
    else:
        print("Everything up to date")
    if summary.skipped:
        print(f"Skipped {summary.skipped} without transcript")
    if summary.failed:
        print(f"{summary.failed} failed, will retry next run")
