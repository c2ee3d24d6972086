from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from eventdigest.adapters.documents import read_sections, render_snapshot
from eventdigest.app import extract_events, generate_daily_digest, import_sources, show_snapshot
from eventdigest.config import configure_logging, get_pipeline_config
from eventdigest.domain.time_windows import utcnow

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract school events and build daily digests")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Extract new events and save today's digest")
    run.add_argument(
        "--sections",
        type=Path,
        help="JSON document with the summarised digest sections to merge in",
    )
    run.add_argument(
        "--full-refresh",
        action="store_true",
        help="Ignore yesterday's snapshot and mark everything as new",
    )

    subparsers.add_parser("extract", help="Extract events from new posts and messages only")

    import_cmd = subparsers.add_parser(
        "import-sources",
        help="Store translated posts and messages from a JSON-lines file",
    )
    import_cmd.add_argument("path", type=Path, help="JSON-lines file with one source per line")

    show = subparsers.add_parser("show-snapshot", help="Print a stored digest snapshot as JSON")
    show.add_argument(
        "--date",
        type=str,
        help="Snapshot day as YYYY-MM-DD (default: today in EVENTDIGEST_TIMEZONE)",
    )

    return parser.parse_args(list(argv))


def _parse_iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid ISO date: {value}") from exc


def _local_today() -> date:
    return utcnow().astimezone(get_pipeline_config().tzinfo).date()


def _validate(args: argparse.Namespace) -> None:
    if args.command == "run" and args.sections is not None and not args.sections.is_file():
        raise ValueError(f"Sections file not found: {args.sections}")
    if args.command == "import-sources" and not args.path.is_file():
        raise ValueError(f"Sources file not found: {args.path}")
    if args.command == "show-snapshot" and args.date is not None:
        args.date = _parse_iso_date(args.date)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "run":
            sections = read_sections(parsed_args.sections) if parsed_args.sections else None
            result = generate_daily_digest(
                sections=sections,
                incremental_mode=not parsed_args.full_refresh,
            )
            if result.skipped:
                log.info(f"Kept the {result.snapshot.snapshot_date} digest, nothing new arrived")
            else:
                log.info(f"Run report: {result.report.summary()}")
        elif parsed_args.command == "extract":
            report = extract_events()
            log.info(f"Run report: {report.summary()}")
        elif parsed_args.command == "import-sources":
            import_sources(parsed_args.path)
        elif parsed_args.command == "show-snapshot":
            snapshot_date = parsed_args.date or _local_today()
            lookup = show_snapshot(snapshot_date)
            if lookup.snapshot is None:
                raise LookupError(  # noqa: TRY301
                    f"No snapshot for {snapshot_date} ({lookup.status})"
                )
            sys.stdout.write(render_snapshot(lookup.snapshot) + "\n")
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during run")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
