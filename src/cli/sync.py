# =============================================================================
# src/cli/sync.py -- Sync CLI
# =============================================================================
#
# Runs the ADE sync from the command line without starting the API server.
# Builds the same component graph as the web app (src.main.build_components)
# against the configured SQLite database.
#
# Typical usage:
#   python -m src.cli.sync sync                          # artists + events + lineups
#   python -m src.cli.sync sync --type events --from 2025-10-22 --to 2025-10-26
#   python -m src.cli.sync parse-lineups --venue paradiso --limit 5
#   python -m src.cli.sync link --artist-id 42           # free-text matching
#   python -m src.cli.sync runs --limit 10               # run history
#   python -m src.cli.sync logs <run_id>                 # one run's progress log
#
# Exit codes: 0 success, 1 usage or no matching records, 2 run ended in error.
# =============================================================================

"""Command-line front end for the ADE sync pipeline.

Usage::

    python -m src.cli.sync sync [--type both|artists|events|linking]
    python -m src.cli.sync parse-lineups [--event-id N] [--venue TEXT] [--limit N]
    python -m src.cli.sync link [--artist-id N]
    python -m src.cli.sync runs [--limit N]
    python -m src.cli.sync logs RUN_ID
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from src.models.progress import BatchProgress
from src.models.run import RunStatus, ScrapeRun, SyncType
from src.utils.errors import NoEventsFoundError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _components() -> AsyncIterator[dict[str, Any]]:
    """Build, initialise and finally tear down the component graph."""
    from src.main import build_components, settings

    components = build_components(settings)
    await components["store"].initialize()
    try:
        yield components
    finally:
        await components["http_client"].aclose()


def _print_run(run: ScrapeRun) -> None:
    print(f"Run {run.run_id}  [{run.sync_type.value}]  {run.status.value}")
    print(f"  started:   {run.started_at}")
    print(f"  completed: {run.completed_at or '-'}")
    print(
        f"  items: {run.total_items_processed} processed, "
        f"{run.items_created} created, {run.items_updated} updated, "
        f"{run.items_unchanged} unchanged"
    )
    print(
        f"  links: {run.links_added} added ({run.high_confidence_links} high confidence), "
        f"{run.stubs_created} stubs"
    )
    if run.error_count or run.error_message:
        print(f"  errors: {run.error_count}  {run.error_message or ''}".rstrip())


def _print_progress(session_id: str, snapshot: BatchProgress) -> None:
    print(f"  [{snapshot.progress_percent:3d}%] {snapshot.message}")


def _exit_code(status: RunStatus) -> int:
    return 2 if status == RunStatus.ERROR else 0


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_sync(args: argparse.Namespace) -> int:
    """Run a full (or partial) sync and print the run summary."""
    async with _components() as components:
        run = await components["orchestrator"].run_full_sync(
            from_date=args.from_date,
            to_date=args.to_date,
            sync_type=SyncType(args.type),
        )
    _print_run(run)
    return _exit_code(run.status)


async def _handle_parse_lineups(args: argparse.Namespace) -> int:
    """Parse detail pages for matching events and link their lineups."""
    session_id = f"cli-{uuid.uuid4().hex[:8]}"
    async with _components() as components:
        batch = components["batch_service"]
        tracker = components["progress_tracker"]
        try:
            events = await batch.prepare_lineup_batch(
                session_id, event_id=args.event_id, venue_filter=args.venue, limit=args.limit
            )
        except NoEventsFoundError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            return 1

        print(f"Parsing {len(events)} event page(s)")
        tracker.register_listener(session_id, _print_progress)
        result = await batch.run_lineup_batch(session_id, events)
        tracker.unregister_listener(session_id, _print_progress)

    if result.error:
        print(f"Failed: {result.error}", file=sys.stderr)
        return 2
    print(
        f"Done: {result.events_parsed} events, {result.artists_found} artists found, "
        f"{result.links_created} links, {result.stubs_created} stubs"
    )
    return 0


async def _handle_link(args: argparse.Namespace) -> int:
    """Run the free-text matcher for one or all artists."""
    session_id = f"cli-{uuid.uuid4().hex[:8]}"
    async with _components() as components:
        batch = components["batch_service"]
        try:
            artists = await batch.prepare_text_match(session_id, artist_id=args.artist_id)
        except NoEventsFoundError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            return 1

        print(f"Matching {len(artists)} artist(s)")
        result = await batch.run_text_match(session_id, artists)

    if result.error:
        print(f"Failed: {result.error}", file=sys.stderr)
        return 2
    print(result.message)
    return 0


async def _handle_runs(args: argparse.Namespace) -> int:
    async with _components() as components:
        runs = await components["ledger"].recent_runs(limit=args.limit)
    if not runs:
        print("No runs recorded yet.")
        return 0
    for run in runs:
        _print_run(run)
    return 0


async def _handle_logs(args: argparse.Namespace) -> int:
    async with _components() as components:
        ledger = components["ledger"]
        run = await ledger.get_run(args.run_id)
        if run is None:
            print(f"Error: run not found: {args.run_id}", file=sys.stderr)
            return 1
        entries = await ledger.run_logs(args.run_id)

    _print_run(run)
    for entry in entries:
        print(f"{entry.created_at or '':<32} {entry.log_level.value.upper():<7} {entry.message}")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the sync CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.sync",
        description="Sync the ADE program listing and link artists to events.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Sync commands")

    sync_p = subparsers.add_parser("sync", help="Run a sync")
    sync_p.add_argument(
        "--type",
        choices=[t.value for t in SyncType],
        default=SyncType.BOTH.value,
        help="What to sync (default: both)",
    )
    sync_p.add_argument("--from", dest="from_date", help="Start date YYYY-MM-DD")
    sync_p.add_argument("--to", dest="to_date", help="End date YYYY-MM-DD")

    parse_p = subparsers.add_parser("parse-lineups", help="Parse event detail pages")
    parse_p.add_argument("--event-id", type=int, help="Parse only this event (primary key)")
    parse_p.add_argument("--venue", help="Case-insensitive venue name filter")
    parse_p.add_argument("--limit", type=int, default=10, help="Maximum events (default: 10)")

    link_p = subparsers.add_parser("link", help="Match artist names against event text")
    link_p.add_argument("--artist-id", type=int, help="Match only this artist (primary key)")

    runs_p = subparsers.add_parser("runs", help="List recent runs")
    runs_p.add_argument("--limit", type=int, default=20, help="Number of runs (default: 20)")

    logs_p = subparsers.add_parser("logs", help="Show a run's progress log")
    logs_p.add_argument("run_id", help="Run id")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

_HANDLERS = {
    "sync": _handle_sync,
    "parse-lineups": _handle_parse_lineups,
    "link": _handle_link,
    "runs": _handle_runs,
    "logs": _handle_logs,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the sync tool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    handler = _HANDLERS.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(handler(args)))


if __name__ == "__main__":
    main()
