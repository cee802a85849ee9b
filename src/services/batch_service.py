"""Session-scoped batch jobs behind the HTTP API.

A caller picks a ``session_id``, asks for a batch, and polls that id for
progress.  Each batch is split in two so the HTTP layer can validate
synchronously and then run the slow part in the background:

    prepare_lineup_batch()  select events, raise if none, write the
                            initial progress snapshot
    run_lineup_batch()      open a LINKING run, parse each event page,
                            update the snapshot per event, complete both

The text-matching batch follows the same shape.  Every batch opens its own
run in the ledger, so batch work shows up in run history like a full sync.
"""

from __future__ import annotations

import asyncio

import structlog

from src.interfaces.sync_store import ISyncStore
from src.models.entities import ArtistRecord, EventRecord, LinkSource
from src.models.progress import BatchProgress
from src.models.run import SyncType
from src.pipeline.orchestrator import LineupSummary, SyncOrchestrator, TextLinkSummary
from src.pipeline.progress_tracker import ProgressTracker
from src.pipeline.run_context import RunContext
from src.pipeline.run_ledger import RunLedger
from src.utils.errors import NoEventsFoundError
from src.utils.logging import bind_run, get_logger

DEFAULT_BATCH_LIMIT = 10


class BatchService:
    """Prepares, runs and cancels per-session lineup and text-match batches."""

    def __init__(
        self,
        store: ISyncStore,
        orchestrator: SyncOrchestrator,
        ledger: RunLedger,
        tracker: ProgressTracker,
    ) -> None:
        self._store = store
        self._orchestrator = orchestrator
        self._ledger = ledger
        self._tracker = tracker
        self._cancel_events: dict[str, asyncio.Event] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Lineup batches
    # ------------------------------------------------------------------

    async def prepare_lineup_batch(
        self,
        session_id: str,
        event_id: int | None = None,
        venue_filter: str | None = None,
        limit: int = DEFAULT_BATCH_LIMIT,
    ) -> list[EventRecord]:
        """Select events with a detail URL and open the session's snapshot.

        Raises
        ------
        NoEventsFoundError
            When nothing matches the filters.
        StoreError
            If the selection query fails.
        """
        events = await self._store.find_events_with_url(
            event_id=event_id, venue_filter=venue_filter, limit=limit
        )
        if not events:
            raise NoEventsFoundError(
                "No events found matching criteria", provider_name="batch"
            )

        self._cancel_events[session_id] = asyncio.Event()
        await self._tracker.start(
            session_id,
            message=f"Found {len(events)} events to parse",
            events_total=len(events),
        )
        self._logger.info("lineup_batch_prepared", session_id=session_id, events=len(events))
        return events

    async def run_lineup_batch(self, session_id: str, events: list[EventRecord]) -> BatchProgress:
        """Parse and link every event's lineup, reporting per-event progress.

        Always finishes the session snapshot, even when the run itself
        cannot be opened or closed.
        """
        try:
            ctx = await self._ledger.start_run(
                SyncType.LINKING, cancel_event=self._cancel_event(session_id)
            )
        except Exception as exc:
            self._cancel_events.pop(session_id, None)
            return await self._fail(session_id, None, exc)

        async def on_progress(position: int, total: int, title: str, summary: LineupSummary) -> None:
            await self._tracker.update(
                session_id,
                progress_percent=position / total * 100,
                message=f"Parsed {position}/{total}: {title}",
                events_parsed=summary.events_parsed,
                artists_found=summary.artists_found,
                links_created=summary.links_created,
                stubs_created=summary.stubs_created,
                run_id=ctx.run_id,
            )

        with bind_run(ctx.run_id, session_id=session_id):
            try:
                summary = await self._orchestrator.parse_and_link_lineups(
                    ctx,
                    events,
                    source=LinkSource.EVENT_PAGE_PARSER,
                    on_progress=on_progress,
                    progress_start=0,
                )
                await self._ledger.complete(ctx)
            except Exception as exc:
                return await self._fail(session_id, ctx, exc)
            finally:
                self._cancel_events.pop(session_id, None)

            message = (
                "Batch cancelled"
                if ctx.cancelled
                else f"Completed: {summary.events_parsed} events parsed, "
                f"{summary.links_created} links created"
            )
            return await self._tracker.complete(
                session_id,
                message=message,
                cancelled=ctx.cancelled,
                events_parsed=summary.events_parsed,
                artists_found=summary.artists_found,
                links_created=summary.links_created,
                stubs_created=summary.stubs_created,
                run_id=ctx.run_id,
            )

    # ------------------------------------------------------------------
    # Text-match batches
    # ------------------------------------------------------------------

    async def prepare_text_match(self, session_id: str, artist_id: int | None = None) -> list[ArtistRecord]:
        """Select the artists to match and open the session's snapshot.

        Raises
        ------
        NoEventsFoundError
            When *artist_id* is given but unknown, or there are no artists.
        """
        artists = await self._store.list_artists(artist_id=artist_id)
        if not artists:
            raise NoEventsFoundError("No artists found to match", provider_name="batch")

        self._cancel_events[session_id] = asyncio.Event()
        await self._tracker.start(
            session_id,
            message=f"Matching {len(artists)} artists against events",
        )
        return artists

    async def run_text_match(self, session_id: str, artists: list[ArtistRecord]) -> BatchProgress:
        """Run the free-text matcher for *artists*, reporting per-artist progress."""
        try:
            ctx = await self._ledger.start_run(
                SyncType.LINKING, cancel_event=self._cancel_event(session_id)
            )
        except Exception as exc:
            self._cancel_events.pop(session_id, None)
            return await self._fail(session_id, None, exc)

        async def on_progress(position: int, total: int, title: str, summary: TextLinkSummary) -> None:
            await self._tracker.update(
                session_id,
                progress_percent=position / total * 100,
                message=f"Processed {position}/{total}: {title}",
                artists_found=summary.matches_found,
                links_created=summary.links_created,
                run_id=ctx.run_id,
            )

        with bind_run(ctx.run_id, session_id=session_id):
            try:
                summary = await self._orchestrator.link_by_text(ctx, artists, on_progress=on_progress)
                await self._ledger.complete(ctx)
            except Exception as exc:
                return await self._fail(session_id, ctx, exc)
            finally:
                self._cancel_events.pop(session_id, None)

            return await self._tracker.complete(
                session_id,
                message=(
                    f"Completed: {summary.matches_found} matches, "
                    f"{summary.links_created} links created"
                ),
                cancelled=ctx.cancelled,
                artists_found=summary.matches_found,
                links_created=summary.links_created,
                run_id=ctx.run_id,
            )

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel(self, session_id: str) -> bool:
        """Ask a running batch to stop after its current item.

        Returns ``False`` when no batch is active for the session.
        """
        event = self._cancel_events.get(session_id)
        if event is None:
            return False
        event.set()
        self._logger.info("batch_cancel_requested", session_id=session_id)
        return True

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _cancel_event(self, session_id: str) -> asyncio.Event:
        return self._cancel_events.setdefault(session_id, asyncio.Event())

    async def _fail(self, session_id: str, ctx: RunContext | None, exc: Exception) -> BatchProgress:
        """Close the run as failed (if one was opened) and finish the snapshot."""
        self._logger.error("batch_failed", session_id=session_id, error=str(exc), exc_info=True)
        if ctx is not None:
            try:
                await self._ledger.complete(ctx, error=exc)
            except Exception as close_exc:
                self._logger.warning(
                    "batch_run_close_failed", session_id=session_id, run_id=ctx.run_id, error=str(close_exc)
                )
        return await self._tracker.complete(
            session_id,
            message="Batch failed",
            error=str(exc) or type(exc).__name__,
            run_id=ctx.run_id if ctx is not None else None,
        )
