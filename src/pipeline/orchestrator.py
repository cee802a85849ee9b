"""Reconciliation orchestrator for the ADE festival sync.

Drives the listing fetcher, the upsert engine, the lineup parser and the
link resolver through one sync run.

ARCHITECTURE NOTE:
    A full sync is a fixed sequence of phases, each optional depending on
    the requested :class:`SyncType`:

        artists  (0-40%)   page through the "persons" listing, upsert each
        events   (40-70%)  page through the "events" listing, upsert each
        lineups  (70-100%) fetch detail pages of events this run touched,
                           link every profile link found (stubs as needed)

    All per-run state travels in a :class:`RunContext`; the orchestrator
    itself is stateless and can serve concurrent runs.

    Failure handling has two levels:
        - one bad record, one failed page, one unreachable detail page:
          counted in ``error_count``, logged, and the loop moves on
          (the run ends PARTIAL)
        - anything else escaping a phase: the run ends ERROR with the
          exception's message

    Cancellation is cooperative.  The cancel flag is checked before each
    record, each detail page and each artist; already-written rows stay.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

from src.interfaces.listing_provider import IEventPageProvider, IListingProvider
from src.interfaces.sync_store import ISyncStore
from src.models.entities import ArtistRecord, EventRecord, LinkSource
from src.models.listing import RawArtist, RawEvent
from src.models.run import LogLevel, ScrapeRun, SyncType
from src.pipeline.run_context import RunContext
from src.pipeline.run_ledger import RunLedger
from src.providers.listing import SECTION_ARTISTS, SECTION_EVENTS
from src.services.link_resolver import LineupSourced, LinkResolver, TextSourced
from src.services.name_matcher import NameMatcher
from src.services.upsert_service import UpsertService
from src.utils.errors import AdeSyncError, LineupFetchError, ListingFetchError, StoreError
from src.utils.logging import bind_run, get_logger

DEFAULT_EVENT_PAGE_DELAY = 1.0
DEFAULT_LINEUP_BATCH_LIMIT = 100
DEFAULT_HTML_SNIPPET_CHARS = 10_000
DEFAULT_FROM_DATE = "2025-10-22"
DEFAULT_TO_DATE = "2025-10-26"


@dataclass
class LineupSummary:
    """Totals for one lineup parse-and-link pass."""

    events_total: int = 0
    events_parsed: int = 0
    artists_found: int = 0
    links_created: int = 0
    stubs_created: int = 0


@dataclass
class TextLinkSummary:
    """Totals for one free-text matching pass."""

    artists_total: int = 0
    artists_processed: int = 0
    matches_found: int = 0
    links_created: int = 0
    high_confidence: int = 0


# (position, total, item title, running summary) -> awaitable
LineupCallback = Callable[[int, int, str, LineupSummary], Awaitable[None]]
TextLinkCallback = Callable[[int, int, str, TextLinkSummary], Awaitable[None]]


class SyncOrchestrator:
    """Runs sync phases against injected providers, services and ledger.

    Parameters
    ----------
    listing_provider:
        Paginated canonical listing.
    event_page_provider:
        Event detail page fetcher/parser.
    store:
        Relational store (read paths used for phase selection).
    upsert_service:
        Applies created/updated/unchanged decisions.
    link_resolver:
        Persists lineup- and text-sourced links.
    name_matcher:
        Free-text scorer used by :meth:`link_by_text`.
    ledger:
        Run and progress-log writer.
    event_page_delay:
        Seconds between consecutive detail-page fetches.
    lineup_batch_limit:
        Maximum number of events the lineup phase of a full sync visits.
    default_from_date, default_to_date:
        Listing date range used when a run does not specify one.
    """

    def __init__(
        self,
        listing_provider: IListingProvider,
        event_page_provider: IEventPageProvider,
        store: ISyncStore,
        upsert_service: UpsertService,
        link_resolver: LinkResolver,
        name_matcher: NameMatcher,
        ledger: RunLedger,
        event_page_delay: float = DEFAULT_EVENT_PAGE_DELAY,
        lineup_batch_limit: int = DEFAULT_LINEUP_BATCH_LIMIT,
        html_snippet_chars: int = DEFAULT_HTML_SNIPPET_CHARS,
        default_from_date: str = DEFAULT_FROM_DATE,
        default_to_date: str = DEFAULT_TO_DATE,
    ) -> None:
        self._listing = listing_provider
        self._event_pages = event_page_provider
        self._store = store
        self._upserts = upsert_service
        self._resolver = link_resolver
        self._matcher = name_matcher
        self._ledger = ledger
        self._event_page_delay = event_page_delay
        self._lineup_batch_limit = lineup_batch_limit
        self._html_snippet_chars = html_snippet_chars
        self._default_from_date = default_from_date
        self._default_to_date = default_to_date
        self._text_strategy = TextSourced()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Full sync
    # ------------------------------------------------------------------

    async def run_full_sync(
        self,
        from_date: str | None = None,
        to_date: str | None = None,
        sync_type: SyncType = SyncType.BOTH,
        cancel_event: asyncio.Event | None = None,
    ) -> ScrapeRun:
        """Execute one sync run end to end and return the completed run row.

        ``LINKING`` skips both listings and only runs the lineup phase over
        events that were never parsed.
        """
        from_date = from_date or self._default_from_date
        to_date = to_date or self._default_to_date
        ctx = await self._ledger.start_run(
            sync_type, from_date=from_date, to_date=to_date, cancel_event=cancel_event
        )

        with bind_run(ctx.run_id, sync_type=sync_type.value):
            try:
                if sync_type in (SyncType.ARTISTS, SyncType.BOTH):
                    await self.sync_artists(ctx, from_date, to_date)
                    ctx.set_progress(1, 1, end=40)
                    await self._ledger.update(ctx)

                if sync_type in (SyncType.EVENTS, SyncType.BOTH):
                    await self.sync_events(ctx, from_date, to_date)
                    ctx.set_progress(1, 1, start=40, end=70)
                    await self._ledger.update(ctx)

                if sync_type in (SyncType.LINKING, SyncType.BOTH) and not ctx.cancelled:
                    events = await self._store.events_touched_by_run(
                        ctx.run_id, limit=self._lineup_batch_limit
                    )
                    await self._ledger.log(
                        ctx, LogLevel.INFO, f"Parsing lineups for {len(events)} events"
                    )
                    await self.parse_and_link_lineups(ctx, events)

                if ctx.cancelled:
                    await self._ledger.log(ctx, LogLevel.WARNING, "Run cancelled before completion")
            except Exception as exc:
                self._logger.error("sync_failed", error=str(exc), exc_info=True)
                return await self._ledger.complete(ctx, error=exc)

            return await self._ledger.complete(ctx)

    # ------------------------------------------------------------------
    # Listing phases
    # ------------------------------------------------------------------

    async def sync_artists(
        self, ctx: RunContext, from_date: str | None = None, to_date: str | None = None
    ) -> None:
        """Ingest every artist from the canonical listing."""
        await self._sync_section(ctx, SECTION_ARTISTS, from_date, to_date)

    async def sync_events(
        self, ctx: RunContext, from_date: str | None = None, to_date: str | None = None
    ) -> None:
        """Ingest every event from the canonical listing."""
        await self._sync_section(ctx, SECTION_EVENTS, from_date, to_date)

    async def _sync_section(
        self,
        ctx: RunContext,
        section: str,
        from_date: str | None,
        to_date: str | None,
    ) -> None:
        is_artists = section == SECTION_ARTISTS
        from_date = from_date or self._default_from_date
        to_date = to_date or self._default_to_date
        await self._ledger.log(ctx, LogLevel.INFO, f"Syncing {section}")

        try:
            async for page in self._listing.iter_pages(section, from_date, to_date):
                if is_artists:
                    ctx.stats.artists_pages += 1
                else:
                    ctx.stats.events_pages += 1

                for item in page.items:
                    if ctx.cancelled:
                        return
                    await self._ingest_item(ctx, item, is_artists)

                await self._ledger.log(
                    ctx,
                    LogLevel.INFO,
                    f"Processed {section} page {page.page}",
                    {"items": len(page.items)},
                )
                await self._ledger.update(ctx)
        except ListingFetchError as exc:
            ctx.stats.error_count += 1
            await self._ledger.log(
                ctx,
                LogLevel.ERROR,
                f"Listing fetch failed for {section}; pagination stopped",
                {"page": exc.page, "error": str(exc)},
            )

    async def _ingest_item(self, ctx: RunContext, item: Any, is_artists: bool) -> None:
        try:
            if is_artists:
                await self._upserts.upsert_artist(ctx, RawArtist.from_api(item).to_fields())
            else:
                await self._upserts.upsert_event(ctx, RawEvent.from_api(item).to_fields())
        except AdeSyncError as exc:
            ctx.stats.error_count += 1
            external_id = item.get("id") if isinstance(item, dict) else None
            await self._ledger.log(
                ctx,
                LogLevel.WARNING,
                f"Skipped {'artist' if is_artists else 'event'} {external_id}",
                {"error": str(exc), "error_type": type(exc).__name__},
            )

    # ------------------------------------------------------------------
    # Lineup phase
    # ------------------------------------------------------------------

    async def parse_and_link_lineups(
        self,
        ctx: RunContext,
        events: list[EventRecord],
        source: LinkSource = LinkSource.LINEUP,
        on_progress: LineupCallback | None = None,
        progress_start: int = 70,
        progress_end: int = 100,
    ) -> LineupSummary:
        """Fetch each event's detail page and link every artist it lists.

        Events without a URL are skipped.  A failed fetch counts as an
        error and the event contributes zero mentions.
        """
        strategy = LineupSourced(source)
        summary = LineupSummary(events_total=len(events))
        fetched = 0

        for position, event in enumerate(events, start=1):
            if ctx.cancelled:
                break
            if not event.url:
                continue

            if fetched:
                await asyncio.sleep(self._event_page_delay)
            fetched += 1

            if await self._parse_one(ctx, event, strategy, summary):
                summary.events_parsed += 1

            ctx.set_progress(position, len(events), start=progress_start, end=progress_end)
            await self._ledger.update(ctx)
            if on_progress is not None:
                await on_progress(position, len(events), event.title, summary)

        await self._ledger.log(
            ctx,
            LogLevel.INFO,
            f"Lineup pass finished: {summary.events_parsed} events, {summary.links_created} new links",
            {"artists_found": summary.artists_found, "stubs_created": summary.stubs_created},
        )
        return summary

    async def _parse_one(
        self,
        ctx: RunContext,
        event: EventRecord,
        strategy: LineupSourced,
        summary: LineupSummary,
    ) -> bool:
        """Parse one event page; returns ``False`` when the page could not be fetched."""
        try:
            page = await self._event_pages.fetch_and_parse(event.url or "")
        except LineupFetchError as exc:
            ctx.stats.error_count += 1
            await self._ledger.log(
                ctx,
                LogLevel.WARNING,
                f"Could not fetch detail page for {event.title}",
                {"event_id": event.id, "url": event.url, "error": str(exc)},
            )
            return False

        ctx.stats.event_details_fetched += 1
        summary.artists_found += len(page.lineup)

        try:
            await self._store.mark_lineup_parsed(
                event.id,
                [mention.model_dump() for mention in page.lineup],
                page.metadata,
                page.html[: self._html_snippet_chars],
            )
        except StoreError as exc:
            ctx.stats.error_count += 1
            await self._ledger.log(
                ctx, LogLevel.ERROR, "Failed to store parsed lineup", {"event_id": event.id, "error": str(exc)}
            )

        for mention in page.lineup:
            try:
                outcome = await self._resolver.resolve(ctx, strategy, event, mention)
            except StoreError as exc:
                ctx.stats.error_count += 1
                await self._ledger.log(
                    ctx,
                    LogLevel.ERROR,
                    f"Failed to link {mention.name}",
                    {"event_id": event.id, "external_id": mention.external_id, "error": str(exc)},
                )
                continue
            if outcome is None:
                continue
            if outcome.created:
                summary.links_created += 1
            if outcome.stub_created:
                summary.stubs_created += 1

        await self._ledger.log(
            ctx,
            LogLevel.INFO,
            f"Parsed lineup for {event.title}",
            {"event_id": event.id, "mentions": len(page.lineup), "strategy": page.strategy},
        )
        return True

    # ------------------------------------------------------------------
    # Text matching
    # ------------------------------------------------------------------

    async def link_by_text(
        self,
        ctx: RunContext,
        artists: list[ArtistRecord] | None = None,
        on_progress: TextLinkCallback | None = None,
    ) -> TextLinkSummary:
        """Score every artist against every event's title and subtitle.

        Parameters
        ----------
        ctx:
            Run to attribute links to.
        artists:
            Artists to match; all stored artists when ``None``.
        on_progress:
            Awaited after each artist.
        """
        if artists is None:
            artists = await self._store.list_artists()
        events = await self._store.list_events()
        summary = TextLinkSummary(artists_total=len(artists))

        await self._ledger.log(
            ctx,
            LogLevel.INFO,
            f"Matching {len(artists)} artists against {len(events)} events",
        )

        for position, artist in enumerate(artists, start=1):
            if ctx.cancelled:
                break

            for event in events:
                match = self._matcher.best_match(artist.title, event)
                if match is None:
                    continue
                summary.matches_found += 1
                try:
                    outcome = await self._resolver.resolve(
                        ctx, self._text_strategy, event, (artist, match)
                    )
                except StoreError as exc:
                    ctx.stats.error_count += 1
                    await self._ledger.log(
                        ctx,
                        LogLevel.ERROR,
                        f"Failed to link {artist.title}",
                        {"event_id": event.id, "error": str(exc)},
                    )
                    continue
                if outcome is not None and outcome.created:
                    summary.links_created += 1
                    if match.confidence >= self._resolver.high_confidence_threshold:
                        summary.high_confidence += 1

            summary.artists_processed += 1
            ctx.set_progress(position, len(artists))
            if on_progress is not None:
                await on_progress(position, len(artists), artist.title, summary)

        await self._ledger.update(ctx)
        await self._ledger.log(
            ctx,
            LogLevel.INFO,
            f"Text matching finished: {summary.matches_found} matches, {summary.links_created} new links",
            {"high_confidence": summary.high_confidence},
        )
        return summary
