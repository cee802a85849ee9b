"""Integration tests for SyncOrchestrator end to end.

Real store, ledger, upsert engine, lineup parser and link resolver; only
the two upstream HTTP surfaces are replaced by in-memory fakes.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest

from src.interfaces.listing_provider import IEventPageProvider, IListingProvider, ListingPage
from src.models.entities import LinkSource
from src.models.lineup import EventPage
from src.models.run import ChangeType, RunStatus, SyncType
from src.pipeline.orchestrator import SyncOrchestrator
from src.pipeline.run_ledger import RunLedger
from src.providers.listing import SECTION_ARTISTS, SECTION_EVENTS
from src.providers.store.sqlite_store import SQLiteSyncStore
from src.services.lineup_parser import LineupParser
from src.services.link_resolver import LinkResolver
from src.services.name_matcher import NameMatcher
from src.services.upsert_service import UpsertService
from src.utils.errors import LineupFetchError, ListingFetchError

SITE = "https://www.amsterdam-dance-event.nl"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeListing(IListingProvider):
    """Serves fixed pages per section; optionally fails at a given page."""

    def __init__(
        self,
        pages: dict[str, list[list[dict[str, Any]]]],
        fail_at: dict[str, int] | None = None,
        crash: Exception | None = None,
    ) -> None:
        self.pages = pages
        self.fail_at = fail_at or {}
        self.crash = crash

    async def fetch_page(self, section: str, page: int, from_date: str, to_date: str) -> list[dict[str, Any]]:
        if self.crash is not None:
            raise self.crash
        if self.fail_at.get(section) == page:
            raise ListingFetchError(f"HTTP 503 fetching {section} page {page}", provider_name="fake", page=page)
        section_pages = self.pages.get(section, [])
        return section_pages[page] if page < len(section_pages) else []

    async def iter_pages(self, section: str, from_date: str, to_date: str) -> AsyncIterator[ListingPage]:
        page = 0
        while True:
            items = await self.fetch_page(section, page, from_date, to_date)
            if not items:
                return
            yield ListingPage(section=section, page=page, items=items)
            page += 1


class FakeEventPages(IEventPageProvider):
    """Serves canned HTML by URL and parses it with the real LineupParser."""

    def __init__(self, pages: dict[str, str]) -> None:
        self.pages = pages
        self.parser = LineupParser()
        self.fetched: list[str] = []

    async def fetch_html(self, url: str) -> str:
        self.fetched.append(url)
        if url not in self.pages:
            raise LineupFetchError(f"HTTP 404 for {url}", provider_name="fake")
        return self.pages[url]

    async def fetch_and_parse(self, url: str) -> EventPage:
        return self.parser.analyze(url, await self.fetch_html(url))


def _orchestrator(
    store: SQLiteSyncStore, listing: IListingProvider, event_pages: IEventPageProvider
) -> SyncOrchestrator:
    return SyncOrchestrator(
        listing_provider=listing,
        event_page_provider=event_pages,
        store=store,
        upsert_service=UpsertService(store),
        link_resolver=LinkResolver(store),
        name_matcher=NameMatcher(),
        ledger=RunLedger(store),
        event_page_delay=0,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def festival(make_artist_item, make_event_item, lineup_page_html) -> dict[str, Any]:
    """One known artist, two events, and the detail pages of both events."""
    second = make_event_item(
        external_id=502,
        title="Amelie Lens Presents",
        subtitle=None,
        start_date_time={"date": "2025-10-24 22:00:00.000000", "timezone": "Europe/Amsterdam"},
        end_date_time={"date": "2025-10-25 05:00:00.000000", "timezone": "Europe/Amsterdam"},
    )
    first = make_event_item()
    return {
        "artists": [make_artist_item()],
        "events": [first, second],
        "pages": {
            first["url"]: lineup_page_html,
            second["url"]: (
                '<div class="lineup"><a href="/en/artists-speakers/amelie-lens/1001/">Amelie Lens</a></div>'
            ),
        },
    }


def _listing(festival: dict[str, Any], **kwargs: Any) -> FakeListing:
    return FakeListing(
        {SECTION_ARTISTS: [festival["artists"]], SECTION_EVENTS: [festival["events"]]}, **kwargs
    )


# ======================================================================
# Full sync
# ======================================================================


class TestFullSync:
    @pytest.mark.asyncio
    async def test_first_run(self, store: SQLiteSyncStore, festival: dict[str, Any]) -> None:
        pages = FakeEventPages(festival["pages"])
        run = await _orchestrator(store, _listing(festival), pages).run_full_sync()

        assert run.status == RunStatus.SUCCESS
        assert run.progress_percent == 100
        assert run.artists_pages == 1
        assert run.events_pages == 1
        assert run.total_items_processed == 3
        assert run.items_created == 3
        assert run.event_details_fetched == 2
        assert run.links_added == 3
        assert run.high_confidence_links == 3
        assert run.stubs_created == 1
        assert run.error_count == 0
        assert run.from_date == "2025-10-22"

        # Detail pages are visited in start-date order.
        assert pages.fetched == [e["url"] for e in festival["events"]]

        stub = await store.get_artist_by_external_id("1002")
        assert stub is not None
        assert stub.is_stub is True
        assert stub.title == "Joris Voorn"

        event = await store.get_event_by_external_id("501")
        assert event is not None
        assert event.lineup_parsed is True
        assert [m["external_id"] for m in event.parsed_lineup] == ["1001", "1002"]
        links = await store.links_for_event(event.id)
        assert {link.source for link in links} == {LinkSource.LINEUP}
        assert all(link.confidence == 1.0 for link in links)

        created = await store.change_logs(run.run_id)
        assert len(created) == 3
        assert {entry.change_type for entry in created} == {ChangeType.CREATED}

    @pytest.mark.asyncio
    async def test_rerun_is_a_no_op(self, store: SQLiteSyncStore, festival: dict[str, Any]) -> None:
        pages = FakeEventPages(festival["pages"])
        orchestrator = _orchestrator(store, _listing(festival), pages)
        await orchestrator.run_full_sync()
        before = await store.get_event_by_external_id("501")

        run = await orchestrator.run_full_sync()

        assert run.status == RunStatus.SUCCESS
        assert run.items_unchanged == 3
        assert run.items_created == run.items_updated == 0
        assert run.links_added == 0
        assert run.event_details_fetched == 0
        assert await store.change_logs(run.run_id) == []
        assert await store.get_event_by_external_id("501") == before
        assert len(pages.fetched) == 2

    @pytest.mark.asyncio
    async def test_upstream_change_is_audited(
        self, store: SQLiteSyncStore, festival: dict[str, Any], make_event_item
    ) -> None:
        pages = FakeEventPages(festival["pages"])
        await _orchestrator(store, _listing(festival), pages).run_full_sync()

        festival["events"][0] = make_event_item(soldOut=True)
        run = await _orchestrator(store, _listing(festival), pages).run_full_sync(sync_type=SyncType.EVENTS)

        assert run.items_updated == 1
        assert run.items_unchanged == 1
        [entry] = await store.change_logs(run.run_id)
        assert entry.external_id == "501"
        assert entry.changed_fields == ["sold_out"]

    @pytest.mark.asyncio
    async def test_stub_promoted_by_later_listing(
        self, store: SQLiteSyncStore, festival: dict[str, Any], make_artist_item
    ) -> None:
        pages = FakeEventPages(festival["pages"])
        await _orchestrator(store, _listing(festival), pages).run_full_sync()

        festival["artists"].append(make_artist_item(external_id=1002, title="Joris Voorn"))
        run = await _orchestrator(store, _listing(festival), pages).run_full_sync(sync_type=SyncType.ARTISTS)

        assert run.items_updated == 1
        promoted = await store.get_artist_by_external_id("1002")
        assert promoted is not None
        assert promoted.is_stub is False
        assert promoted.content_hash is not None
        [entry] = await store.change_logs(run.run_id)
        assert entry.change_type == ChangeType.UPDATED
        assert entry.old_content_hash is None


# ======================================================================
# Partial and failed runs
# ======================================================================


class TestDegradedRuns:
    @pytest.mark.asyncio
    async def test_listing_fetch_error_is_partial(
        self, store: SQLiteSyncStore, festival: dict[str, Any], make_event_item
    ) -> None:
        listing = FakeListing(
            {
                SECTION_ARTISTS: [festival["artists"]],
                SECTION_EVENTS: [[make_event_item()], [make_event_item(external_id=502)]],
            },
            fail_at={SECTION_EVENTS: 1},
        )

        run = await _orchestrator(store, listing, FakeEventPages(festival["pages"])).run_full_sync()

        assert run.status == RunStatus.PARTIAL
        assert run.error_count == 1
        assert run.error_message == "1 item(s) failed"
        assert run.events_pages == 1
        assert await store.get_event_by_external_id("501") is not None
        assert await store.get_event_by_external_id("502") is None

        logs = await store.progress_logs(run.run_id)
        failure = next(line for line in logs if "pagination stopped" in line.message)
        assert failure.details is not None
        assert failure.details["page"] == 1

    @pytest.mark.asyncio
    async def test_invalid_item_is_skipped(
        self, store: SQLiteSyncStore, festival: dict[str, Any], make_event_item
    ) -> None:
        broken = make_event_item(
            external_id=503, start_date_time={"date": "TBA", "timezone": "Europe/Amsterdam"}
        )
        festival["events"].insert(0, broken)

        run = await _orchestrator(store, _listing(festival), FakeEventPages(festival["pages"])).run_full_sync()

        assert run.status == RunStatus.PARTIAL
        assert run.error_count == 1
        assert run.items_created == 3
        assert await store.get_event_by_external_id("503") is None
        messages = [line.message for line in await store.progress_logs(run.run_id)]
        assert "Skipped event 503" in messages

    @pytest.mark.asyncio
    async def test_unreachable_detail_page(self, store: SQLiteSyncStore, festival: dict[str, Any]) -> None:
        first_url = festival["events"][0]["url"]
        pages = FakeEventPages({k: v for k, v in festival["pages"].items() if k != first_url})

        run = await _orchestrator(store, _listing(festival), pages).run_full_sync()

        assert run.status == RunStatus.PARTIAL
        assert run.event_details_fetched == 1
        assert run.links_added == 1
        event = await store.get_event_by_external_id("501")
        assert event is not None
        assert event.lineup_parsed is False

    @pytest.mark.asyncio
    async def test_failed_fetches_are_not_counted_as_parsed(
        self, store: SQLiteSyncStore, festival: dict[str, Any]
    ) -> None:
        orchestrator = _orchestrator(store, _listing(festival), FakeEventPages({}))
        await orchestrator.run_full_sync(sync_type=SyncType.EVENTS)
        events = await store.find_events_with_url()
        ctx = await RunLedger(store).start_run(SyncType.LINKING)

        summary = await orchestrator.parse_and_link_lineups(ctx, events)

        assert summary.events_total == 2
        assert summary.events_parsed == 0
        assert summary.artists_found == 0
        assert ctx.stats.error_count == 2
        assert ctx.stats.event_details_fetched == 0

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_error(self, store: SQLiteSyncStore) -> None:
        listing = FakeListing({}, crash=RuntimeError("upstream exploded"))

        run = await _orchestrator(store, listing, FakeEventPages({})).run_full_sync()

        assert run.status == RunStatus.ERROR
        assert run.error_message == "upstream exploded"
        assert run.completed_at is not None

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, store: SQLiteSyncStore, festival: dict[str, Any]) -> None:
        cancel = asyncio.Event()
        cancel.set()
        pages = FakeEventPages(festival["pages"])

        run = await _orchestrator(store, _listing(festival), pages).run_full_sync(cancel_event=cancel)

        assert run.items_created == 0
        assert pages.fetched == []
        messages = [line.message for line in await store.progress_logs(run.run_id)]
        assert "Run cancelled before completion" in messages


# ======================================================================
# Text matching
# ======================================================================


class TestLinkByText:
    @pytest.mark.asyncio
    async def test_subtitle_b2b_links_both_artists(
        self, store: SQLiteSyncStore, festival: dict[str, Any], make_artist_item
    ) -> None:
        festival["artists"].append(make_artist_item(external_id=1002, title="Joris Voorn"))
        orchestrator = _orchestrator(store, _listing(festival), FakeEventPages({}))
        await orchestrator.run_full_sync(sync_type=SyncType.ARTISTS)
        await orchestrator.run_full_sync(sync_type=SyncType.EVENTS)

        ledger = RunLedger(store)
        ctx = await ledger.start_run(SyncType.LINKING)
        progress: list[tuple[int, int, str]] = []

        async def on_progress(position, total, title, summary) -> None:
            progress.append((position, total, title))

        summary = await orchestrator.link_by_text(ctx, on_progress=on_progress)
        run = await ledger.complete(ctx)

        assert summary.artists_total == 2
        assert summary.matches_found == 2
        assert summary.links_created == 2
        assert summary.high_confidence == 2
        assert progress == [(1, 2, "Amelie Lens"), (2, 2, "Joris Voorn")]
        assert run.links_added == 2

        event = await store.get_event_by_external_id("501")
        assert event is not None
        links = await store.links_for_event(event.id)
        assert {link.source for link in links} == {LinkSource.AUTO_MATCHER}
        assert all(link.match_details["match_type"] == "subtitle" for link in links)

    @pytest.mark.asyncio
    async def test_text_match_keeps_existing_lineup_link(
        self, store: SQLiteSyncStore, festival: dict[str, Any]
    ) -> None:
        orchestrator = _orchestrator(store, _listing(festival), FakeEventPages(festival["pages"]))
        await orchestrator.run_full_sync()

        ledger = RunLedger(store)
        ctx = await ledger.start_run(SyncType.LINKING)
        summary = await orchestrator.link_by_text(ctx)

        # Both stored artists match event 501's subtitle, but both links exist.
        assert summary.matches_found == 2
        assert summary.links_created == 0
        event = await store.get_event_by_external_id("501")
        assert event is not None
        links = await store.links_for_event(event.id)
        assert {link.source for link in links} == {LinkSource.LINEUP}
