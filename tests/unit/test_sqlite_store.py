"""Unit tests for SQLiteSyncStore.

Each test uses a temporary SQLite database to ensure isolation.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.models.entities import ArtistEventLink, EntityType, LinkSource
from src.models.listing import ArtistFields, EventFields
from src.models.run import (
    ChangeLogEntry,
    ChangeType,
    LogLevel,
    ProgressLogEntry,
    RunStatus,
    ScrapeRun,
    SyncType,
)
from src.providers.store.sqlite_store import SQLiteSyncStore
from src.utils.errors import RunStateError, StoreError

SITE = "https://www.amsterdam-dance-event.nl"


def _artist_fields(external_id: str = "1001", title: str = "Amelie Lens", **overrides) -> ArtistFields:
    data = {"external_id": external_id, "title": title, "url": f"{SITE}/en/artists-speakers/x/{external_id}/"}
    data.update(overrides)
    return ArtistFields(**data)


def _event_fields(external_id: str = "501", **overrides) -> EventFields:
    data = {
        "external_id": external_id,
        "title": f"Event {external_id}",
        "url": f"{SITE}/en/program/2025/event/{external_id}/",
        "start_date": "2025-10-22T21:00:00+00:00",
        "end_date": "2025-10-23T04:00:00+00:00",
        "venue_name": "Gashouder",
        "genres": ["Techno"],
    }
    data.update(overrides)
    return EventFields(**data)


def _run(run_id: str = "run-1", started_at: str | None = None) -> ScrapeRun:
    return ScrapeRun(
        run_id=run_id,
        sync_type=SyncType.BOTH,
        status=RunStatus.RUNNING,
        started_at=started_at or datetime.now(tz=timezone.utc).isoformat(),
    )


# ======================================================================
# Artists
# ======================================================================


class TestArtists:
    @pytest.mark.asyncio
    async def test_insert_and_get(self, store: SQLiteSyncStore) -> None:
        inserted = await store.insert_artist(_artist_fields(raw_data={"id": 1001}), "h1", "run-1")

        assert inserted.id > 0
        assert inserted.content_hash == "h1"
        assert inserted.added_by_run == "run-1"
        assert inserted.first_seen_at == inserted.last_updated_at
        assert inserted.raw_data == {"id": 1001}
        assert await store.get_artist(inserted.id) == inserted
        assert await store.get_artist_by_external_id("1001") == inserted

    @pytest.mark.asyncio
    async def test_duplicate_external_id_raises_store_error(self, store: SQLiteSyncStore) -> None:
        await store.insert_artist(_artist_fields(), "h1", "run-1")
        with pytest.raises(StoreError):
            await store.insert_artist(_artist_fields(), "h2", "run-2")

    @pytest.mark.asyncio
    async def test_update(self, store: SQLiteSyncStore) -> None:
        await store.insert_artist(_artist_fields(), "h1", "run-1")
        updated = await store.update_artist("1001", _artist_fields(subtitle="Lenske"), "h2", "run-2")

        assert updated.subtitle == "Lenske"
        assert updated.content_hash == "h2"
        assert updated.added_by_run == "run-1"
        assert updated.updated_by_run == "run-2"

    @pytest.mark.asyncio
    async def test_update_unknown_raises(self, store: SQLiteSyncStore) -> None:
        with pytest.raises(StoreError, match="not found"):
            await store.update_artist("404", _artist_fields(external_id="404"), "h", "run-1")

    @pytest.mark.asyncio
    async def test_stub_then_canonical_update_clears_flag(self, store: SQLiteSyncStore) -> None:
        stub = await store.insert_stub_artist("3003", "Secret Guest", f"{SITE}/x/3003/", "run-1")
        assert stub.is_stub is True
        assert stub.content_hash is None

        promoted = await store.update_artist("3003", _artist_fields("3003", "Secret Guest"), "h", "run-2")
        assert promoted.is_stub is False
        assert promoted.id == stub.id

    @pytest.mark.asyncio
    async def test_list_artists(self, store: SQLiteSyncStore) -> None:
        a = await store.insert_artist(_artist_fields("1"), "h", "run-1")
        await store.insert_artist(_artist_fields("2", "Joris Voorn"), "h", "run-1")

        assert [r.external_id for r in await store.list_artists()] == ["1", "2"]
        assert [r.id for r in await store.list_artists(artist_id=a.id)] == [a.id]
        assert await store.list_artists(artist_id=999) == []

    @pytest.mark.asyncio
    async def test_enrichment_leaves_hash_alone(self, store: SQLiteSyncStore) -> None:
        await store.insert_artist(_artist_fields(), "h1", "run-1")
        await store.apply_enrichment("1001", popularity=72, genres=["Techno"], enrichment_data={"followers": 10})

        artist = await store.get_artist_by_external_id("1001")
        assert artist is not None
        assert artist.content_hash == "h1"
        assert artist.popularity == 72
        assert artist.genres == ["Techno"]
        assert artist.enrichment_data == {"followers": 10}
        assert artist.enriched_at is not None

    @pytest.mark.asyncio
    async def test_enrichment_unknown_artist(self, store: SQLiteSyncStore) -> None:
        with pytest.raises(StoreError):
            await store.apply_enrichment("404", popularity=1)


# ======================================================================
# Events
# ======================================================================


class TestEvents:
    @pytest.mark.asyncio
    async def test_insert_round_trips_json_and_flags(self, store: SQLiteSyncStore) -> None:
        event = await store.insert_event(_event_fields(sold_out=True, is_nighttime=True), "h", "run-1")

        assert event.genres == ["Techno"]
        assert event.sold_out is True
        assert event.is_nighttime is True
        assert event.lineup_parsed is False

    @pytest.mark.asyncio
    async def test_update_event(self, store: SQLiteSyncStore) -> None:
        await store.insert_event(_event_fields(), "h1", "run-1")
        updated = await store.update_event("501", _event_fields(venue_name="Paradiso"), "h2", "run-2")
        assert updated.venue_name == "Paradiso"
        assert updated.updated_by_run == "run-2"

    @pytest.mark.asyncio
    async def test_find_events_with_url_venue_filter(self, store: SQLiteSyncStore) -> None:
        await store.insert_event(_event_fields("1", venue_name="Gashouder"), "h", "run-1")
        await store.insert_event(_event_fields("2", venue_name="Paradiso"), "h", "run-1")
        await store.insert_event(_event_fields("3", venue_name="Gashouder", url=None), "h", "run-1")

        found = await store.find_events_with_url(venue_filter="gashOUD")
        assert [e.external_id for e in found] == ["1"]

    @pytest.mark.asyncio
    async def test_find_events_with_url_by_id_and_limit(self, store: SQLiteSyncStore) -> None:
        first = await store.insert_event(_event_fields("1"), "h", "run-1")
        await store.insert_event(_event_fields("2"), "h", "run-1")

        assert [e.id for e in await store.find_events_with_url(event_id=first.id)] == [first.id]
        assert len(await store.find_events_with_url(limit=1)) == 1

    @pytest.mark.asyncio
    async def test_events_touched_by_run(self, store: SQLiteSyncStore) -> None:
        old = await store.insert_event(_event_fields("1"), "h", "run-old")
        await store.mark_lineup_parsed(old.id, [], {}, "")
        await store.insert_event(_event_fields("2"), "h", "run-new")
        await store.insert_event(_event_fields("3", url=None), "h", "run-new")

        touched = await store.events_touched_by_run("run-new", limit=10)
        assert [e.external_id for e in touched] == ["2"]

    @pytest.mark.asyncio
    async def test_unparsed_events_are_always_touched(self, store: SQLiteSyncStore) -> None:
        await store.insert_event(_event_fields("1"), "h", "run-old")
        touched = await store.events_touched_by_run("run-new", limit=10)
        assert [e.external_id for e in touched] == ["1"]

    @pytest.mark.asyncio
    async def test_mark_lineup_parsed(self, store: SQLiteSyncStore) -> None:
        event = await store.insert_event(_event_fields(), "h", "run-1")
        await store.mark_lineup_parsed(
            event.id, [{"external_id": "1001", "name": "Amelie Lens"}], {"title": "Awakenings"}, "<html>"
        )

        parsed = await store.get_event(event.id)
        assert parsed is not None
        assert parsed.lineup_parsed is True
        assert parsed.parsed_lineup == [{"external_id": "1001", "name": "Amelie Lens"}]
        assert parsed.parsed_metadata == {"title": "Awakenings"}
        assert parsed.parsed_at is not None


# ======================================================================
# Links
# ======================================================================


class TestLinks:
    @pytest.mark.asyncio
    async def test_second_insert_is_noop(self, store: SQLiteSyncStore) -> None:
        artist = await store.insert_artist(_artist_fields(), "h", "run-1")
        event = await store.insert_event(_event_fields(), "h", "run-1")

        first = ArtistEventLink(
            artist_id=artist.id, event_id=event.id, confidence=1.0, source=LinkSource.LINEUP, role="performer"
        )
        second = ArtistEventLink(
            artist_id=artist.id, event_id=event.id, confidence=0.8, source=LinkSource.AUTO_MATCHER
        )

        assert await store.insert_link(first) is True
        assert await store.insert_link(second) is False

        links = await store.links_for_event(event.id)
        assert len(links) == 1
        assert links[0].confidence == 1.0
        assert links[0].source == LinkSource.LINEUP
        assert links[0].created_at is not None

    @pytest.mark.asyncio
    async def test_links_for_artist_and_confidences(self, store: SQLiteSyncStore) -> None:
        artist = await store.insert_artist(_artist_fields(), "h", "run-1")
        e1 = await store.insert_event(_event_fields("1"), "h", "run-1")
        e2 = await store.insert_event(_event_fields("2"), "h", "run-1")
        await store.insert_link(
            ArtistEventLink(artist_id=artist.id, event_id=e1.id, confidence=0.7, source=LinkSource.AUTO_MATCHER)
        )
        await store.insert_link(
            ArtistEventLink(
                artist_id=artist.id,
                event_id=e2.id,
                confidence=1.0,
                source=LinkSource.LINEUP,
                match_details={"parsed_from": "lineup"},
            )
        )

        links = await store.links_for_artist(artist.id)
        assert [link.event_id for link in links] == [e2.id, e1.id]
        assert links[0].match_details == {"parsed_from": "lineup"}
        assert sorted(await store.link_confidences()) == [0.7, 1.0]
        assert await store.get_link(artist.id, e1.id) is not None
        assert await store.get_link(artist.id, 999) is None


# ======================================================================
# Runs & logs
# ======================================================================


class TestRuns:
    @pytest.mark.asyncio
    async def test_update_running_run(self, store: SQLiteSyncStore) -> None:
        await store.create_run(_run())
        await store.update_run("run-1", items_created=3, progress_percent=40)

        run = await store.get_run("run-1")
        assert run is not None
        assert run.items_created == 3
        assert run.progress_percent == 40
        assert run.status == RunStatus.RUNNING

    @pytest.mark.asyncio
    async def test_completed_run_is_immutable(self, store: SQLiteSyncStore) -> None:
        await store.create_run(_run())
        await store.update_run("run-1", status=RunStatus.SUCCESS, completed_at="2025-10-22T00:00:00+00:00")

        with pytest.raises(RunStateError):
            await store.update_run("run-1", items_created=99)

        run = await store.get_run("run-1")
        assert run is not None
        assert run.items_created == 0
        assert run.status == RunStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_unknown_run_raises(self, store: SQLiteSyncStore) -> None:
        with pytest.raises(RunStateError):
            await store.update_run("nope", items_created=1)

    @pytest.mark.asyncio
    async def test_non_mutable_column_rejected(self, store: SQLiteSyncStore) -> None:
        await store.create_run(_run())
        with pytest.raises(StoreError, match="not a mutable run column"):
            await store.update_run("run-1", sync_type="events", items_created=5)

        run = await store.get_run("run-1")
        assert run is not None
        assert run.sync_type == SyncType.BOTH
        assert run.items_created == 0

    @pytest.mark.asyncio
    async def test_list_runs_newest_first(self, store: SQLiteSyncStore) -> None:
        await store.create_run(_run("a", "2025-10-20T00:00:00+00:00"))
        await store.create_run(_run("b", "2025-10-21T00:00:00+00:00"))
        await store.create_run(_run("c", "2025-10-19T00:00:00+00:00"))

        assert [r.run_id for r in await store.list_runs()] == ["b", "a", "c"]
        assert [r.run_id for r in await store.list_runs(limit=1)] == ["b"]

    @pytest.mark.asyncio
    async def test_change_and_progress_logs(self, store: SQLiteSyncStore) -> None:
        await store.append_change_log(
            ChangeLogEntry(
                run_id="run-1",
                entity_type=EntityType.ARTIST,
                external_id="1001",
                change_type=ChangeType.UPDATED,
                old_content_hash="h1",
                new_content_hash="h2",
                changed_fields=["subtitle"],
                old_data={"subtitle": None},
                new_data={"subtitle": "Lenske"},
            )
        )
        await store.append_progress_log(
            ProgressLogEntry(run_id="run-1", log_level=LogLevel.WARNING, message="Skipped", details={"id": 1})
        )

        [change] = await store.change_logs("run-1")
        assert change.changed_fields == ["subtitle"]
        assert change.old_data == {"subtitle": None}
        assert change.created_at is not None

        [line] = await store.progress_logs("run-1")
        assert line.log_level == LogLevel.WARNING
        assert line.details == {"id": 1}
        assert await store.change_logs("run-2") == []
