"""Integration tests for FastAPI API endpoints using TestClient."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.middleware import ErrorHandlingMiddleware
from src.api.routes import router as api_router
from src.config.settings import Settings
from src.models.entities import ArtistEventLink, ArtistRecord, EventRecord, LinkSource
from src.models.progress import BatchProgress
from src.models.run import LogLevel, ProgressLogEntry, RunStatus, ScrapeRun, SyncType
from src.utils.errors import NoEventsFoundError, StoreError

NOW = "2025-10-20T10:00:00+00:00"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _event(event_id: int = 1) -> EventRecord:
    return EventRecord(
        id=event_id,
        external_id="501",
        title="Awakenings ADE",
        url="https://www.amsterdam-dance-event.nl/en/program/2025/awakenings-ade/501/",
        start_date="2025-10-22T21:00:00+00:00",
        end_date="2025-10-23T04:00:00+00:00",
        venue_name="Gashouder",
        content_hash="0" * 64,
        first_seen_at=NOW,
        last_updated_at=NOW,
    )


def _artist(artist_id: int = 7, is_stub: bool = False) -> ArtistRecord:
    return ArtistRecord(
        id=artist_id,
        external_id="1001",
        title="Amelie Lens",
        is_stub=is_stub,
        first_seen_at=NOW,
        last_updated_at=NOW,
    )


def _run(run_id: str = "run-1") -> ScrapeRun:
    return ScrapeRun(
        run_id=run_id,
        sync_type=SyncType.BOTH,
        status=RunStatus.PARTIAL,
        started_at=NOW,
        completed_at=NOW,
        items_created=3,
        error_count=1,
        progress_percent=100,
        error_message="1 item(s) failed",
    )


def _create_test_app() -> tuple[FastAPI, dict[str, MagicMock]]:
    """Create a FastAPI app whose app.state holds mocked services."""
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.include_router(api_router)

    batch = MagicMock()
    batch.prepare_lineup_batch = AsyncMock(return_value=[_event(1), _event(2)])
    batch.run_lineup_batch = AsyncMock(return_value=BatchProgress(completed=True))
    batch.prepare_text_match = AsyncMock(return_value=[_artist()])
    batch.run_text_match = AsyncMock(return_value=BatchProgress(completed=True))
    batch.cancel = MagicMock(return_value=True)

    tracker = MagicMock()
    tracker.get_status = AsyncMock(return_value=None)

    store = MagicMock()
    store.list_runs = AsyncMock(return_value=[])
    store.link_confidences = AsyncMock(return_value=[1.0, 0.95, 0.85, 0.6])
    store.get_artist = AsyncMock(return_value=_artist())
    store.get_event = AsyncMock(return_value=_event())
    store.links_for_artist = AsyncMock(return_value=[])
    store.links_for_event = AsyncMock(return_value=[])

    ledger = MagicMock()
    ledger.recent_runs = AsyncMock(return_value=[_run()])
    ledger.get_run = AsyncMock(return_value=_run())
    ledger.run_logs = AsyncMock(
        return_value=[ProgressLogEntry(run_id="run-1", log_level=LogLevel.INFO, message="Started both sync")]
    )

    orchestrator = MagicMock()
    orchestrator.run_full_sync = AsyncMock(return_value=_run())

    app.state.batch_service = batch
    app.state.progress_tracker = tracker
    app.state.store = store
    app.state.ledger = ledger
    app.state.orchestrator = orchestrator
    app.state.settings = Settings()
    app.state.provider_registry = {"listing": "AdeListingProvider", "store_backend": "sqlite"}

    return app, {
        "batch": batch,
        "tracker": tracker,
        "store": store,
        "ledger": ledger,
        "orchestrator": orchestrator,
    }


@pytest.fixture()
def api() -> tuple[TestClient, dict[str, MagicMock]]:
    app, mocks = _create_test_app()
    return TestClient(app), mocks


# ======================================================================
# Lineup parsing
# ======================================================================


class TestLineupParse:
    def test_missing_session_id_is_400(self, api) -> None:
        client, _ = api
        response = client.post("/api/v1/lineups/parse", json={})
        assert response.status_code == 400
        assert response.json()["detail"] == "Session ID is required"

    def test_no_events_is_404(self, api) -> None:
        client, mocks = api
        mocks["batch"].prepare_lineup_batch.side_effect = NoEventsFoundError(
            "No events found matching criteria", provider_name="batch"
        )

        response = client.post("/api/v1/lineups/parse", json={"sessionId": "s1", "venueFilter": "x"})

        assert response.status_code == 404
        assert response.json()["detail"] == "No events found matching criteria"

    def test_store_failure_is_500(self, api) -> None:
        client, mocks = api
        mocks["batch"].prepare_lineup_batch.side_effect = StoreError("disk I/O error", provider_name="sqlite")

        response = client.post("/api/v1/lineups/parse", json={"sessionId": "s1"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to fetch events"

    def test_starts_batch_in_background(self, api) -> None:
        client, mocks = api

        response = client.post(
            "/api/v1/lineups/parse", json={"sessionId": "s1", "venueFilter": "gashouder", "limit": 5}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["sessionId"] == "s1"
        assert body["eventsFound"] == 2
        assert body["message"] == "Started parsing 2 events"
        mocks["batch"].prepare_lineup_batch.assert_awaited_once_with(
            "s1", event_id=None, venue_filter="gashouder", limit=5
        )
        mocks["batch"].run_lineup_batch.assert_awaited_once()

    def test_limit_validation(self, api) -> None:
        client, _ = api
        response = client.post("/api/v1/lineups/parse", json={"sessionId": "s1", "limit": 0})
        assert response.status_code == 422

    def test_progress_requires_session_id(self, api) -> None:
        client, _ = api
        assert client.get("/api/v1/lineups/parse").status_code == 400

    def test_progress_unknown_session_is_404(self, api) -> None:
        client, _ = api
        response = client.get("/api/v1/lineups/parse", params={"sessionId": "nope"})
        assert response.status_code == 404
        assert response.json()["detail"] == "Session not found"

    def test_progress_is_camel_case(self, api) -> None:
        client, mocks = api
        mocks["tracker"].get_status.return_value = BatchProgress(
            progress_percent=50, message="Parsed 1/2: Awakenings ADE", events_total=2, events_parsed=1
        )

        response = client.get("/api/v1/lineups/parse", params={"sessionId": "s1"})

        assert response.status_code == 200
        body = response.json()
        assert body["progressPercent"] == 50
        assert body["eventsParsed"] == 1
        assert body["completed"] is False

    def test_cancel(self, api) -> None:
        client, mocks = api
        assert client.delete("/api/v1/lineups/parse", params={"sessionId": "s1"}).status_code == 200

        mocks["batch"].cancel.return_value = False
        assert client.delete("/api/v1/lineups/parse", params={"sessionId": "s1"}).status_code == 404


# ======================================================================
# Text matching & links
# ======================================================================


class TestLinks:
    def test_start_text_match(self, api) -> None:
        client, mocks = api

        response = client.post("/api/v1/links/match", json={"sessionId": "s2", "artistId": 7})

        assert response.status_code == 200
        assert response.json()["artistsFound"] == 1
        mocks["batch"].prepare_text_match.assert_awaited_once_with("s2", artist_id=7)
        mocks["batch"].run_text_match.assert_awaited_once()

    def test_stats(self, api) -> None:
        client, _ = api

        body = client.get("/api/v1/links/stats").json()

        assert body == {
            "totalLinks": 4,
            "highConfidence": 2,
            "mediumConfidence": 1,
            "lowConfidence": 1,
            "averageConfidence": 0.85,
        }

    def test_artist_events(self, api) -> None:
        client, mocks = api
        mocks["store"].links_for_artist.return_value = [
            ArtistEventLink(artist_id=7, event_id=1, confidence=1.0, source=LinkSource.LINEUP, role="performer")
        ]

        [row] = client.get("/api/v1/artists/7/events").json()

        assert row["eventId"] == 1
        assert row["venueName"] == "Gashouder"
        assert row["source"] == "lineup"

    def test_unknown_artist_is_404(self, api) -> None:
        client, mocks = api
        mocks["store"].get_artist.return_value = None
        assert client.get("/api/v1/artists/99/events").status_code == 404

    def test_event_artists(self, api) -> None:
        client, mocks = api
        mocks["store"].get_artist.return_value = _artist(is_stub=True)
        mocks["store"].links_for_event.return_value = [
            ArtistEventLink(artist_id=7, event_id=1, confidence=0.85, source=LinkSource.AUTO_MATCHER)
        ]

        [row] = client.get("/api/v1/events/1/artists").json()

        assert row["artistId"] == 7
        assert row["isStub"] is True
        assert row["confidence"] == 0.85


# ======================================================================
# Sync runs & health
# ======================================================================


class TestRuns:
    def test_start_sync(self, api) -> None:
        client, mocks = api

        response = client.post("/api/v1/sync", json={"syncType": "events", "fromDate": "2025-10-22"})

        assert response.status_code == 200
        assert response.json()["message"] == "Started events sync"
        mocks["orchestrator"].run_full_sync.assert_awaited_once_with("2025-10-22", None, SyncType.EVENTS)

    def test_start_sync_rejects_bad_date(self, api) -> None:
        client, _ = api
        assert client.post("/api/v1/sync", json={"fromDate": "22/10/2025"}).status_code == 422

    def test_list_runs(self, api) -> None:
        client, _ = api

        [run] = client.get("/api/v1/runs").json()

        assert run["runId"] == "run-1"
        assert run["status"] == "partial"
        assert run["errorMessage"] == "1 item(s) failed"

    def test_run_logs(self, api) -> None:
        client, _ = api
        [line] = client.get("/api/v1/runs/run-1/logs").json()
        assert line["logLevel"] == "info"
        assert line["message"] == "Started both sync"

    def test_unknown_run_is_404(self, api) -> None:
        client, mocks = api
        mocks["ledger"].get_run.return_value = None
        assert client.get("/api/v1/runs/nope").status_code == 404
        assert client.get("/api/v1/runs/nope/logs").status_code == 404


class TestHealth:
    def test_healthy(self, api) -> None:
        client, _ = api
        body = client.get("/api/v1/health").json()
        assert body["status"] == "healthy"
        assert body["providers"]["store"] is True
        assert body["providers"]["listing"] == "AdeListingProvider"

    def test_unhealthy_when_store_fails(self, api) -> None:
        client, mocks = api
        mocks["store"].list_runs.side_effect = StoreError("unable to open database file")
        assert client.get("/api/v1/health").json()["status"] == "unhealthy"
