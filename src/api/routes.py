"""FastAPI API routes for the adeSync service.

Provides REST endpoints for session-scoped lineup parsing and text
matching, link lookups and statistics, background sync runs, run history
and a health check.  Service dependencies are resolved from ``app.state``
via FastAPI's ``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                              Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/lineups/parse                 POST    Start lineup-parse batch
# /api/v1/lineups/parse?sessionId=      GET     Poll batch progress
# /api/v1/lineups/parse?sessionId=      DELETE  Cancel batch
# /api/v1/links/match                   POST    Start text-match batch
# /api/v1/links/progress?sessionId=     GET     Poll text-match progress
# /api/v1/links/stats                   GET     Link confidence tiers
# /api/v1/artists/{id}/events           GET     Events linked to an artist
# /api/v1/events/{id}/artists           GET     Artists linked to an event
# /api/v1/sync                          POST    Start a sync run (background)
# /api/v1/runs                          GET     Recent runs
# /api/v1/runs/{run_id}                 GET     One run
# /api/v1/runs/{run_id}/logs            GET     Progress log of one run
# /api/v1/health                        GET     Health check
#
# Batches are validated synchronously (400/404/500 come back on the
# POST) and then run as BackgroundTasks; later failures are only
# visible through the progress endpoints.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request

from src.api.schemas import (
    BatchStartedResponse,
    CancelResponse,
    ErrorResponse,
    HealthResponse,
    LinkedArtistResponse,
    LinkedEventResponse,
    LinkStatsResponse,
    MatchLinksRequest,
    ParseLineupsRequest,
    RunLogResponse,
    RunResponse,
    StartSyncRequest,
    StartSyncResponse,
)
from src.config.settings import Settings
from src.interfaces.sync_store import ISyncStore
from src.models.entities import ArtistRecord, EventRecord
from src.models.progress import BatchProgress
from src.models.run import SyncType
from src.pipeline.orchestrator import SyncOrchestrator
from src.pipeline.progress_tracker import ProgressTracker
from src.pipeline.run_ledger import RunLedger
from src.services.batch_service import BatchService
from src.utils.confidence import summarize_confidences
from src.utils.errors import NoEventsFoundError, StoreError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency injection helpers -- resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_store(request: Request) -> ISyncStore:
    return request.app.state.store


def _get_batch_service(request: Request) -> BatchService:
    return request.app.state.batch_service


def _get_progress_tracker(request: Request) -> ProgressTracker:
    return request.app.state.progress_tracker


def _get_orchestrator(request: Request) -> SyncOrchestrator:
    return request.app.state.orchestrator


def _get_ledger(request: Request) -> RunLedger:
    return request.app.state.ledger


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


StoreDep = Annotated[ISyncStore, Depends(_get_store)]
BatchDep = Annotated[BatchService, Depends(_get_batch_service)]
TrackerDep = Annotated[ProgressTracker, Depends(_get_progress_tracker)]
OrchestratorDep = Annotated[SyncOrchestrator, Depends(_get_orchestrator)]
LedgerDep = Annotated[RunLedger, Depends(_get_ledger)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]

SessionIdQuery = Annotated[str | None, Query(alias="sessionId")]


def _require_session_id(session_id: str | None) -> str:
    if not session_id:
        raise HTTPException(status_code=400, detail="Session ID is required")
    return session_id


async def _require_progress(tracker: ProgressTracker, session_id: str | None) -> BatchProgress:
    snapshot = await tracker.get_status(_require_session_id(session_id))
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return snapshot


# ---------------------------------------------------------------------------
# Background task helpers
# ---------------------------------------------------------------------------


async def _run_lineup_batch(batch: BatchService, session_id: str, events: list[EventRecord]) -> None:
    try:
        await batch.run_lineup_batch(session_id, events)
    except Exception as exc:
        _logger.error("background_lineup_batch_failed", session_id=session_id, error=str(exc))


async def _run_text_match(batch: BatchService, session_id: str, artists: list[ArtistRecord]) -> None:
    try:
        await batch.run_text_match(session_id, artists)
    except Exception as exc:
        _logger.error("background_text_match_failed", session_id=session_id, error=str(exc))


async def _run_sync(
    orchestrator: SyncOrchestrator, sync_type: SyncType, from_date: str | None, to_date: str | None
) -> None:
    try:
        run = await orchestrator.run_full_sync(from_date, to_date, sync_type)
        _logger.info("background_sync_finished", run_id=run.run_id, status=run.status.value)
    except Exception as exc:
        _logger.error("background_sync_failed", sync_type=sync_type.value, error=str(exc))


# ---------------------------------------------------------------------------
# Lineup parsing
# ---------------------------------------------------------------------------


@router.post(
    "/lineups/parse",
    response_model=BatchStartedResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Parse event detail pages and link their lineups",
)
async def start_lineup_parse(
    body: ParseLineupsRequest,
    background_tasks: BackgroundTasks,
    batch: BatchDep,
) -> BatchStartedResponse:
    session_id = _require_session_id(body.session_id)

    try:
        events = await batch.prepare_lineup_batch(
            session_id,
            event_id=body.event_id,
            venue_filter=body.venue_filter,
            limit=body.limit,
        )
    except NoEventsFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    except StoreError as exc:
        _logger.error("lineup_event_query_failed", session_id=session_id, error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to fetch events") from exc

    background_tasks.add_task(_run_lineup_batch, batch, session_id, events)

    return BatchStartedResponse(
        success=True,
        session_id=session_id,
        events_found=len(events),
        message=f"Started parsing {len(events)} events",
    )


@router.get(
    "/lineups/parse",
    response_model=BatchProgress,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Poll lineup-parse progress",
)
async def get_lineup_parse_progress(tracker: TrackerDep, session_id: SessionIdQuery = None) -> BatchProgress:
    return await _require_progress(tracker, session_id)


@router.delete(
    "/lineups/parse",
    response_model=CancelResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Cancel a running lineup-parse batch",
)
async def cancel_lineup_parse(batch: BatchDep, session_id: SessionIdQuery = None) -> CancelResponse:
    session_id = _require_session_id(session_id)
    if not batch.cancel(session_id):
        raise HTTPException(status_code=404, detail="No running batch for session")
    return CancelResponse(success=True, session_id=session_id, message="Cancellation requested")


# ---------------------------------------------------------------------------
# Text matching & links
# ---------------------------------------------------------------------------


@router.post(
    "/links/match",
    response_model=BatchStartedResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Match artist names against event titles and subtitles",
)
async def start_text_match(
    body: MatchLinksRequest,
    background_tasks: BackgroundTasks,
    batch: BatchDep,
) -> BatchStartedResponse:
    session_id = _require_session_id(body.session_id)

    try:
        artists = await batch.prepare_text_match(session_id, artist_id=body.artist_id)
    except NoEventsFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    except StoreError as exc:
        _logger.error("text_match_query_failed", session_id=session_id, error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to fetch artists") from exc

    background_tasks.add_task(_run_text_match, batch, session_id, artists)

    return BatchStartedResponse(
        success=True,
        session_id=session_id,
        artists_found=len(artists),
        message=f"Started matching {len(artists)} artists",
    )


@router.get(
    "/links/progress",
    response_model=BatchProgress,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Poll text-match progress",
)
async def get_text_match_progress(tracker: TrackerDep, session_id: SessionIdQuery = None) -> BatchProgress:
    return await _require_progress(tracker, session_id)


@router.get("/links/stats", response_model=LinkStatsResponse, summary="Link confidence statistics")
async def get_link_stats(store: StoreDep, settings: SettingsDep) -> LinkStatsResponse:
    summary = summarize_confidences(
        await store.link_confidences(), high=settings.high_confidence_threshold
    )
    return LinkStatsResponse(
        total_links=int(summary["total"]),
        high_confidence=int(summary["high"]),
        medium_confidence=int(summary["medium"]),
        low_confidence=int(summary["low"]),
        average_confidence=round(float(summary["average"]), 3),
    )


@router.get(
    "/artists/{artist_id}/events",
    response_model=list[LinkedEventResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Events linked to an artist",
)
async def get_artist_events(artist_id: int, store: StoreDep) -> list[LinkedEventResponse]:
    if await store.get_artist(artist_id) is None:
        raise HTTPException(status_code=404, detail=f"Artist not found: {artist_id}")

    results: list[LinkedEventResponse] = []
    for link in await store.links_for_artist(artist_id):
        event = await store.get_event(link.event_id)
        if event is None:
            continue
        results.append(
            LinkedEventResponse(
                event_id=event.id,
                title=event.title,
                start_date=event.start_date,
                venue_name=event.venue_name,
                confidence=link.confidence,
                source=link.source.value,
                role=link.role,
            )
        )
    return results


@router.get(
    "/events/{event_id}/artists",
    response_model=list[LinkedArtistResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Artists linked to an event",
)
async def get_event_artists(event_id: int, store: StoreDep) -> list[LinkedArtistResponse]:
    if await store.get_event(event_id) is None:
        raise HTTPException(status_code=404, detail=f"Event not found: {event_id}")

    results: list[LinkedArtistResponse] = []
    for link in await store.links_for_event(event_id):
        artist = await store.get_artist(link.artist_id)
        if artist is None:
            continue
        results.append(
            LinkedArtistResponse(
                artist_id=artist.id,
                title=artist.title,
                is_stub=artist.is_stub,
                confidence=link.confidence,
                source=link.source.value,
                role=link.role,
            )
        )
    return results


# ---------------------------------------------------------------------------
# Sync runs
# ---------------------------------------------------------------------------


@router.post("/sync", response_model=StartSyncResponse, summary="Start a sync run")
async def start_sync(
    body: StartSyncRequest,
    background_tasks: BackgroundTasks,
    orchestrator: OrchestratorDep,
) -> StartSyncResponse:
    background_tasks.add_task(_run_sync, orchestrator, body.sync_type, body.from_date, body.to_date)
    return StartSyncResponse(success=True, message=f"Started {body.sync_type.value} sync")


@router.get("/runs", response_model=list[RunResponse], summary="Recent sync runs")
async def list_runs(ledger: LedgerDep, limit: Annotated[int, Query(ge=1, le=100)] = 20) -> list[RunResponse]:
    runs = await ledger.recent_runs(limit=limit)
    return [RunResponse.model_validate(run.model_dump(mode="json")) for run in runs]


@router.get(
    "/runs/{run_id}",
    response_model=RunResponse,
    responses={404: {"model": ErrorResponse}},
    summary="One sync run",
)
async def get_run(run_id: str, ledger: LedgerDep) -> RunResponse:
    run = await ledger.get_run(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    return RunResponse.model_validate(run.model_dump(mode="json"))


@router.get(
    "/runs/{run_id}/logs",
    response_model=list[RunLogResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Progress log of one run",
)
async def get_run_logs(run_id: str, ledger: LedgerDep) -> list[RunLogResponse]:
    if await ledger.get_run(run_id) is None:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    return [
        RunLogResponse.model_validate(entry.model_dump(mode="json"))
        for entry in await ledger.run_logs(run_id)
    ]


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    store = getattr(request.app.state, "store", None)
    if store is not None:
        try:
            await store.list_runs(limit=1)
            providers["store"] = True
        except StoreError:
            providers["store"] = False

    return HealthResponse(
        status="healthy" if providers.get("store", False) else "unhealthy",
        version=_VERSION,
        providers=providers,
    )
