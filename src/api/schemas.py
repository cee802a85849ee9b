"""Pydantic request/response schemas for the adeSync API.

Defines the public contract for the lineup-parse, text-match, link, run
history and health endpoints.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# Every schema serializes with camelCase keys (``sessionId``,
# ``eventsFound``) because that is what the dashboard frontend sends
# and expects.  ``populate_by_name`` lets Python code construct them
# with snake_case names.
#
# Convention: Request schemas end with "Request", response schemas
# end with "Response".
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.models.run import SyncType


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Lineup parsing
# ---------------------------------------------------------------------------


class ParseLineupsRequest(_CamelModel):
    """Start a lineup-parse batch for a session."""

    session_id: str | None = Field(default=None, description="Client-chosen id used for polling.")
    event_id: int | None = Field(default=None, description="Parse just this event.")
    venue_filter: str | None = Field(
        default=None, description="Case-insensitive substring of the venue name."
    )
    limit: int = Field(default=10, ge=1, le=500)


class BatchStartedResponse(_CamelModel):
    """Returned as soon as a batch has been queued."""

    success: bool
    session_id: str
    events_found: int | None = None
    artists_found: int | None = None
    message: str


class CancelResponse(_CamelModel):
    success: bool
    session_id: str
    message: str


# ---------------------------------------------------------------------------
# Text matching & links
# ---------------------------------------------------------------------------


class MatchLinksRequest(_CamelModel):
    """Start a free-text matching batch, optionally for one artist."""

    session_id: str | None = None
    artist_id: int | None = None


class LinkStatsResponse(_CamelModel):
    """Aggregate confidence tiers of every stored link."""

    total_links: int
    high_confidence: int
    medium_confidence: int
    low_confidence: int
    average_confidence: float


class LinkedEventResponse(_CamelModel):
    event_id: int
    title: str
    start_date: str
    venue_name: str | None = None
    confidence: float
    source: str
    role: str | None = None


class LinkedArtistResponse(_CamelModel):
    artist_id: int
    title: str
    is_stub: bool
    confidence: float
    source: str
    role: str | None = None


# ---------------------------------------------------------------------------
# Sync runs
# ---------------------------------------------------------------------------


class StartSyncRequest(_CamelModel):
    """Kick off a full or partial sync in the background."""

    sync_type: SyncType = SyncType.BOTH
    from_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    to_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")


class StartSyncResponse(_CamelModel):
    success: bool
    message: str


class RunResponse(_CamelModel):
    """One row of run history."""

    run_id: str
    sync_type: str
    status: str
    started_at: str
    completed_at: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    artists_pages: int
    events_pages: int
    total_items_processed: int
    items_created: int
    items_updated: int
    items_unchanged: int
    event_details_fetched: int
    links_added: int
    high_confidence_links: int
    stubs_created: int
    error_count: int
    progress_percent: int
    error_message: str | None = None


class RunLogResponse(_CamelModel):
    log_level: str
    message: str
    details: dict[str, Any] | None = None
    created_at: str | None = None


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
