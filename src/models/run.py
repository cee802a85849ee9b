"""Run ledger models: one ``ScrapeRun`` per pipeline execution plus the
append-only change-log and progress-log streams tied to it.

State machine::

    RUNNING ──► SUCCESS   (no per-item errors)
            ├─► PARTIAL   (finished, error_count > 0)
            └─► ERROR     (an exception escaped the run)

A run is mutable only while RUNNING; the store refuses updates afterwards.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.entities import EntityType, decode_json_column


class RunStatus(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    PARTIAL = "partial"


class SyncType(str, Enum):  # noqa: UP042
    """What a run covers."""

    ARTISTS = "artists"
    EVENTS = "events"
    LINKING = "linking"
    BOTH = "both"  # artists, then events, then lineup linking


class ChangeType(str, Enum):  # noqa: UP042
    """Outcome of the content-hash comparison for one incoming record.

    Only CREATED and UPDATED are ever written to the change log.
    """

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class LogLevel(str, Enum):  # noqa: UP042
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ScrapeRun(BaseModel):
    """One pipeline execution as recorded in ``scrape_runs``."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    sync_type: SyncType
    status: RunStatus
    started_at: str
    completed_at: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    artists_pages: int = 0
    events_pages: int = 0
    total_items_processed: int = 0
    items_created: int = 0
    items_updated: int = 0
    items_unchanged: int = 0
    event_details_fetched: int = 0
    links_added: int = 0
    high_confidence_links: int = 0
    stubs_created: int = 0
    error_count: int = 0
    progress_percent: int = 0
    error_message: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status != RunStatus.RUNNING


class ChangeLogEntry(BaseModel):
    """Append-only audit record of one create/update decision."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    run_id: str
    entity_type: EntityType
    external_id: str
    change_type: ChangeType
    old_content_hash: str | None = None
    new_content_hash: str
    changed_fields: list[str] = Field(default_factory=list)
    old_data: dict[str, Any] | None = None
    new_data: dict[str, Any] = Field(default_factory=dict)
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: Any) -> ChangeLogEntry:
        data = dict(row)
        data["changed_fields"] = decode_json_column(data.get("changed_fields"), [])
        data["old_data"] = decode_json_column(data.get("old_data"), None)
        data["new_data"] = decode_json_column(data.get("new_data"), {})
        return cls.model_validate(data)


class ProgressLogEntry(BaseModel):
    """Append-only, human-readable log line tied to a run."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    run_id: str
    log_level: LogLevel
    message: str
    details: dict[str, Any] | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: Any) -> ProgressLogEntry:
        data = dict(row)
        data["details"] = decode_json_column(data.get("details"), None)
        return cls.model_validate(data)
