"""SQLite-backed sync store.

Persists artists, events, artist-event links, the append-only change and
progress logs, and the run ledger to a local SQLite database at
``data/ade_sync.db``.  Uses ``aiosqlite`` for async I/O with one short-lived
connection per operation.

Invariants enforced by the schema rather than by callers:
    - ``external_id`` is UNIQUE on artists and events.
    - ``(artist_id, event_id)`` is UNIQUE on links; inserts use
      ``ON CONFLICT DO NOTHING`` so a rediscovered pair is a no-op.
    - ``update_run`` only touches rows whose status is still ``running``.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.sync_store import ISyncStore
from src.models.entities import ArtistEventLink, ArtistRecord, EventRecord
from src.models.listing import ArtistFields, EventFields
from src.models.run import ChangeLogEntry, ProgressLogEntry, RunStatus, ScrapeRun
from src.utils.errors import RunStateError, StoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/ade_sync.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS artists (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    external_id      TEXT    NOT NULL UNIQUE,
    handle           TEXT,
    title            TEXT    NOT NULL,
    subtitle         TEXT,
    url              TEXT,
    country_label    TEXT,
    country_value    TEXT,
    image_title      TEXT,
    image_url        TEXT,
    content_hash     TEXT,
    is_stub          INTEGER NOT NULL DEFAULT 0,
    added_by_run     TEXT,
    updated_by_run   TEXT,
    first_seen_at    TEXT    NOT NULL,
    last_updated_at  TEXT    NOT NULL,
    raw_data         TEXT,
    popularity       INTEGER,
    genres           TEXT,
    enrichment_data  TEXT,
    enriched_at      TEXT
);
""",
    """\
CREATE TABLE IF NOT EXISTS events (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    external_id      TEXT    NOT NULL UNIQUE,
    handle           TEXT,
    title            TEXT    NOT NULL,
    subtitle         TEXT,
    url              TEXT,
    start_date       TEXT    NOT NULL,
    end_date         TEXT    NOT NULL,
    venue_name       TEXT,
    categories       TEXT,
    sold_out         INTEGER NOT NULL DEFAULT 0,
    content_hash     TEXT    NOT NULL,
    genres           TEXT,
    venue_type       TEXT,
    event_format     TEXT,
    is_free          INTEGER NOT NULL DEFAULT 0,
    is_nighttime     INTEGER NOT NULL DEFAULT 0,
    is_daytime       INTEGER NOT NULL DEFAULT 0,
    is_live          INTEGER NOT NULL DEFAULT 0,
    lineup_parsed    INTEGER NOT NULL DEFAULT 0,
    parsed_lineup    TEXT,
    parsed_metadata  TEXT,
    lineup_html      TEXT,
    parsed_at        TEXT,
    added_by_run     TEXT,
    updated_by_run   TEXT,
    first_seen_at    TEXT    NOT NULL,
    last_updated_at  TEXT    NOT NULL,
    raw_data         TEXT
);
""",
    """\
CREATE TABLE IF NOT EXISTS artist_events (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    artist_id      INTEGER NOT NULL REFERENCES artists(id),
    event_id       INTEGER NOT NULL REFERENCES events(id),
    confidence     REAL    NOT NULL CHECK (confidence >= 0 AND confidence <= 1),
    source         TEXT    NOT NULL,
    role           TEXT,
    match_details  TEXT,
    added_by_run   TEXT,
    created_at     TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    UNIQUE(artist_id, event_id)
);
""",
    """\
CREATE TABLE IF NOT EXISTS change_logs (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    run_id            TEXT    NOT NULL,
    entity_type       TEXT    NOT NULL,
    external_id       TEXT    NOT NULL,
    change_type       TEXT    NOT NULL,
    old_content_hash  TEXT,
    new_content_hash  TEXT    NOT NULL,
    changed_fields    TEXT,
    old_data          TEXT,
    new_data          TEXT,
    created_at        TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
""",
    """\
CREATE TABLE IF NOT EXISTS scrape_runs (
    run_id                 TEXT    PRIMARY KEY,
    sync_type              TEXT    NOT NULL,
    status                 TEXT    NOT NULL,
    started_at             TEXT    NOT NULL,
    completed_at           TEXT,
    from_date              TEXT,
    to_date                TEXT,
    artists_pages          INTEGER NOT NULL DEFAULT 0,
    events_pages           INTEGER NOT NULL DEFAULT 0,
    total_items_processed  INTEGER NOT NULL DEFAULT 0,
    items_created          INTEGER NOT NULL DEFAULT 0,
    items_updated          INTEGER NOT NULL DEFAULT 0,
    items_unchanged        INTEGER NOT NULL DEFAULT 0,
    event_details_fetched  INTEGER NOT NULL DEFAULT 0,
    links_added            INTEGER NOT NULL DEFAULT 0,
    high_confidence_links  INTEGER NOT NULL DEFAULT 0,
    stubs_created          INTEGER NOT NULL DEFAULT 0,
    error_count            INTEGER NOT NULL DEFAULT 0,
    progress_percent       INTEGER NOT NULL DEFAULT 0,
    error_message          TEXT
);
""",
    """\
CREATE TABLE IF NOT EXISTS progress_logs (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    run_id      TEXT    NOT NULL,
    log_level   TEXT    NOT NULL,
    message     TEXT    NOT NULL,
    details     TEXT,
    created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_events_venue ON events(venue_name);",
    "CREATE INDEX IF NOT EXISTS idx_events_added_run ON events(added_by_run);",
    "CREATE INDEX IF NOT EXISTS idx_events_updated_run ON events(updated_by_run);",
    "CREATE INDEX IF NOT EXISTS idx_artist_events_event ON artist_events(event_id);",
    "CREATE INDEX IF NOT EXISTS idx_change_logs_run ON change_logs(run_id);",
    "CREATE INDEX IF NOT EXISTS idx_progress_logs_run ON progress_logs(run_id);",
    "CREATE INDEX IF NOT EXISTS idx_scrape_runs_started ON scrape_runs(started_at);",
]

_INSERT_ARTIST_SQL = """\
INSERT INTO artists (
    external_id, handle, title, subtitle, url, country_label, country_value,
    image_title, image_url, content_hash, is_stub, added_by_run,
    first_seen_at, last_updated_at, raw_data
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?, ?, ?);
"""

_UPDATE_ARTIST_SQL = """\
UPDATE artists
SET handle = ?, title = ?, subtitle = ?, url = ?, country_label = ?,
    country_value = ?, image_title = ?, image_url = ?, content_hash = ?,
    is_stub = 0, updated_by_run = ?, last_updated_at = ?, raw_data = ?
WHERE external_id = ?;
"""

_INSERT_STUB_SQL = """\
INSERT INTO artists (
    external_id, title, url, content_hash, is_stub, added_by_run,
    first_seen_at, last_updated_at, raw_data
) VALUES (?, ?, ?, NULL, 1, ?, ?, ?, '{}');
"""

_INSERT_EVENT_SQL = """\
INSERT INTO events (
    external_id, handle, title, subtitle, url, start_date, end_date,
    venue_name, categories, sold_out, content_hash, genres, venue_type,
    event_format, is_free, is_nighttime, is_daytime, is_live,
    added_by_run, first_seen_at, last_updated_at, raw_data
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_UPDATE_EVENT_SQL = """\
UPDATE events
SET handle = ?, title = ?, subtitle = ?, url = ?, start_date = ?, end_date = ?,
    venue_name = ?, categories = ?, sold_out = ?, content_hash = ?, genres = ?,
    venue_type = ?, event_format = ?, is_free = ?, is_nighttime = ?,
    is_daytime = ?, is_live = ?, updated_by_run = ?, last_updated_at = ?,
    raw_data = ?
WHERE external_id = ?;
"""

_INSERT_LINK_SQL = """\
INSERT INTO artist_events (
    artist_id, event_id, confidence, source, role, match_details, added_by_run
) VALUES (?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(artist_id, event_id) DO NOTHING;
"""

_INSERT_RUN_SQL = """\
INSERT INTO scrape_runs (run_id, sync_type, status, started_at, from_date, to_date)
VALUES (?, ?, ?, ?, ?, ?);
"""

_RUN_MUTABLE_COLUMNS = frozenset({
    "status",
    "completed_at",
    "artists_pages",
    "events_pages",
    "total_items_processed",
    "items_created",
    "items_updated",
    "items_unchanged",
    "event_details_fetched",
    "links_added",
    "high_confidence_links",
    "stubs_created",
    "error_count",
    "progress_percent",
    "error_message",
})

_EVENT_ORDER = "ORDER BY start_date ASC, id ASC"


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017


def _dumps(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, default=str)


def _required(record: Any, external_id: str) -> Any:
    if record is None:
        raise StoreError(f"{external_id} not found after write", provider_name="sqlite")
    return record


class SQLiteSyncStore(ISyncStore):
    """SQLite-backed implementation of :class:`ISyncStore`."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection with Row access; wrap driver errors in StoreError."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as exc:
            raise StoreError(str(exc), provider_name=self.get_provider_name()) from exc

    async def initialize(self) -> None:
        """Create all tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("sync_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Artists
    # ------------------------------------------------------------------

    async def _fetch_artist(self, db: aiosqlite.Connection, column: str, value: Any) -> ArtistRecord | None:
        cursor = await db.execute(f"SELECT * FROM artists WHERE {column} = ?", (value,))
        row = await cursor.fetchone()
        return ArtistRecord.from_row(row) if row else None

    async def get_artist_by_external_id(self, external_id: str) -> ArtistRecord | None:
        async with self._connect() as db:
            return await self._fetch_artist(db, "external_id", external_id)

    async def get_artist(self, artist_id: int) -> ArtistRecord | None:
        async with self._connect() as db:
            return await self._fetch_artist(db, "id", artist_id)

    async def insert_artist(
        self, fields: ArtistFields, content_hash: str, run_id: str
    ) -> ArtistRecord:
        now = _now()
        async with self._connect() as db:
            await db.execute(
                _INSERT_ARTIST_SQL,
                (
                    fields.external_id, fields.handle, fields.title, fields.subtitle,
                    fields.url, fields.country_label, fields.country_value,
                    fields.image_title, fields.image_url, content_hash, run_id,
                    now, now, _dumps(fields.raw_data),
                ),
            )
            await db.commit()
            record = await self._fetch_artist(db, "external_id", fields.external_id)
        if record is None:
            raise StoreError(f"artist {fields.external_id} vanished after insert", provider_name=self.get_provider_name())
        return record

    async def update_artist(
        self, external_id: str, fields: ArtistFields, content_hash: str, run_id: str
    ) -> ArtistRecord:
        async with self._connect() as db:
            cursor = await db.execute(
                _UPDATE_ARTIST_SQL,
                (
                    fields.handle, fields.title, fields.subtitle, fields.url,
                    fields.country_label, fields.country_value, fields.image_title,
                    fields.image_url, content_hash, run_id, _now(),
                    _dumps(fields.raw_data), external_id,
                ),
            )
            await db.commit()
            if cursor.rowcount == 0:
                raise StoreError(f"artist {external_id} not found", provider_name=self.get_provider_name())
            record = await self._fetch_artist(db, "external_id", external_id)
        return _required(record, external_id)

    async def insert_stub_artist(
        self, external_id: str, title: str, url: str | None, run_id: str | None
    ) -> ArtistRecord:
        now = _now()
        async with self._connect() as db:
            await db.execute(_INSERT_STUB_SQL, (external_id, title, url, run_id, now, now))
            await db.commit()
            record = await self._fetch_artist(db, "external_id", external_id)
        logger.info("stub_artist_created", external_id=external_id, title=title)
        return _required(record, external_id)

    async def list_artists(self, artist_id: int | None = None) -> list[ArtistRecord]:
        async with self._connect() as db:
            if artist_id is not None:
                cursor = await db.execute("SELECT * FROM artists WHERE id = ?", (artist_id,))
            else:
                cursor = await db.execute("SELECT * FROM artists ORDER BY id ASC")
            rows = await cursor.fetchall()
        return [ArtistRecord.from_row(r) for r in rows]

    async def apply_enrichment(
        self,
        external_id: str,
        popularity: int | None = None,
        genres: list[str] | None = None,
        enrichment_data: dict[str, Any] | None = None,
    ) -> None:
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE artists "
                "SET popularity = COALESCE(?, popularity), "
                "    genres = COALESCE(?, genres), "
                "    enrichment_data = COALESCE(?, enrichment_data), "
                "    enriched_at = ? "
                "WHERE external_id = ?",
                (popularity, _dumps(genres), _dumps(enrichment_data), _now(), external_id),
            )
            await db.commit()
            updated = cursor.rowcount
        if updated == 0:
            raise StoreError(f"artist {external_id} not found", provider_name=self.get_provider_name())
        logger.info("artist_enriched", external_id=external_id)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def _fetch_event(self, db: aiosqlite.Connection, column: str, value: Any) -> EventRecord | None:
        cursor = await db.execute(f"SELECT * FROM events WHERE {column} = ?", (value,))
        row = await cursor.fetchone()
        return EventRecord.from_row(row) if row else None

    async def get_event_by_external_id(self, external_id: str) -> EventRecord | None:
        async with self._connect() as db:
            return await self._fetch_event(db, "external_id", external_id)

    async def get_event(self, event_id: int) -> EventRecord | None:
        async with self._connect() as db:
            return await self._fetch_event(db, "id", event_id)

    @staticmethod
    def _event_values(fields: EventFields, content_hash: str) -> tuple[Any, ...]:
        return (
            fields.handle, fields.title, fields.subtitle, fields.url,
            fields.start_date, fields.end_date, fields.venue_name, fields.categories,
            int(fields.sold_out), content_hash, _dumps(fields.genres),
            fields.venue_type, fields.event_format, int(fields.is_free),
            int(fields.is_nighttime), int(fields.is_daytime), int(fields.is_live),
        )

    async def insert_event(
        self, fields: EventFields, content_hash: str, run_id: str
    ) -> EventRecord:
        now = _now()
        async with self._connect() as db:
            await db.execute(
                _INSERT_EVENT_SQL,
                (
                    fields.external_id,
                    *self._event_values(fields, content_hash),
                    run_id, now, now, _dumps(fields.raw_data),
                ),
            )
            await db.commit()
            record = await self._fetch_event(db, "external_id", fields.external_id)
        if record is None:
            raise StoreError(f"event {fields.external_id} vanished after insert", provider_name=self.get_provider_name())
        return record

    async def update_event(
        self, external_id: str, fields: EventFields, content_hash: str, run_id: str
    ) -> EventRecord:
        async with self._connect() as db:
            cursor = await db.execute(
                _UPDATE_EVENT_SQL,
                (
                    *self._event_values(fields, content_hash),
                    run_id, _now(), _dumps(fields.raw_data), external_id,
                ),
            )
            await db.commit()
            if cursor.rowcount == 0:
                raise StoreError(f"event {external_id} not found", provider_name=self.get_provider_name())
            record = await self._fetch_event(db, "external_id", external_id)
        return _required(record, external_id)

    async def list_events(self) -> list[EventRecord]:
        async with self._connect() as db:
            cursor = await db.execute(f"SELECT * FROM events {_EVENT_ORDER}")
            rows = await cursor.fetchall()
        return [EventRecord.from_row(r) for r in rows]

    async def events_touched_by_run(self, run_id: str, limit: int) -> list[EventRecord]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM events "
                "WHERE url IS NOT NULL AND url != '' "
                "  AND (added_by_run = ? OR updated_by_run = ? OR lineup_parsed = 0) "
                f"{_EVENT_ORDER} LIMIT ?",
                (run_id, run_id, limit),
            )
            rows = await cursor.fetchall()
        return [EventRecord.from_row(r) for r in rows]

    async def find_events_with_url(
        self,
        event_id: int | None = None,
        venue_filter: str | None = None,
        limit: int = 10,
    ) -> list[EventRecord]:
        clauses = ["url IS NOT NULL", "url != ''"]
        params: list[Any] = []
        if event_id is not None:
            clauses.append("id = ?")
            params.append(event_id)
        elif venue_filter:
            clauses.append("venue_name LIKE ? COLLATE NOCASE")
            params.append(f"%{venue_filter}%")
        params.append(limit)

        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT * FROM events WHERE {' AND '.join(clauses)} {_EVENT_ORDER} LIMIT ?",
                tuple(params),
            )
            rows = await cursor.fetchall()
        return [EventRecord.from_row(r) for r in rows]

    async def mark_lineup_parsed(
        self,
        event_id: int,
        lineup: list[dict[str, Any]],
        metadata: dict[str, Any],
        html_snippet: str,
    ) -> None:
        async with self._connect() as db:
            await db.execute(
                "UPDATE events "
                "SET lineup_parsed = 1, parsed_lineup = ?, parsed_metadata = ?, "
                "    lineup_html = ?, parsed_at = ? "
                "WHERE id = ?",
                (_dumps(lineup), _dumps(metadata), html_snippet, _now(), event_id),
            )
            await db.commit()

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    async def insert_link(self, link: ArtistEventLink) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(
                _INSERT_LINK_SQL,
                (
                    link.artist_id, link.event_id, link.confidence, link.source.value,
                    link.role, _dumps(link.match_details), link.added_by_run,
                ),
            )
            await db.commit()
            created = cursor.rowcount == 1
        return created

    async def get_link(self, artist_id: int, event_id: int) -> ArtistEventLink | None:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM artist_events WHERE artist_id = ? AND event_id = ?",
                (artist_id, event_id),
            )
            row = await cursor.fetchone()
        return ArtistEventLink.from_row(row) if row else None

    async def links_for_artist(self, artist_id: int) -> list[ArtistEventLink]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM artist_events WHERE artist_id = ? ORDER BY confidence DESC, id ASC",
                (artist_id,),
            )
            rows = await cursor.fetchall()
        return [ArtistEventLink.from_row(r) for r in rows]

    async def links_for_event(self, event_id: int) -> list[ArtistEventLink]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM artist_events WHERE event_id = ? ORDER BY confidence DESC, id ASC",
                (event_id,),
            )
            rows = await cursor.fetchall()
        return [ArtistEventLink.from_row(r) for r in rows]

    async def link_confidences(self) -> list[float]:
        async with self._connect() as db:
            cursor = await db.execute("SELECT confidence FROM artist_events")
            rows = await cursor.fetchall()
        return [float(r["confidence"]) for r in rows]

    # ------------------------------------------------------------------
    # Run ledger
    # ------------------------------------------------------------------

    async def create_run(self, run: ScrapeRun) -> None:
        async with self._connect() as db:
            await db.execute(
                _INSERT_RUN_SQL,
                (
                    run.run_id, run.sync_type.value, run.status.value,
                    run.started_at, run.from_date, run.to_date,
                ),
            )
            await db.commit()

    async def update_run(self, run_id: str, **fields: Any) -> None:
        unknown = set(fields) - _RUN_MUTABLE_COLUMNS
        if unknown:
            raise StoreError(f"not a mutable run column: {sorted(unknown)}", provider_name=self.get_provider_name())
        if not fields:
            return

        values = [v.value if isinstance(v, RunStatus) else v for v in fields.values()]
        assignments = ", ".join(f"{column} = ?" for column in fields)
        async with self._connect() as db:
            cursor = await db.execute(
                f"UPDATE scrape_runs SET {assignments} WHERE run_id = ? AND status = ?",
                (*values, run_id, RunStatus.RUNNING.value),
            )
            await db.commit()
            updated = cursor.rowcount
        if updated == 0:
            raise RunStateError(
                f"run {run_id} is unknown or already completed",
                provider_name=self.get_provider_name(),
            )

    async def get_run(self, run_id: str) -> ScrapeRun | None:
        async with self._connect() as db:
            cursor = await db.execute("SELECT * FROM scrape_runs WHERE run_id = ?", (run_id,))
            row = await cursor.fetchone()
        return ScrapeRun.model_validate(dict(row)) if row else None

    async def list_runs(self, limit: int = 20) -> list[ScrapeRun]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM scrape_runs ORDER BY started_at DESC LIMIT ?", (limit,)
            )
            rows = await cursor.fetchall()
        return [ScrapeRun.model_validate(dict(r)) for r in rows]

    async def append_change_log(self, entry: ChangeLogEntry) -> None:
        async with self._connect() as db:
            await db.execute(
                "INSERT INTO change_logs (run_id, entity_type, external_id, change_type, "
                "old_content_hash, new_content_hash, changed_fields, old_data, new_data) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    entry.run_id, entry.entity_type.value, entry.external_id,
                    entry.change_type.value, entry.old_content_hash, entry.new_content_hash,
                    _dumps(entry.changed_fields), _dumps(entry.old_data), _dumps(entry.new_data),
                ),
            )
            await db.commit()

    async def change_logs(self, run_id: str) -> list[ChangeLogEntry]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM change_logs WHERE run_id = ? ORDER BY id ASC", (run_id,)
            )
            rows = await cursor.fetchall()
        return [ChangeLogEntry.from_row(r) for r in rows]

    async def append_progress_log(self, entry: ProgressLogEntry) -> None:
        async with self._connect() as db:
            await db.execute(
                "INSERT INTO progress_logs (run_id, log_level, message, details) VALUES (?, ?, ?, ?)",
                (entry.run_id, entry.log_level.value, entry.message, _dumps(entry.details)),
            )
            await db.commit()

    async def progress_logs(self, run_id: str) -> list[ProgressLogEntry]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM progress_logs WHERE run_id = ? ORDER BY id ASC", (run_id,)
            )
            rows = await cursor.fetchall()
        return [ProgressLogEntry.from_row(r) for r in rows]

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return "sqlite"
