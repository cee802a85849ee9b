"""Abstract base class for the relational sync store.

The pipeline depends only on unique-key lookup, insert, update and ordered
range scans.  The concrete adapter (``SQLiteSyncStore``) owns the schema;
swapping it for a hosted database means implementing this contract and
changing one line in ``src/main.py``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.entities import ArtistEventLink, ArtistRecord, EventRecord
from src.models.listing import ArtistFields, EventFields
from src.models.run import ChangeLogEntry, ProgressLogEntry, ScrapeRun


class ISyncStore(ABC):
    """Contract for persisting artists, events, links and the run ledger."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they do not exist yet."""

    # -- Artists -----------------------------------------------------------

    @abstractmethod
    async def get_artist_by_external_id(self, external_id: str) -> ArtistRecord | None:
        """Look up an artist by its ADE id.

        Returns
        -------
        ArtistRecord or None
        """

    @abstractmethod
    async def get_artist(self, artist_id: int) -> ArtistRecord | None:
        """Look up an artist by primary key."""

    @abstractmethod
    async def insert_artist(
        self, fields: ArtistFields, content_hash: str, run_id: str
    ) -> ArtistRecord:
        """Insert a canonical artist tagged with ``added_by_run``.

        Raises
        ------
        StoreError
            If the write fails (including a duplicate external id).
        """

    @abstractmethod
    async def update_artist(
        self, external_id: str, fields: ArtistFields, content_hash: str, run_id: str
    ) -> ArtistRecord:
        """Overwrite an artist's canonical fields and hash.

        Always clears ``is_stub``: the canonical listing has now seen it.
        """

    @abstractmethod
    async def insert_stub_artist(
        self, external_id: str, title: str, url: str | None, run_id: str | None
    ) -> ArtistRecord:
        """Insert a placeholder artist discovered from a lineup mention."""

    @abstractmethod
    async def list_artists(self, artist_id: int | None = None) -> list[ArtistRecord]:
        """Return all artists (or the single one with *artist_id*) ordered by id."""

    @abstractmethod
    async def apply_enrichment(
        self,
        external_id: str,
        popularity: int | None = None,
        genres: list[str] | None = None,
        enrichment_data: dict[str, Any] | None = None,
    ) -> None:
        """Annotate an artist with enrichment data.

        Never touches ``content_hash`` or ``last_updated_at``.
        """

    # -- Events ------------------------------------------------------------

    @abstractmethod
    async def get_event_by_external_id(self, external_id: str) -> EventRecord | None:
        """Look up an event by its ADE id."""

    @abstractmethod
    async def get_event(self, event_id: int) -> EventRecord | None:
        """Look up an event by primary key."""

    @abstractmethod
    async def insert_event(
        self, fields: EventFields, content_hash: str, run_id: str
    ) -> EventRecord:
        """Insert an event tagged with ``added_by_run``."""

    @abstractmethod
    async def update_event(
        self, external_id: str, fields: EventFields, content_hash: str, run_id: str
    ) -> EventRecord:
        """Overwrite an event's canonical and derived fields plus its hash."""

    @abstractmethod
    async def list_events(self) -> list[EventRecord]:
        """Return every event in listing (start date, id) order."""

    @abstractmethod
    async def events_touched_by_run(self, run_id: str, limit: int) -> list[EventRecord]:
        """Events with a URL added or updated by *run_id*, or never lineup-parsed."""

    @abstractmethod
    async def find_events_with_url(
        self,
        event_id: int | None = None,
        venue_filter: str | None = None,
        limit: int = 10,
    ) -> list[EventRecord]:
        """Select events that have a detail-page URL.

        Parameters
        ----------
        event_id:
            Restrict to one event (primary key).
        venue_filter:
            Case-insensitive substring match on ``venue_name``.
        limit:
            Maximum number of events returned.
        """

    @abstractmethod
    async def mark_lineup_parsed(
        self,
        event_id: int,
        lineup: list[dict[str, Any]],
        metadata: dict[str, Any],
        html_snippet: str,
    ) -> None:
        """Record the parse result and set ``lineup_parsed``."""

    # -- Links -------------------------------------------------------------

    @abstractmethod
    async def insert_link(self, link: ArtistEventLink) -> bool:
        """Insert a link unless the (artist, event) pair already exists.

        Returns
        -------
        bool
            ``True`` if a row was created, ``False`` if the pair existed.
        """

    @abstractmethod
    async def get_link(self, artist_id: int, event_id: int) -> ArtistEventLink | None:
        """Return the link for the pair, if any."""

    @abstractmethod
    async def links_for_artist(self, artist_id: int) -> list[ArtistEventLink]:
        """Links of one artist, highest confidence first."""

    @abstractmethod
    async def links_for_event(self, event_id: int) -> list[ArtistEventLink]:
        """Links of one event, highest confidence first."""

    @abstractmethod
    async def link_confidences(self) -> list[float]:
        """Confidence of every stored link, for statistics."""

    # -- Run ledger --------------------------------------------------------

    @abstractmethod
    async def create_run(self, run: ScrapeRun) -> None:
        """Persist a new RUNNING run."""

    @abstractmethod
    async def update_run(self, run_id: str, **fields: Any) -> None:
        """Update counters / status of a run.

        Raises
        ------
        RunStateError
            If the run is unknown or already completed.
        """

    @abstractmethod
    async def get_run(self, run_id: str) -> ScrapeRun | None:
        """Return one run."""

    @abstractmethod
    async def list_runs(self, limit: int = 20) -> list[ScrapeRun]:
        """Most recent runs first."""

    @abstractmethod
    async def append_change_log(self, entry: ChangeLogEntry) -> None:
        """Append one audit record."""

    @abstractmethod
    async def change_logs(self, run_id: str) -> list[ChangeLogEntry]:
        """Audit records of one run in insertion order."""

    @abstractmethod
    async def append_progress_log(self, entry: ProgressLogEntry) -> None:
        """Append one progress log line."""

    @abstractmethod
    async def progress_logs(self, run_id: str) -> list[ProgressLogEntry]:
        """Progress log of one run in insertion order."""
