"""adeSync domain models -- re-exports all public model classes.

The models are organized by concern:
    - listing.py   -- raw listing items validated at the ingestion boundary,
                     plus their canonical ArtistFields / EventFields
    - entities.py  -- stored artists, events and artist-event links
    - lineup.py    -- lineup mentions, fetched event pages, text matches
    - run.py       -- run ledger, change log and progress log entries
    - progress.py  -- session batch progress snapshots
"""

from __future__ import annotations

from src.models.entities import (
    ArtistEventLink,
    ArtistRecord,
    EntityType,
    EventRecord,
    LinkSource,
)
from src.models.lineup import EventPage, LineupMention, MatchType, TextMatch
from src.models.listing import ArtistFields, EventFields, RawArtist, RawEvent
from src.models.progress import BatchProgress
from src.models.run import (
    ChangeLogEntry,
    ChangeType,
    LogLevel,
    ProgressLogEntry,
    RunStatus,
    ScrapeRun,
    SyncType,
)

__all__ = [
    # listing
    "ArtistFields",
    "EventFields",
    "RawArtist",
    "RawEvent",
    # entities
    "ArtistEventLink",
    "ArtistRecord",
    "EntityType",
    "EventRecord",
    "LinkSource",
    # lineup
    "EventPage",
    "LineupMention",
    "MatchType",
    "TextMatch",
    # run
    "ChangeLogEntry",
    "ChangeType",
    "LogLevel",
    "ProgressLogEntry",
    "RunStatus",
    "ScrapeRun",
    "SyncType",
    # progress
    "BatchProgress",
]
