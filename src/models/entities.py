"""Stored domain entities: artists, events and the links between them.

All models use frozen config.  Records are rebuilt from SQLite rows via
``from_row`` -- JSON columns (``raw_data``, ``genres``, ``match_details`` ...)
are decoded there so the rest of the codebase never touches serialized text.

Key relationships:
    - ArtistEventLink joins one ArtistRecord and one EventRecord; the pair
      (artist_id, event_id) is unique.
    - ``is_stub`` artists were created from a lineup mention only; a later
      canonical-listing upsert for the same external id clears the flag.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def decode_json_column(value: Any, default: Any) -> Any:
    if value is None or value == "":
        return default
    if isinstance(value, (dict, list)):
        return value
    return json.loads(value)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class LinkSource(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Provenance of an artist-event link."""

    EVENT_PAGE_PARSER = "event_page_parser"  # Session batch over detail pages
    LINEUP = "lineup"                        # Full-sync lineup phase
    AUTO_MATCHER = "auto_matcher"            # Free-text title/subtitle scorer
    MANUAL = "manual"                        # Curated by hand


class EntityType(str, Enum):  # noqa: UP042
    ARTIST = "artist"
    EVENT = "event"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class ArtistRecord(BaseModel):
    """A canonical (or stub) artist as stored."""

    model_config = ConfigDict(frozen=True)

    id: int
    external_id: str = Field(description="ADE artist id (unique).")
    handle: str | None = None
    title: str
    subtitle: str | None = None
    url: str | None = None
    country_label: str | None = None
    country_value: str | None = None
    image_title: str | None = None
    image_url: str | None = None
    content_hash: str | None = Field(
        default=None, description="Null for stubs until the listing sees them."
    )
    is_stub: bool = False
    added_by_run: str | None = None
    updated_by_run: str | None = None
    first_seen_at: str
    last_updated_at: str
    raw_data: dict[str, Any] = Field(default_factory=dict)

    # Enrichment -- written by the external lookup, excluded from the hash.
    popularity: int | None = None
    genres: list[str] = Field(default_factory=list)
    enrichment_data: dict[str, Any] = Field(default_factory=dict)
    enriched_at: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ArtistRecord:
        data = dict(row)
        data["is_stub"] = bool(data.get("is_stub"))
        data["raw_data"] = decode_json_column(data.get("raw_data"), {})
        data["genres"] = decode_json_column(data.get("genres"), [])
        data["enrichment_data"] = decode_json_column(data.get("enrichment_data"), {})
        return cls.model_validate(data)


class EventRecord(BaseModel):
    """A festival event as stored."""

    model_config = ConfigDict(frozen=True)

    id: int
    external_id: str = Field(description="ADE event id (unique).")
    handle: str | None = None
    title: str
    subtitle: str | None = None
    url: str | None = None
    start_date: str
    end_date: str
    venue_name: str | None = None
    categories: str | None = None
    sold_out: bool = False
    content_hash: str
    genres: list[str] = Field(default_factory=list)
    venue_type: str | None = None
    event_format: str | None = None
    is_free: bool = False
    is_nighttime: bool = False
    is_daytime: bool = False
    is_live: bool = False
    lineup_parsed: bool = False
    parsed_lineup: list[dict[str, Any]] = Field(default_factory=list)
    parsed_metadata: dict[str, Any] = Field(default_factory=dict)
    parsed_at: str | None = None
    added_by_run: str | None = None
    updated_by_run: str | None = None
    first_seen_at: str
    last_updated_at: str
    raw_data: dict[str, Any] = Field(default_factory=dict)

    @property
    def raw_subtitle(self) -> str | None:
        """Subtitle as delivered upstream, which may differ from the stored one."""
        value = self.raw_data.get("subtitle")
        return value if isinstance(value, str) else None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> EventRecord:
        data = dict(row)
        data.pop("lineup_html", None)
        for flag in ("sold_out", "is_free", "is_nighttime", "is_daytime", "is_live", "lineup_parsed"):
            data[flag] = bool(data.get(flag))
        data["raw_data"] = decode_json_column(data.get("raw_data"), {})
        data["genres"] = decode_json_column(data.get("genres"), [])
        data["parsed_lineup"] = decode_json_column(data.get("parsed_lineup"), [])
        data["parsed_metadata"] = decode_json_column(data.get("parsed_metadata"), {})
        return cls.model_validate(data)


class ArtistEventLink(BaseModel):
    """Many-to-many join between an artist and an event, with provenance."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    artist_id: int
    event_id: int
    confidence: float = Field(ge=0.0, le=1.0)
    source: LinkSource
    role: str | None = None
    match_details: dict[str, Any] = Field(default_factory=dict)
    added_by_run: str | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ArtistEventLink:
        data = dict(row)
        data["match_details"] = decode_json_column(data.get("match_details"), {})
        return cls.model_validate(data)
