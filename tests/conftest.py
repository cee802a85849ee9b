"""Shared pytest fixtures for the adeSync test suite."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from src.models.entities import EventRecord
from src.providers.store.sqlite_store import SQLiteSyncStore

SITE = "https://www.amsterdam-dance-event.nl"


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteSyncStore:
    """A freshly initialised SQLite store in a temp directory."""
    db = SQLiteSyncStore(db_path=tmp_path / "ade_sync_test.db")
    await db.initialize()
    return db


# ---------------------------------------------------------------------------
# Raw listing items (shape of /api/program/filter/ "data" entries)
# ---------------------------------------------------------------------------


@pytest.fixture
def make_artist_item() -> Callable[..., dict[str, Any]]:
    """Factory for one ``section=persons`` item."""

    def _make(external_id: int = 1001, title: str = "Amelie Lens", **overrides: Any) -> dict[str, Any]:
        slug = title.lower().replace(" ", "-")
        item: dict[str, Any] = {
            "id": external_id,
            "handle": slug,
            "title": title,
            "subtitle": None,
            "url": f"{SITE}/en/artists-speakers/{slug}/{external_id}/",
            "country": {"label": "Belgium", "value": "BE"},
            "image": {"title": title, "url": f"{SITE}/media/{slug}.jpg"},
        }
        item.update(overrides)
        return item

    return _make


@pytest.fixture
def make_event_item() -> Callable[..., dict[str, Any]]:
    """Factory for one ``section=events`` item."""

    def _make(external_id: int = 501, title: str = "Awakenings ADE", **overrides: Any) -> dict[str, Any]:
        slug = title.lower().replace(" ", "-")
        item: dict[str, Any] = {
            "id": external_id,
            "handle": slug,
            "title": title,
            "subtitle": "Amelie Lens B2B Joris Voorn",
            "url": f"{SITE}/en/program/2025/{slug}/{external_id}/",
            "start_date_time": {"date": "2025-10-22 23:00:00.000000", "timezone": "Europe/Amsterdam"},
            "end_date_time": {"date": "2025-10-23 06:00:00.000000", "timezone": "Europe/Amsterdam"},
            "venue": {"title": "Gashouder"},
            "categories": "Club Night / Techno",
            "soldOut": False,
        }
        item.update(overrides)
        return item

    return _make


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------


@pytest.fixture
def make_event_record() -> Callable[..., EventRecord]:
    """Factory for an :class:`EventRecord` that never touched the store."""

    def _make(**overrides: Any) -> EventRecord:
        data: dict[str, Any] = {
            "id": 1,
            "external_id": "501",
            "title": "Awakenings ADE",
            "subtitle": None,
            "url": f"{SITE}/en/program/2025/awakenings-ade/501/",
            "start_date": "2025-10-22T21:00:00+00:00",
            "end_date": "2025-10-23T04:00:00+00:00",
            "venue_name": "Gashouder",
            "content_hash": "0" * 64,
            "first_seen_at": "2025-10-01T00:00:00+00:00",
            "last_updated_at": "2025-10-01T00:00:00+00:00",
        }
        data.update(overrides)
        return EventRecord(**data)

    return _make


# ---------------------------------------------------------------------------
# Event detail page HTML
# ---------------------------------------------------------------------------


LINEUP_PAGE_HTML = """\
<html>
<head>
  <meta property="og:image" content="https://www.amsterdam-dance-event.nl/media/awakenings.jpg">
  <meta name="description" content="Techno at the Gashouder">
</head>
<body>
  <h1>Awakenings ADE</h1>
  <div class="venue-name">Gashouder</div>
  <div class="event-date">Wed 22 Oct</div>
  <div class="lineup">
    <p><a href="/en/artists-speakers/amelie-lens/1001/">Amelie Lens</a></p>
    <p><a href="/en/artists-speakers/joris-voorn/1002/">Joris   Voorn</a> (all night long)</p>
    <p><a href="/en/artists-speakers/amelie-lens/1001/">Amelie Lens</a></p>
  </div>
  <footer>
    <a href="/en/artists-speakers/someone-else/9999/">Someone Else</a>
  </footer>
</body>
</html>
"""


@pytest.fixture
def lineup_page_html() -> str:
    """An event page whose ``.lineup`` lists two artists (one repeated)."""
    return LINEUP_PAGE_HTML
