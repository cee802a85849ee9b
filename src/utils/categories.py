"""Derive genres and event metadata from ADE category strings.

ADE events carry a single ``/``-separated category string, e.g.
``"Club Night / Techno / Basement Venues"``.  Neither helper here feeds the
event content hash; both are derived data stored beside the canonical
fields.
"""

from typing import Any

KNOWN_GENRES: tuple[str, ...] = (
    "techno", "house", "deep house", "tech-house", "progressive house",
    "trance", "drum & bass", "drum and bass", "dubstep", "garage",
    "disco", "minimal", "elektro", "electronic", "electronica",
    "hip-hop", "hip hop", "rap", "afrobeats", "afrobeat", "latin",
    "ambient", "experimental", "breakbeat", "hardcore", "hard dance",
    "hardstyle", "gabber", "acid", "industrial", "downtempo",
    "bass", "uk garage", "grime", "trap", "future bass", "melodic",
)

_VENUE_KEYWORDS = ("venues", "basement", "warehouse", "club", "bar", "gallery", "outdoor")
_FORMAT_KEYWORDS = ("night", "day", "exhibition", "concert", "showcase", "party", "festival")


def _split_parts(categories: str) -> list[str]:
    return [p.strip().lower() for p in categories.split("/")]


def _capitalize_words(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))


def parse_genres(categories: str | None) -> list[str]:
    """Return the category parts that mention a known genre.

    The whole part is kept (``"melodic techno"`` stays one genre),
    capitalized word by word, and de-duplicated in first-seen order.
    """
    if not categories:
        return []

    genres: list[str] = []
    for part in _split_parts(categories):
        if any(genre in part for genre in KNOWN_GENRES):
            formatted = _capitalize_words(part)
            if formatted not in genres:
                genres.append(formatted)
    return genres


def parse_event_metadata(categories: str | None) -> dict[str, Any]:
    """Derive venue type, event format and boolean flags from categories.

    For ``venue_type`` and ``event_format`` the LAST matching part wins.
    The flags are plain substring checks over the whole lower-cased string.
    """
    if not categories:
        return {
            "venue_type": None,
            "event_format": None,
            "is_free": False,
            "is_nighttime": False,
            "is_daytime": False,
            "is_live": False,
        }

    lowered = categories.lower()
    venue_type: str | None = None
    event_format: str | None = None
    for part in _split_parts(categories):
        if any(keyword in part for keyword in _VENUE_KEYWORDS):
            venue_type = part
        if any(keyword in part for keyword in _FORMAT_KEYWORDS):
            event_format = part

    return {
        "venue_type": venue_type,
        "event_format": event_format,
        "is_free": "free" in lowered,
        "is_nighttime": "night" in lowered,
        "is_daytime": "day" in lowered,
        "is_live": "live" in lowered,
    }
