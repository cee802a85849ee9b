"""Models produced by the lineup parser and the free-text name matcher."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LineupMention(BaseModel):
    """One artist referenced on an event detail page."""

    model_config = ConfigDict(frozen=True)

    external_id: str = Field(description="Numeric id from the artist profile URL.")
    name: str = Field(description="Link text or JSON-LD performer name.")
    profile_url: str = Field(description="Absolute artist profile URL.")
    role: str | None = Field(
        default=None, description="Parenthesized role next to the link, if any."
    )


class EventPage(BaseModel):
    """A fetched event detail page and everything extracted from it."""

    model_config = ConfigDict(frozen=True)

    url: str
    html: str
    lineup: list[LineupMention] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    strategy: str | None = Field(
        default=None, description="Name of the extraction strategy that matched."
    )


class MatchType(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Where in an event the text matcher found the artist."""

    TITLE = "title"
    SUBTITLE = "subtitle"
    RAW_SUBTITLE = "raw_subtitle"


class TextMatch(BaseModel):
    """Best free-text match of one artist against one event."""

    model_config = ConfigDict(frozen=True)

    confidence: float = Field(ge=0.0, le=1.0)
    match_type: MatchType
    matched_text: str
    details: str
