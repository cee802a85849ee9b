"""Pydantic v2 models for raw ADE program-listing items.

The listing API (``/api/program/filter/``) returns loosely shaped JSON.
``RawArtist`` and ``RawEvent`` validate one item at the ingestion boundary;
anything malformed raises :class:`RecordValidationError` instead of flowing
onward as an untyped dict.  ``to_fields()`` then produces the canonical,
storage-ready field set (``ArtistFields`` / ``EventFields``) that the
change detector hashes and the upsert engine writes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from src.utils.categories import parse_event_metadata, parse_genres
from src.utils.errors import RecordValidationError

DEFAULT_TIMEZONE = "Europe/Amsterdam"
_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S")


def _coerce_external_id(value: Any) -> str:
    if value is None or isinstance(value, bool):
        raise ValueError("id is required")
    text = str(value).strip()
    if not text:
        raise ValueError("id is required")
    return text


ExternalId = Annotated[str, BeforeValidator(_coerce_external_id)]


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid')}" if location else first.get("msg", "invalid")


# ---------------------------------------------------------------------------
# Nested upstream shapes
# ---------------------------------------------------------------------------

class ListingCountry(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    label: str | None = None
    value: str | None = None


class ListingImage(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str | None = None
    url: str | None = None


class ListingVenue(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str | None = None


class ListingDateTime(BaseModel):
    """ADE's PHP-style date object: ``{"date": "2025-10-22 09:00:00.000000", "timezone": ...}``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    date: str
    timezone: str | None = None

    def to_utc(self) -> datetime:
        """Interpret ``date`` in ``timezone`` and convert to UTC.

        Raises:
            ValueError: If the date string or timezone cannot be parsed.
        """
        try:
            tz = ZoneInfo(self.timezone or DEFAULT_TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {self.timezone!r}") from exc

        for fmt in _DATE_FORMATS:
            try:
                local = datetime.strptime(self.date.strip(), fmt)
            except ValueError:
                continue
            return local.replace(tzinfo=tz).astimezone(timezone.utc)
        raise ValueError(f"unparseable date {self.date!r}")


# ---------------------------------------------------------------------------
# Canonical field sets
# ---------------------------------------------------------------------------

class ArtistFields(BaseModel):
    """Storage-ready artist fields derived from one listing item."""

    model_config = ConfigDict(frozen=True)

    external_id: str = Field(description="ADE artist id.")
    handle: str | None = None
    title: str = Field(description="Display name.")
    subtitle: str | None = None
    url: str | None = None
    country_label: str | None = None
    country_value: str | None = None
    image_title: str | None = None
    image_url: str | None = None
    raw_data: dict[str, Any] = Field(default_factory=dict)

    def canonical(self) -> dict[str, Any]:
        """Fields compared by the change-log diff (raw payload excluded)."""
        return self.model_dump(exclude={"raw_data"})


class EventFields(BaseModel):
    """Storage-ready event fields derived from one listing item."""

    model_config = ConfigDict(frozen=True)

    external_id: str = Field(description="ADE event id.")
    handle: str | None = None
    title: str
    subtitle: str | None = None
    url: str | None = None
    start_date: str = Field(description="ISO-8601 UTC start.")
    end_date: str = Field(description="ISO-8601 UTC end.")
    venue_name: str | None = None
    categories: str | None = None
    sold_out: bool = False
    # Derived from categories -- never part of the content hash.
    genres: list[str] = Field(default_factory=list)
    venue_type: str | None = None
    event_format: str | None = None
    is_free: bool = False
    is_nighttime: bool = False
    is_daytime: bool = False
    is_live: bool = False
    raw_data: dict[str, Any] = Field(default_factory=dict)

    def canonical(self) -> dict[str, Any]:
        return self.model_dump(exclude={"raw_data"})


# ---------------------------------------------------------------------------
# Raw listing items
# ---------------------------------------------------------------------------

class RawArtist(BaseModel):
    """One ``section=persons`` item as returned by the listing API."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    external_id: ExternalId = Field(alias="id")
    handle: str | None = None
    title: str | None = None
    subtitle: str | None = None
    url: str | None = None
    country: ListingCountry | None = None
    image: ListingImage | None = None
    raw_data: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @classmethod
    def from_api(cls, item: Any) -> RawArtist:
        """Validate one listing item.

        Raises
        ------
        RecordValidationError
            If the item is not an object or lacks a usable id.
        """
        if not isinstance(item, dict):
            raise RecordValidationError(
                f"expected object, got {type(item).__name__}", provider_name="ade_listing"
            )
        try:
            return cls.model_validate({**item, "raw_data": item})
        except ValidationError as exc:
            raise RecordValidationError(
                f"artist item rejected ({_validation_message(exc)})",
                provider_name="ade_listing",
                external_id=str(item.get("id")) if item.get("id") is not None else None,
            ) from exc

    def to_fields(self) -> ArtistFields:
        country = self.country or ListingCountry()
        image = self.image or ListingImage()
        return ArtistFields(
            external_id=self.external_id,
            handle=self.handle or None,
            title=self.title or "Unknown Artist",
            subtitle=self.subtitle or None,
            url=self.url or None,
            country_label=country.label or None,
            country_value=country.value or None,
            image_title=image.title or None,
            image_url=image.url or None,
            raw_data=self.raw_data,
        )


class RawEvent(BaseModel):
    """One ``section=events`` item as returned by the listing API."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    external_id: ExternalId = Field(alias="id")
    handle: str | None = None
    title: str | None = None
    subtitle: str | None = None
    url: str | None = None
    start_date_time: ListingDateTime
    end_date_time: ListingDateTime
    venue: ListingVenue | None = None
    categories: str | None = None
    sold_out: bool = Field(default=False, alias="soldOut")
    raw_data: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @field_validator("sold_out", mode="before")
    @classmethod
    def _none_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    @model_validator(mode="after")
    def _dates_parse(self) -> RawEvent:
        # Surface bad dates here, at the boundary, instead of in to_fields().
        self.start_date_time.to_utc()
        self.end_date_time.to_utc()
        return self

    @classmethod
    def from_api(cls, item: Any) -> RawEvent:
        """Validate one listing item.

        Raises
        ------
        RecordValidationError
            If the item lacks an id or carries unparseable dates.
        """
        if not isinstance(item, dict):
            raise RecordValidationError(
                f"expected object, got {type(item).__name__}", provider_name="ade_listing"
            )
        try:
            return cls.model_validate({**item, "raw_data": item})
        except ValidationError as exc:
            raise RecordValidationError(
                f"event item rejected ({_validation_message(exc)})",
                provider_name="ade_listing",
                external_id=str(item.get("id")) if item.get("id") is not None else None,
            ) from exc

    def to_fields(self) -> EventFields:
        metadata = parse_event_metadata(self.categories)
        return EventFields(
            external_id=self.external_id,
            handle=self.handle or None,
            title=self.title or "Unknown Event",
            subtitle=self.subtitle or None,
            url=self.url or None,
            start_date=self.start_date_time.to_utc().isoformat(),
            end_date=self.end_date_time.to_utc().isoformat(),
            venue_name=(self.venue.title if self.venue else None) or None,
            categories=self.categories or None,
            sold_out=bool(self.sold_out),
            genres=parse_genres(self.categories),
            raw_data=self.raw_data,
            **metadata,
        )
