"""Unit tests for listing-boundary validation and stored-record decoding."""

from __future__ import annotations

import pytest

from src.models.entities import ArtistRecord, EventRecord
from src.models.listing import ListingDateTime, RawArtist, RawEvent
from src.models.progress import BatchProgress
from src.utils.errors import RecordValidationError


# ======================================================================
# RawArtist
# ======================================================================


class TestRawArtist:
    def test_to_fields(self, make_artist_item) -> None:
        fields = RawArtist.from_api(make_artist_item()).to_fields()

        assert fields.external_id == "1001"
        assert fields.title == "Amelie Lens"
        assert fields.country_label == "Belgium"
        assert fields.country_value == "BE"
        assert fields.image_url.endswith("/media/amelie-lens.jpg")
        assert fields.raw_data["id"] == 1001

    def test_missing_optional_blocks(self, make_artist_item) -> None:
        item = make_artist_item(country=None, image=None, subtitle="")
        fields = RawArtist.from_api(item).to_fields()

        assert fields.country_label is None
        assert fields.image_url is None
        assert fields.subtitle is None

    def test_missing_title_gets_placeholder(self, make_artist_item) -> None:
        item = make_artist_item()
        del item["title"]
        assert RawArtist.from_api(item).to_fields().title == "Unknown Artist"

    @pytest.mark.parametrize("bad_id", [None, "", "   ", True])
    def test_unusable_id_rejected(self, make_artist_item, bad_id) -> None:
        with pytest.raises(RecordValidationError):
            RawArtist.from_api(make_artist_item(id=bad_id))

    def test_non_object_rejected(self) -> None:
        with pytest.raises(RecordValidationError, match="expected object"):
            RawArtist.from_api(["not", "a", "dict"])

    def test_canonical_excludes_raw_data(self, make_artist_item) -> None:
        canonical = RawArtist.from_api(make_artist_item()).to_fields().canonical()
        assert "raw_data" not in canonical
        assert canonical["external_id"] == "1001"


# ======================================================================
# RawEvent
# ======================================================================


class TestRawEvent:
    def test_dates_converted_to_utc(self, make_event_item) -> None:
        fields = RawEvent.from_api(make_event_item()).to_fields()

        # Amsterdam is UTC+2 until the last Sunday of October.
        assert fields.start_date == "2025-10-22T21:00:00+00:00"
        assert fields.end_date == "2025-10-23T04:00:00+00:00"

    def test_missing_timezone_defaults_to_amsterdam(self, make_event_item) -> None:
        item = make_event_item(start_date_time={"date": "2025-10-22 23:00:00.000000"})
        assert RawEvent.from_api(item).to_fields().start_date == "2025-10-22T21:00:00+00:00"

    def test_derived_fields(self, make_event_item) -> None:
        fields = RawEvent.from_api(make_event_item()).to_fields()

        assert fields.venue_name == "Gashouder"
        assert fields.genres == ["Techno"]
        assert fields.event_format == "club night"
        assert fields.is_nighttime is True

    def test_sold_out_none_is_false(self, make_event_item) -> None:
        assert RawEvent.from_api(make_event_item(soldOut=None)).to_fields().sold_out is False

    def test_sold_out_true(self, make_event_item) -> None:
        assert RawEvent.from_api(make_event_item(soldOut=True)).to_fields().sold_out is True

    def test_unparseable_date_rejected(self, make_event_item) -> None:
        item = make_event_item(start_date_time={"date": "next tuesday", "timezone": "Europe/Amsterdam"})
        with pytest.raises(RecordValidationError) as exc_info:
            RawEvent.from_api(item)
        assert exc_info.value.external_id == "501"

    def test_unknown_timezone_rejected(self, make_event_item) -> None:
        item = make_event_item(start_date_time={"date": "2025-10-22 23:00:00", "timezone": "Mars/Olympus"})
        with pytest.raises(RecordValidationError):
            RawEvent.from_api(item)

    def test_missing_dates_rejected(self, make_event_item) -> None:
        item = make_event_item()
        del item["end_date_time"]
        with pytest.raises(RecordValidationError):
            RawEvent.from_api(item)


class TestListingDateTime:
    def test_iso_t_format(self) -> None:
        value = ListingDateTime(date="2025-10-26T12:00:00", timezone="Europe/Amsterdam")
        # After the switch back to CET (UTC+1).
        assert value.to_utc().isoformat() == "2025-10-26T11:00:00+00:00"


# ======================================================================
# Stored records
# ======================================================================


class TestRecordsFromRow:
    def test_artist_decodes_json_columns(self) -> None:
        record = ArtistRecord.from_row(
            {
                "id": 1,
                "external_id": "1001",
                "title": "Amelie Lens",
                "is_stub": 1,
                "first_seen_at": "2025-10-01T00:00:00+00:00",
                "last_updated_at": "2025-10-01T00:00:00+00:00",
                "raw_data": '{"id": 1001}',
                "genres": '["Techno"]',
                "enrichment_data": None,
            }
        )
        assert record.is_stub is True
        assert record.raw_data == {"id": 1001}
        assert record.genres == ["Techno"]
        assert record.enrichment_data == {}

    def test_event_raw_subtitle(self, make_event_record) -> None:
        event = make_event_record(raw_data={"subtitle": "Amelie Lens"})
        assert event.raw_subtitle == "Amelie Lens"
        assert make_event_record().raw_subtitle is None

    def test_event_drops_html_column(self) -> None:
        record = EventRecord.from_row(
            {
                "id": 1,
                "external_id": "501",
                "title": "Awakenings ADE",
                "start_date": "2025-10-22T21:00:00+00:00",
                "end_date": "2025-10-23T04:00:00+00:00",
                "content_hash": "abc",
                "lineup_parsed": 1,
                "lineup_html": "<html></html>",
                "parsed_lineup": '[{"external_id": "1001"}]',
                "first_seen_at": "2025-10-01T00:00:00+00:00",
                "last_updated_at": "2025-10-01T00:00:00+00:00",
            }
        )
        assert record.lineup_parsed is True
        assert record.parsed_lineup == [{"external_id": "1001"}]


class TestBatchProgress:
    def test_api_form_is_camel_case(self) -> None:
        payload = BatchProgress(progress_percent=40, events_parsed=2).to_api()
        assert payload["progressPercent"] == 40
        assert payload["eventsParsed"] == 2
        assert payload["completed"] is False
        assert "progress_percent" not in payload
