"""Unit tests for confidence tiers and category parsing."""

from __future__ import annotations

import pytest

from src.utils.categories import parse_event_metadata, parse_genres
from src.utils.confidence import (
    ConfidenceLevel,
    confidence_to_level,
    summarize_confidences,
)


# ======================================================================
# confidence_to_level
# ======================================================================


class TestConfidenceToLevel:
    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (1.0, ConfidenceLevel.HIGH),
            (0.9, ConfidenceLevel.HIGH),
            (0.85, ConfidenceLevel.MEDIUM),
            (0.7, ConfidenceLevel.MEDIUM),
            (0.65, ConfidenceLevel.LOW),
            (0.0, ConfidenceLevel.LOW),
        ],
    )
    def test_default_tiers(self, score: float, expected: ConfidenceLevel) -> None:
        assert confidence_to_level(score) == expected

    def test_custom_high_bound(self) -> None:
        assert confidence_to_level(0.85, high=0.8) == ConfidenceLevel.HIGH


# ======================================================================
# summarize_confidences
# ======================================================================


class TestSummarizeConfidences:
    def test_counts_and_average(self) -> None:
        summary = summarize_confidences([1.0, 0.85, 0.65])
        assert summary["total"] == 3
        assert summary["high"] == 1
        assert summary["medium"] == 1
        assert summary["low"] == 1
        assert summary["average"] == pytest.approx(0.8333, abs=1e-4)

    def test_empty(self) -> None:
        assert summarize_confidences([]) == {
            "total": 0,
            "high": 0,
            "medium": 0,
            "low": 0,
            "average": 0.0,
        }


# ======================================================================
# Category parsing
# ======================================================================


class TestParseGenres:
    def test_known_genres_title_cased(self) -> None:
        assert parse_genres("Club Night / Techno / Melodic Techno / Basement Venues") == [
            "Techno",
            "Melodic Techno",
        ]

    def test_duplicates_removed(self) -> None:
        assert parse_genres("Techno / techno / House") == ["Techno", "House"]

    def test_none(self) -> None:
        assert parse_genres(None) == []


class TestParseEventMetadata:
    def test_club_night(self) -> None:
        meta = parse_event_metadata("Club Night / Techno / Basement Venues")
        assert meta["venue_type"] == "basement venues"
        assert meta["event_format"] == "club night"
        assert meta["is_nighttime"] is True
        assert meta["is_daytime"] is False
        assert meta["is_free"] is False
        assert meta["is_live"] is False

    def test_free_daytime_live(self) -> None:
        meta = parse_event_metadata("Free / Day Event / Live Concert")
        assert meta["is_free"] is True
        assert meta["is_daytime"] is True
        assert meta["is_live"] is True
        assert meta["event_format"] == "live concert"

    def test_none(self) -> None:
        assert parse_event_metadata(None) == {
            "venue_type": None,
            "event_format": None,
            "is_free": False,
            "is_nighttime": False,
            "is_daytime": False,
            "is_live": False,
        }
