"""Utility modules for adeSync.

- **confidence** -- link confidence tiers and aggregate statistics.
- **errors** -- domain exception hierarchy rooted at AdeSyncError.
- **logging** -- structlog setup with a dual console/JSON renderer and
  run-scoped context binding.
- **text_normalizer** -- artist-name normalization and free-text mention
  extraction (B2B / ``&`` splitting, Live/DJ suffix stripping).
"""

# -- Confidence tiers --------------------------------------------------------
from src.utils.confidence import ConfidenceLevel, confidence_to_level, summarize_confidences

# -- Domain exception hierarchy ----------------------------------------------
from src.utils.errors import (
    AdeSyncError,
    ConfigurationError,
    LineupFetchError,
    ListingFetchError,
    NoEventsFoundError,
    RecordValidationError,
    RunStateError,
    StoreError,
)

# -- Structured logging setup ------------------------------------------------
from src.utils.logging import bind_run, configure_logging, get_logger

# -- Text normalization ------------------------------------------------------
from src.utils.text_normalizer import extract_artist_mentions, normalize_name

__all__ = [
    "AdeSyncError",
    "ConfidenceLevel",
    "ConfigurationError",
    "LineupFetchError",
    "ListingFetchError",
    "NoEventsFoundError",
    "RecordValidationError",
    "RunStateError",
    "StoreError",
    "bind_run",
    "confidence_to_level",
    "configure_logging",
    "extract_artist_mentions",
    "get_logger",
    "normalize_name",
    "summarize_confidences",
]
