"""Listing providers.

AdeListingProvider pages through the ADE ``program/filter`` JSON endpoint
for artists (``persons``) and events.
"""

from src.providers.listing.ade_listing_provider import (
    SECTION_ARTISTS,
    SECTION_EVENTS,
    AdeListingProvider,
)

__all__ = ["SECTION_ARTISTS", "SECTION_EVENTS", "AdeListingProvider"]
