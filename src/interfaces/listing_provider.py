"""Abstract base classes for upstream fetchers (listing API and event pages)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from src.models.lineup import EventPage


@dataclass(frozen=True)
class ListingPage:
    """One page of raw listing items."""

    section: str
    page: int
    items: list[dict[str, Any]]


class IListingProvider(ABC):
    """Contract for the paginated program-listing endpoint."""

    @abstractmethod
    async def fetch_page(
        self, section: str, page: int, from_date: str, to_date: str
    ) -> list[dict[str, Any]]:
        """Fetch one page of raw items.

        Parameters
        ----------
        section:
            ``"persons"`` for artists or ``"events"``.
        page:
            Zero-based page index.
        from_date, to_date:
            Inclusive ``YYYY-MM-DD`` date range.

        Raises
        ------
        ListingFetchError
            On transport errors, non-2xx status or an unexpected body.
        """

    @abstractmethod
    def iter_pages(
        self, section: str, from_date: str, to_date: str
    ) -> AsyncIterator[ListingPage]:
        """Yield non-empty pages in order until an empty page is returned.

        A fetch error propagates as :class:`ListingFetchError` after the
        pages already yielded.
        """


class IEventPageProvider(ABC):
    """Contract for fetching and parsing an event detail page."""

    @abstractmethod
    async def fetch_html(self, url: str) -> str:
        """Return the raw HTML of *url*.

        Raises
        ------
        LineupFetchError
            If the page cannot be retrieved.
        """

    @abstractmethod
    async def fetch_and_parse(self, url: str) -> EventPage:
        """Fetch *url* and run the lineup parser over it."""
