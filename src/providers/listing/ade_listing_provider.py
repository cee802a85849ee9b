"""Amsterdam Dance Event program-listing client.

The public ADE site is backed by an unauthenticated JSON endpoint::

    GET https://www.amsterdam-dance-event.nl/api/program/filter/
        ?section=persons|events&type=8262,8263&from=YYYY-MM-DD&to=YYYY-MM-DD&page=N

which returns ``{"data": [...]}``.  Pages are zero-based; an empty ``data``
array means there are no more pages.  Requests carry browser-like headers
(the endpoint rejects obvious bots) and are spaced by a fixed delay.  There
is no retry: a failed page raises :class:`ListingFetchError` so callers can
tell a transient failure apart from the natural end of the listing.

Follows the same adapter pattern as the other HTTP providers: injected
``httpx.AsyncClient`` plus a monotonic ``_throttle()``.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from typing import Any

import httpx

from src.interfaces.listing_provider import IListingProvider, ListingPage
from src.utils.errors import ListingFetchError
from src.utils.logging import get_logger

_API_BASE = "https://www.amsterdam-dance-event.nl/api"
_PAGE_DELAY = 0.5  # seconds between page requests
_TIMEOUT = 15.0
_DEFAULT_TYPES = ("8262", "8263")
_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/136.0.0.0 Safari/537.36"
)

SECTION_ARTISTS = "persons"
SECTION_EVENTS = "events"


class AdeListingProvider(IListingProvider):
    """Fetches raw artist and event pages from the ADE listing API.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient`` for testability and connection pooling.
    base_url:
        API root, without the ``/program/filter/`` suffix.
    types:
        Program type ids sent as the ``type`` filter.
    page_delay:
        Minimum seconds between successive requests (default 0.5).
    timeout:
        Per-request timeout in seconds.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = _API_BASE,
        types: list[str] | tuple[str, ...] = _DEFAULT_TYPES,
        page_delay: float = _PAGE_DELAY,
        timeout: float = _TIMEOUT,
    ) -> None:
        self._http = http_client
        self._endpoint = f"{base_url.rstrip('/')}/program/filter/"
        self._types = ",".join(types)
        self._page_delay = page_delay
        self._timeout = timeout
        self._last_request_time: float = 0.0
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _throttle(self) -> None:
        """Enforce minimum delay between requests."""
        now = time.monotonic()
        elapsed = now - self._last_request_time
        if self._last_request_time > 0 and elapsed < self._page_delay:
            await asyncio.sleep(self._page_delay - elapsed)
        self._last_request_time = time.monotonic()

    def _headers(self, site_referer: str) -> dict[str, str]:
        return {
            "Accept": "*/*",
            "Accept-Language": "en-US,en;q=0.6",
            "Referer": site_referer,
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Site": "same-origin",
            "User-Agent": _USER_AGENT,
        }

    # ------------------------------------------------------------------
    # IListingProvider
    # ------------------------------------------------------------------

    async def fetch_page(
        self, section: str, page: int, from_date: str, to_date: str
    ) -> list[dict[str, Any]]:
        await self._throttle()

        params = {
            "section": section,
            "type": self._types,
            "from": from_date,
            "to": to_date,
            "page": str(page),
        }
        referer = self._endpoint.replace("/api/program/filter/", "/en/program/filter/")

        try:
            response = await self._http.get(
                self._endpoint,
                params=params,
                headers=self._headers(referer),
                timeout=self._timeout,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise ListingFetchError(
                f"HTTP {exc.response.status_code} fetching {section} page {page}",
                provider_name="ade_listing",
                page=page,
            ) from exc
        except httpx.HTTPError as exc:
            raise ListingFetchError(
                f"Request failed for {section} page {page}: {exc}",
                provider_name="ade_listing",
                page=page,
            ) from exc
        except ValueError as exc:
            raise ListingFetchError(
                f"Invalid JSON for {section} page {page}",
                provider_name="ade_listing",
                page=page,
            ) from exc

        if not isinstance(body, dict):
            raise ListingFetchError(
                f"Unexpected body type {type(body).__name__} for {section} page {page}",
                provider_name="ade_listing",
                page=page,
            )

        data = body.get("data") or []
        if not isinstance(data, list):
            raise ListingFetchError(
                f"'data' is not a list for {section} page {page}",
                provider_name="ade_listing",
                page=page,
            )

        self._logger.debug("listing_page_fetched", section=section, page=page, items=len(data))
        return data

    async def iter_pages(
        self, section: str, from_date: str, to_date: str
    ) -> AsyncIterator[ListingPage]:
        page = 0
        while True:
            items = await self.fetch_page(section, page, from_date, to_date)
            if not items:
                self._logger.info("listing_exhausted", section=section, pages=page)
                return
            yield ListingPage(section=section, page=page, items=items)
            page += 1
