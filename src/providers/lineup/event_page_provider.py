"""Event detail-page fetcher.

Downloads one ADE event page with browser-like headers and hands the HTML
to :class:`LineupParser`.  Pacing between pages is the caller's job (the
orchestrator sleeps between events); this provider issues exactly one GET
per call and never retries.
"""

from __future__ import annotations

import httpx

from src.interfaces.listing_provider import IEventPageProvider
from src.models.lineup import EventPage
from src.services.lineup_parser import LineupParser
from src.utils.errors import LineupFetchError
from src.utils.logging import get_logger

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/136.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Referer": "https://www.amsterdam-dance-event.nl/en/program/",
}


class EventPageProvider(IEventPageProvider):
    """Fetches event pages over an injected ``httpx.AsyncClient``."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        parser: LineupParser | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._http = http_client
        self._parser = parser or LineupParser()
        self._timeout = timeout
        self._logger = get_logger(__name__)

    async def fetch_html(self, url: str) -> str:
        try:
            response = await self._http.get(
                url,
                headers=_DEFAULT_HEADERS,
                timeout=self._timeout,
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise LineupFetchError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name="event_page",
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise LineupFetchError(
                message=f"HTTP {exc.response.status_code} for {url}",
                provider_name="event_page",
            ) from exc
        except httpx.HTTPError as exc:
            raise LineupFetchError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name="event_page",
            ) from exc
        return response.text

    async def fetch_and_parse(self, url: str) -> EventPage:
        html = await self.fetch_html(url)
        page = self._parser.analyze(url, html)
        self._logger.info(
            "event_page_parsed",
            url=url,
            mentions=len(page.lineup),
            strategy=page.strategy,
        )
        return page
