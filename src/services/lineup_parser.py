"""Lineup extraction from ADE event detail pages.

ADE event pages link every performer to their profile::

    /en/artists-speakers/<slug>/<numeric id>/

The markup around those links varies between page templates, so extraction
runs an ordered list of :class:`LineupStrategy` objects -- most specific
lineup container first, then any profile link on the page, then embedded
JSON-LD ``performer`` data -- and stops at the first strategy that yields at
least one mention.  Adding a new page layout means adding one strategy.

Mentions are de-duplicated by external id and returned in document order.
A page with no discoverable lineup yields ``[]``; that is not an error.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from src.models.lineup import EventPage, LineupMention
from src.utils.logging import get_logger

SITE_BASE_URL = "https://www.amsterdam-dance-event.nl"
UNKNOWN_ARTIST = "Unknown Artist"

_PROFILE_ID_RE = re.compile(r"/artists-speakers/[^/]+/(\d+)/?$")
_EVENT_ID_RE = re.compile(r"/program/\d+/[^/]+/(\d+)/?$")
_ROLE_RE = re.compile(r"\((.*?)\)")
_PROFILE_LINK = 'a[href*="/artists-speakers/"]'

logger = get_logger(__name__)


def extract_profile_id(url: str | None) -> str | None:
    """Return the numeric artist id at the end of a profile URL, if any."""
    if not url:
        return None
    match = _PROFILE_ID_RE.search(url)
    return match.group(1) if match else None


def extract_event_id_from_url(url: str | None) -> str | None:
    """Return the numeric event id from ``/program/<year>/<slug>/<id>/``."""
    if not url:
        return None
    match = _EVENT_ID_RE.search(url)
    return match.group(1) if match else None


Extractor = Callable[["LineupParser", list[Tag]], list[LineupMention]]


@dataclass(frozen=True)
class LineupStrategy:
    """One ``(selector, extractor)`` pair in the fallback chain."""

    name: str
    selector: str
    extractor: Extractor


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------

def _from_profile_links(parser: LineupParser, links: list[Tag]) -> list[LineupMention]:
    mentions: list[LineupMention] = []
    for link in links:
        href = link.get("href")
        if not isinstance(href, str):
            continue
        external_id = extract_profile_id(href)
        if external_id is None:
            continue

        name = " ".join(link.get_text().split())
        role: str | None = None
        if link.parent is not None:
            role_match = _ROLE_RE.search(link.parent.get_text())
            if role_match:
                role = role_match.group(1).strip() or None

        mentions.append(
            LineupMention(
                external_id=external_id,
                name=name or UNKNOWN_ARTIST,
                profile_url=parser.absolute_url(href),
                role=role,
            )
        )
    return mentions


def _iter_performers(document: Any) -> Iterable[dict[str, Any]]:
    objects = document if isinstance(document, list) else [document]
    for obj in objects:
        if not isinstance(obj, dict):
            continue
        performers = obj.get("performer") or obj.get("performers")
        if isinstance(performers, dict):
            performers = [performers]
        if not isinstance(performers, list):
            continue
        for performer in performers:
            if isinstance(performer, dict):
                yield performer


def _from_json_ld(parser: LineupParser, scripts: list[Tag]) -> list[LineupMention]:
    mentions: list[LineupMention] = []
    for script in scripts:
        raw = script.string or script.get_text()
        try:
            document = json.loads(raw or "{}")
        except json.JSONDecodeError:
            logger.debug("json_ld_invalid", length=len(raw or ""))
            continue

        for performer in _iter_performers(document):
            url = performer.get("url")
            external_id = extract_profile_id(url if isinstance(url, str) else None)
            if external_id is None:
                continue
            name = performer.get("name")
            role = performer.get("type")
            mentions.append(
                LineupMention(
                    external_id=external_id,
                    name=name.strip() if isinstance(name, str) and name.strip() else UNKNOWN_ARTIST,
                    profile_url=parser.absolute_url(url),
                    role=role if isinstance(role, str) and role else None,
                )
            )
    return mentions


DEFAULT_STRATEGIES: tuple[LineupStrategy, ...] = (
    LineupStrategy("lineup_container", f".lineup {_PROFILE_LINK}", _from_profile_links),
    LineupStrategy("artists_container", f".artists {_PROFILE_LINK}", _from_profile_links),
    LineupStrategy("event_lineup_container", f".event-lineup {_PROFILE_LINK}", _from_profile_links),
    LineupStrategy("any_profile_link", _PROFILE_LINK, _from_profile_links),
    LineupStrategy("json_ld", 'script[type="application/ld+json"]', _from_json_ld),
)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class LineupParser:
    """Extracts lineup mentions and page metadata from event-page HTML.

    Parameters
    ----------
    site_base_url:
        Base used to absolutize relative profile links.
    strategies:
        Ordered strategy chain; defaults to :data:`DEFAULT_STRATEGIES`.
    """

    def __init__(
        self,
        site_base_url: str = SITE_BASE_URL,
        strategies: tuple[LineupStrategy, ...] | list[LineupStrategy] = DEFAULT_STRATEGIES,
    ) -> None:
        self._site_base_url = site_base_url.rstrip("/") + "/"
        self._strategies = tuple(strategies)

    @property
    def strategies(self) -> tuple[LineupStrategy, ...]:
        return self._strategies

    def absolute_url(self, href: str) -> str:
        return urljoin(self._site_base_url, href)

    def parse(self, html: str) -> list[LineupMention]:
        """Return the de-duplicated lineup of one event page."""
        mentions, _ = self._run_strategies(BeautifulSoup(html, "html.parser"))
        return mentions

    def analyze(self, url: str, html: str) -> EventPage:
        """Parse lineup and page metadata in a single pass over the DOM."""
        soup = BeautifulSoup(html, "html.parser")
        mentions, strategy = self._run_strategies(soup)
        return EventPage(
            url=url,
            html=html,
            lineup=mentions,
            metadata=self._metadata(soup, len(mentions)),
            strategy=strategy,
        )

    def extract_metadata(self, html: str) -> dict[str, Any]:
        soup = BeautifulSoup(html, "html.parser")
        mentions, _ = self._run_strategies(soup)
        return self._metadata(soup, len(mentions))

    # -- Private helpers -------------------------------------------------------

    def _run_strategies(self, soup: BeautifulSoup) -> tuple[list[LineupMention], str | None]:
        for strategy in self._strategies:
            elements = soup.select(strategy.selector)
            if not elements:
                continue
            mentions = _dedupe(strategy.extractor(self, elements))
            if mentions:
                logger.debug("lineup_strategy_matched", strategy=strategy.name, mentions=len(mentions))
                return mentions, strategy.name
        return [], None

    @staticmethod
    def _metadata(soup: BeautifulSoup, lineup_count: int) -> dict[str, Any]:
        def text_of(*selectors: str) -> str:
            for selector in selectors:
                node = soup.select_one(selector)
                if node is not None:
                    value = node.get_text(strip=True)
                    if value:
                        return value
            return ""

        def meta_content(attr: str, value: str) -> str | None:
            node = soup.find("meta", attrs={attr: value})
            content = node.get("content") if isinstance(node, Tag) else None
            return content if isinstance(content, str) else None

        return {
            "title": text_of("h1"),
            "venue": text_of(".venue-name", ".location"),
            "date": text_of(".event-date", ".date"),
            "description": text_of(".event-description") or meta_content("name", "description"),
            "image": meta_content("property", "og:image"),
            "lineup_count": lineup_count,
            "fetched_at": datetime.now(tz=timezone.utc).isoformat(),  # noqa: UP017
        }


def _dedupe(mentions: list[LineupMention]) -> list[LineupMention]:
    seen: set[str] = set()
    unique: list[LineupMention] = []
    for mention in mentions:
        if mention.external_id in seen:
            continue
        seen.add(mention.external_id)
        unique.append(mention)
    return unique
