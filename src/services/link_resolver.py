"""Artist-event link resolution.

Two kinds of evidence produce links:

- **LineupSourced** -- an artist profile link found on the event's detail
  page.  Ground truth: confidence 1.0.  An unknown artist id becomes a stub
  artist so the link can still be recorded.
- **TextSourced** -- a :class:`TextMatch` from the free-text name matcher.
  Confidence is the matcher's score; only existing artists are linked.

Both go through :meth:`LinkResolver.ensure_link`, which relies on the
store's uniqueness guarantee: a second link for the same (artist, event)
pair is a silent no-op and the first one's confidence and source stay.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import structlog

from src.interfaces.sync_store import ISyncStore
from src.models.entities import ArtistEventLink, ArtistRecord, EventRecord, LinkSource
from src.models.lineup import LineupMention, TextMatch
from src.pipeline.run_context import RunContext
from src.utils.confidence import HIGH_CONFIDENCE
from src.utils.logging import get_logger

DEFAULT_ROLE = "performer"


@dataclass(frozen=True)
class LinkProposal:
    """An artist and how strongly the evidence ties it to an event."""

    artist: ArtistRecord
    confidence: float
    role: str | None
    match_details: dict[str, Any] = field(default_factory=dict)
    stub_created: bool = False


@dataclass(frozen=True)
class LinkOutcome:
    """What :meth:`LinkResolver.resolve` did for one piece of evidence."""

    artist: ArtistRecord
    confidence: float
    created: bool
    stub_created: bool


class LinkStrategy(ABC):
    """Turns one piece of evidence into a :class:`LinkProposal`."""

    source: LinkSource

    @abstractmethod
    async def propose(
        self, store: ISyncStore, ctx: RunContext, event: EventRecord, evidence: Any
    ) -> LinkProposal | None:
        """Return a proposal, or ``None`` when the evidence does not link."""


class LineupSourced(LinkStrategy):
    """Links from a parsed lineup mention, creating stubs for unknown ids."""

    def __init__(self, source: LinkSource = LinkSource.LINEUP) -> None:
        self.source = source

    async def propose(
        self, store: ISyncStore, ctx: RunContext, event: EventRecord, evidence: LineupMention
    ) -> LinkProposal:
        artist = await store.get_artist_by_external_id(evidence.external_id)
        stub_created = False
        if artist is None:
            artist = await store.insert_stub_artist(
                evidence.external_id, evidence.name, evidence.profile_url, ctx.run_id
            )
            stub_created = True
            ctx.stats.stubs_created += 1

        return LinkProposal(
            artist=artist,
            confidence=1.0,
            role=evidence.role or DEFAULT_ROLE,
            match_details={
                "parsed_from": "lineup",
                "artist_name": evidence.name,
                "profile_url": evidence.profile_url,
                "is_stub": artist.is_stub,
            },
            stub_created=stub_created,
        )


class TextSourced(LinkStrategy):
    """Links from a free-text match produced by the name matcher."""

    source = LinkSource.AUTO_MATCHER

    async def propose(
        self,
        store: ISyncStore,
        ctx: RunContext,
        event: EventRecord,
        evidence: tuple[ArtistRecord, TextMatch],
    ) -> LinkProposal:
        artist, match = evidence
        return LinkProposal(
            artist=artist,
            confidence=match.confidence,
            role=DEFAULT_ROLE,
            match_details={
                "match_type": match.match_type.value,
                "matched_text": match.matched_text,
                "details": match.details,
            },
        )


class LinkResolver:
    """Persists link proposals and keeps the run's link counters."""

    def __init__(self, store: ISyncStore, high_confidence_threshold: float = HIGH_CONFIDENCE) -> None:
        self._store = store
        self._high = high_confidence_threshold
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def high_confidence_threshold(self) -> float:
        return self._high

    async def resolve(
        self,
        ctx: RunContext,
        strategy: LinkStrategy,
        event: EventRecord,
        evidence: Any,
    ) -> LinkOutcome | None:
        """Run *strategy* on *evidence* and store the resulting link."""
        proposal = await strategy.propose(self._store, ctx, event, evidence)
        if proposal is None:
            return None

        created = await self.ensure_link(
            ctx,
            artist_id=proposal.artist.id,
            event_id=event.id,
            confidence=proposal.confidence,
            source=strategy.source,
            role=proposal.role,
            match_details=proposal.match_details,
        )
        return LinkOutcome(
            artist=proposal.artist,
            confidence=proposal.confidence,
            created=created,
            stub_created=proposal.stub_created,
        )

    async def ensure_link(
        self,
        ctx: RunContext,
        artist_id: int,
        event_id: int,
        confidence: float,
        source: LinkSource,
        role: str | None = None,
        match_details: dict[str, Any] | None = None,
    ) -> bool:
        """Insert the link unless the pair is already linked.

        Returns ``True`` when a new link was created.
        """
        created = await self._store.insert_link(
            ArtistEventLink(
                artist_id=artist_id,
                event_id=event_id,
                confidence=confidence,
                source=source,
                role=role,
                match_details=match_details or {},
                added_by_run=ctx.run_id,
            )
        )
        if created:
            ctx.stats.links_added += 1
            if confidence >= self._high:
                ctx.stats.high_confidence_links += 1
            self._logger.debug(
                "link_created",
                artist_id=artist_id,
                event_id=event_id,
                confidence=round(confidence, 3),
                source=source.value,
            )
        return created
