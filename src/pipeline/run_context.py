"""Explicit per-run state passed into every orchestration method.

Services never hold a "current run" on ``self``; everything a method needs
to attribute its work -- run id, counters, where progress messages go, and
whether it should stop -- travels in a :class:`RunContext`.  Two runs can
therefore share the same service instances.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, field
from typing import Any

from src.models.run import LogLevel, SyncType

# (level, message, details) -> None | awaitable
ProgressSink = Callable[[LogLevel, str, dict[str, Any] | None], Awaitable[None] | None]


@dataclass
class RunStats:
    """Mutable counters for one run; mirrors the ``scrape_runs`` columns."""

    artists_pages: int = 0
    events_pages: int = 0
    total_items_processed: int = 0
    items_created: int = 0
    items_updated: int = 0
    items_unchanged: int = 0
    event_details_fetched: int = 0
    links_added: int = 0
    high_confidence_links: int = 0
    stubs_created: int = 0
    error_count: int = 0
    progress_percent: int = 0

    def as_update(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class RunContext:
    """Run id, counters, progress sink and cooperative cancel flag."""

    run_id: str
    sync_type: SyncType
    stats: RunStats = field(default_factory=RunStats)
    progress_sink: ProgressSink | None = None
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()

    def set_progress(self, done: int, total: int, start: int = 0, end: int = 100) -> None:
        """Map ``done/total`` onto the ``[start, end]`` slice of the run's percent."""
        if total <= 0:
            self.stats.progress_percent = end
            return
        fraction = min(1.0, max(0.0, done / total))
        self.stats.progress_percent = int(start + (end - start) * fraction)
