"""In-memory progress store using cachetools.TLRUCache.

Unlike a plain ``TTLCache`` (one TTL for every entry), ``TLRUCache`` asks a
time-to-use function for each item's expiry, which gives the two-phase
lifecycle batch sessions need:

    - while a batch runs, its snapshot is written with ``ttl=None`` and
      never expires;
    - the final snapshot is written with the retention TTL (300 s by
      default) and disappears once that window passes.

Single-process only; a Redis adapter implementing IProgressStore would be
the multi-worker replacement.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog
from cachetools import TLRUCache

from src.interfaces.progress_store import IProgressStore
from src.models.progress import BatchProgress

logger = structlog.get_logger(logger_name=__name__)


@dataclass(frozen=True)
class _Entry:
    snapshot: BatchProgress
    ttl: float | None


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return math.inf if entry.ttl is None else now + entry.ttl


class MemoryProgressStore(IProgressStore):
    """Session progress snapshots held in a ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of sessions held before the least-recently-used one
        is evicted.
    timer:
        Clock used for expiry; injectable for tests.
    """

    def __init__(self, max_size: int = 1000, timer: Callable[[], float] = time.monotonic) -> None:
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=max_size, ttu=_time_to_use, timer=timer
        )

    async def put(self, session_id: str, snapshot: BatchProgress, ttl: float | None = None) -> None:
        self._cache[session_id] = _Entry(snapshot=snapshot, ttl=ttl)
        logger.debug("progress_put", session_id=session_id, ttl=ttl, percent=snapshot.progress_percent)

    async def get(self, session_id: str) -> BatchProgress | None:
        entry = self._cache.get(session_id)
        return entry.snapshot if entry is not None else None

    async def delete(self, session_id: str) -> None:
        self._cache.pop(session_id, None)

    async def sweep(self) -> int:
        evicted = len(self._cache.expire())
        if evicted:
            logger.info("progress_swept", evicted=evicted)
        return evicted
