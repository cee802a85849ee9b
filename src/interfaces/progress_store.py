"""Abstract base class for session-scoped progress storage.

Batch jobs write a :class:`BatchProgress` snapshot under a caller-chosen
session id; polling clients read it back.  Entries carry their own TTL so
completed sessions disappear after the retention window.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.progress import BatchProgress


class IProgressStore(ABC):
    """Contract for session progress snapshots."""

    @abstractmethod
    async def put(self, session_id: str, snapshot: BatchProgress, ttl: float | None = None) -> None:
        """Store *snapshot* under *session_id*, replacing any previous one.

        Parameters
        ----------
        session_id:
            Caller-supplied session identifier.
        snapshot:
            The latest progress state.
        ttl:
            Seconds until the entry expires.  ``None`` keeps it until it is
            replaced or deleted (used while a batch is still running).
        """

    @abstractmethod
    async def get(self, session_id: str) -> BatchProgress | None:
        """Return the latest unexpired snapshot, or ``None``."""

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Remove a session's snapshot.  No-op if absent."""

    @abstractmethod
    async def sweep(self) -> int:
        """Evict expired snapshots.

        Returns
        -------
        int
            Number of entries evicted.
        """
