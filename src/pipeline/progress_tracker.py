"""Session progress tracking with callback-based listener notification.

Batch jobs report a :class:`BatchProgress` snapshot per session id;
snapshots live in an :class:`IProgressStore` so polling clients can read
them and expiry is handled by the store, not by timers in this class.

# ─── HOW PROGRESS TRACKING WORKS ──────────────────────────────────────
#
#   BatchService ──update()──→ ProgressTracker ──put()──→ IProgressStore
#                                              ──callback()──→ listeners
#
#   1. start() writes the initial snapshot (completed=False, no expiry)
#   2. update() merges changes into the latest snapshot and re-stores it
#   3. complete() marks completed=True and stores it with the retention
#      TTL, after which get_status() returns None
#   4. Listeners (sync or async) are notified after every write; a
#      failing listener is logged and skipped
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import structlog

from src.interfaces.progress_store import IProgressStore
from src.models.progress import BatchProgress
from src.utils.logging import get_logger

DEFAULT_RETENTION_SECONDS = 300


class ProgressTracker:
    """Stores and broadcasts per-session batch progress.

    Parameters
    ----------
    store:
        Backing snapshot store.
    retention_seconds:
        How long a completed session stays retrievable.
    """

    def __init__(self, store: IProgressStore, retention_seconds: float = DEFAULT_RETENTION_SECONDS) -> None:
        self._store = store
        self._retention_seconds = retention_seconds
        self._listeners: dict[str, list[Callable]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def start(self, session_id: str, message: str, events_total: int = 0) -> BatchProgress:
        """Write the initial, not-yet-completed snapshot for a session."""
        snapshot = BatchProgress(message=message, events_total=events_total)
        await self._store.put(session_id, snapshot, ttl=None)
        await self._notify_listeners(session_id, snapshot)
        return snapshot

    async def update(self, session_id: str, **changes: Any) -> BatchProgress:
        """Merge *changes* into the session's latest snapshot.

        Parameters
        ----------
        session_id:
            The batch session to update.
        **changes:
            Any :class:`BatchProgress` field (snake_case).
        """
        snapshot = self._merge(await self._current(session_id), changes)
        await self._store.put(session_id, snapshot, ttl=None)

        self._logger.debug(
            "progress_update",
            session_id=session_id,
            progress=snapshot.progress_percent,
            message=snapshot.message,
        )
        await self._notify_listeners(session_id, snapshot)
        return snapshot

    async def complete(self, session_id: str, **changes: Any) -> BatchProgress:
        """Mark the session completed and start its retention window.

        Progress jumps to 100 unless the batch finished with an error.
        """
        changes["completed"] = True
        if not changes.get("error"):
            changes.setdefault("progress_percent", 100)
        snapshot = self._merge(await self._current(session_id), changes)
        await self._store.put(session_id, snapshot, ttl=self._retention_seconds)

        self._logger.info(
            "progress_completed",
            session_id=session_id,
            error=snapshot.error,
            retention_s=self._retention_seconds,
        )
        await self._notify_listeners(session_id, snapshot)
        return snapshot

    async def get_status(self, session_id: str) -> BatchProgress | None:
        """Return the latest snapshot, or ``None`` if unknown or expired."""
        return await self._store.get(session_id)

    async def sweep(self) -> int:
        """Evict expired snapshots; returns how many were removed."""
        return await self._store.sweep()

    def register_listener(self, session_id: str, callback: Callable) -> None:
        """Register a callback ``(session_id, snapshot)`` for a session."""
        if session_id not in self._listeners:
            self._listeners[session_id] = []

        if callback not in self._listeners[session_id]:
            self._listeners[session_id].append(callback)
            self._logger.debug(
                "listener_registered",
                session_id=session_id,
                total_listeners=len(self._listeners[session_id]),
            )

    def unregister_listener(self, session_id: str, callback: Callable) -> None:
        """Remove a previously registered callback for a session."""
        listeners = self._listeners.get(session_id, [])
        if callback in listeners:
            listeners.remove(callback)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _current(self, session_id: str) -> BatchProgress:
        return await self._store.get(session_id) or BatchProgress()

    @staticmethod
    def _merge(snapshot: BatchProgress, changes: dict[str, Any]) -> BatchProgress:
        if "progress_percent" in changes:
            changes["progress_percent"] = int(max(0, min(100, changes["progress_percent"])))
        return snapshot.model_copy(update=changes)

    async def _notify_listeners(self, session_id: str, snapshot: BatchProgress) -> None:
        """Invoke all registered listeners for a session.

        Listeners that raise are logged and skipped.
        """
        for callback in self._listeners.get(session_id, []):
            try:
                result = callback(session_id, snapshot)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    session_id=session_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
