"""Sync store providers.

SQLiteSyncStore persists artists, events, links and the run ledger via
aiosqlite.  A hosted relational store can replace it by implementing
ISyncStore.
"""

from src.providers.store.sqlite_store import SQLiteSyncStore

__all__ = ["SQLiteSyncStore"]
