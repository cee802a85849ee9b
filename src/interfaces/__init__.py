"""Public interface definitions for the external collaborators of adeSync.

Business logic (``src/services``, ``src/pipeline``) talks to the outside
world only through these abstract base classes; concrete adapters live in
``src/providers`` and are wired together in ``src/main.py``.

CONCRETE PROVIDER MAP:
    Interface             →  Concrete implementation (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    IListingProvider      →  AdeListingProvider
    IEventPageProvider    →  EventPageProvider
    ISyncStore            →  SQLiteSyncStore
    IProgressStore        →  MemoryProgressStore
"""

from src.interfaces.listing_provider import IEventPageProvider, IListingProvider, ListingPage
from src.interfaces.progress_store import IProgressStore
from src.interfaces.sync_store import ISyncStore

__all__ = [
    "IEventPageProvider",
    "IListingProvider",
    "IProgressStore",
    "ISyncStore",
    "ListingPage",
]
