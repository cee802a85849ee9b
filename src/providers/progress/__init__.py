"""Session progress providers.

MemoryProgressStore keeps per-session batch snapshots in a cachetools
TLRUCache with a per-entry expiry.
"""

from src.providers.progress.memory_progress_store import MemoryProgressStore

__all__ = ["MemoryProgressStore"]
