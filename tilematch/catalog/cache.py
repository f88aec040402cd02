"""
Catalog Cache - Process-wide item list.

The cache:
- Is filled by the first successful fetch
- Is reused by every later game start (no expiry)
- Never caches a failure: the next start tries again
- Never caches an empty catalog

Usage:
    cache = CatalogCache(PokeApiCatalogProvider())
    items = cache.get()          # fetches once
    items = cache.get()          # served from memory
    items = cache.get(fetch=False)  # never touches the network
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import threading
import time

from .provider import CatalogProvider, PokeApiCatalogProvider
from ..engine_core.state import Item
from ..engine_core.errors import CatalogUnavailable

logger = logging.getLogger(__name__)


@dataclass
class CatalogEntry:
    """The cached catalog and its bookkeeping."""
    items: list[Item]
    fetched_at: float = 0.0
    last_accessed: float = 0.0
    access_count: int = 0


@dataclass
class CatalogCache:
    """
    In-memory cache in front of a CatalogProvider.

    A lock serializes fetches so a startup prefetch and a game start
    running in worker threads do not both hit the network.
    """
    provider: CatalogProvider = field(default_factory=PokeApiCatalogProvider)
    _entry: CatalogEntry | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def loaded(self) -> bool:
        return self._entry is not None

    @property
    def size(self) -> int:
        return len(self._entry.items) if self._entry else 0

    def get(self, fetch: bool = True) -> list[Item]:
        """
        Return every cached item, fetching on the first call.

        Raises:
            CatalogUnavailable: the fetch failed, returned nothing, or
                fetch=False and the cache is still cold
        """
        entry = self._entry
        if entry is None:
            if not fetch:
                raise CatalogUnavailable("Catalog not loaded yet")
            entry = self._load()

        entry.last_accessed = time.time()
        entry.access_count += 1
        return entry.items

    def warm(self) -> bool:
        """Fetch the catalog if needed. Returns False instead of raising."""
        try:
            self.get()
        except CatalogUnavailable as e:
            logger.warning(f"Catalog prefetch failed, will retry on game start: {e}")
            return False
        return True

    def invalidate(self):
        """Drop the cached catalog so the next get() fetches again."""
        self._entry = None

    def _load(self) -> CatalogEntry:
        with self._lock:
            if self._entry is not None:
                return self._entry

            items = _unique_items(self.provider.fetch_catalog())
            if not items:
                raise CatalogUnavailable("No suitable items found in catalog")

            now = time.time()
            self._entry = CatalogEntry(items=items, fetched_at=now, last_accessed=now)
            logger.info(f"Catalog loaded: {len(items)} items")
            return self._entry


def _unique_items(items: list[Item]) -> list[Item]:
    """Keep the first item per id, preserving order."""
    seen: set[int] = set()
    unique = []
    for item in items:
        if item.item_id <= 0 or item.item_id in seen:
            continue
        seen.add(item.item_id)
        unique.append(item)
    return unique


_default_cache: CatalogCache | None = None


def get_default_cache() -> CatalogCache:
    """The process-wide cache backed by PokeAPI."""
    global _default_cache
    if _default_cache is None:
        _default_cache = CatalogCache()
    return _default_cache
