"""
Catalog search with:
- Last-request-wins reconciliation via a generation counter
- Disk-backed caching (diskcache) + TTL per derived request key
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from diskcache import Cache

from .client import DogsClient
from .config import get_cache_dir, get_cache_ttl
from .errors import SearchError
from .filters import SearchRequest
from .models import SearchResult

logger = logging.getLogger(__name__)

BREEDS_CACHE_KEY = "breeds"
SEARCH_CACHE_PREFIX = "search:"


# ===========================
# Cache
# ===========================

cache = Cache(get_cache_dir())


def cache_get(store: Cache, key: str) -> Any:
    """Return a cached value, treating unreadable entries as misses.

    Args:
        store: Cache to read from.
        key: Cache key.

    Returns:
        The cached value or None.
    """
    try:
        return store.get(key)
    except Exception:
        store.delete(key)
        return None


class SearchQueryEngine:
    """Issues catalog searches and keeps only the newest request's answer.

    Args:
        client: Catalog client used for the blocking HTTP calls.
        store: Result cache. Defaults to the module-level disk cache.
        ttl_seconds: How long a result stays reusable for an unchanged query.
    """

    def __init__(
        self,
        client: DogsClient,
        store: Optional[Cache] = None,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        self.client = client
        self.cache = store if store is not None else cache
        self.ttl_seconds = get_cache_ttl() if ttl_seconds is None else ttl_seconds

        self.result: Optional[SearchResult] = None
        self.error: Optional[SearchError] = None
        self.breeds: list[str] = []
        self.breeds_error: Optional[SearchError] = None

        self._generation = 0
        self._issued_key: Optional[str] = None
        self._pending_key: Optional[str] = None
        self._failed_key: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self._pending_key is not None

    @property
    def generation(self) -> int:
        return self._generation

    def _accept(self, key: str, result: SearchResult) -> SearchResult:
        self.result = result
        self.error = None
        self._pending_key = None
        self._failed_key = None
        logger.info(f"Accepted search {key}: {len(result.result_ids)} ids of {result.total}.")
        return result

    async def refresh(
        self, request: SearchRequest, force: bool = False
    ) -> Optional[SearchResult]:
        """Run the search for ``request`` unless it is already current.

        A new search is issued only when the derived key differs from the
        last issued one, the last attempt for it failed, or ``force`` is set.
        Responses for superseded requests are dropped.

        Args:
            request: Derived search request.
            force: Bypass both the unchanged-key check and the cache.

        Returns:
            The newly accepted result, or None when nothing was applied.
        """
        key = request.key
        if not force and key == self._issued_key and key != self._failed_key:
            logger.debug(f"Search {key} unchanged; not re-issuing.")
            return None

        self._generation += 1
        generation = self._generation
        self._issued_key = key
        cache_key = f"{SEARCH_CACHE_PREFIX}{key}"

        if not force:
            hit = cache_get(self.cache, cache_key)
            if hit is not None:
                logger.info(f"Using cached search result for {key}.")
                return self._accept(key, hit)

        self._pending_key = key
        try:
            result = await asyncio.to_thread(self.client.search_dogs, request.params())
        except SearchError as exc:
            if generation != self._generation:
                logger.info(f"Ignoring failure of superseded search {key}.")
                return None
            self._pending_key = None
            self._failed_key = key
            self.error = exc
            logger.warning(f"Search {key} failed; keeping previous results: {exc}")
            return None

        self.cache.set(cache_key, result, expire=self.ttl_seconds)
        if generation != self._generation:
            logger.info(f"Discarding stale response for superseded search {key}.")
            return None
        return self._accept(key, result)

    async def load_breeds(self, force: bool = False) -> list[str]:
        """Fetch the breed names once and keep them cached."""
        if not force:
            hit = cache_get(self.cache, BREEDS_CACHE_KEY)
            if hit is not None:
                self.breeds = list(hit)
                return self.breeds

        try:
            breeds = await asyncio.to_thread(self.client.fetch_breeds)
        except SearchError as exc:
            self.breeds_error = exc
            logger.warning(f"Could not load breeds: {exc}")
            return self.breeds

        self.breeds = breeds
        self.breeds_error = None
        self.cache.set(BREEDS_CACHE_KEY, breeds, expire=self.ttl_seconds)
        logger.info(f"Loaded {len(breeds)} breeds.")
        return self.breeds
