"""Session-scoped controller tying filters, search, details and favorites together."""

from __future__ import annotations

import logging
import math
from typing import Any, Optional

from diskcache import Cache

from .client import DogsClient
from .errors import PuppyMatchError
from .favorites import FavoritesSet
from .filters import Criterion, FilterChip, FilterStateStore
from .hydrator import DetailHydrator
from .match import MatchResolver
from .models import DogRecord, MatchResult
from .search import SearchQueryEngine
from .session import SessionContext

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No dogs found. Please try adjusting your filters."
EMPTY_FAVORITES_MESSAGE = "Add cute dogs to your favorites to find a match!"


class DogSearchController:
    """Owns the filter, page and favorites state for one signed-in user.

    Every filter or page change re-derives the search request; the search
    engine decides whether a new request is needed, and hydration only runs
    for a newly accepted result.

    Args:
        client: Catalog client shared by every component.
        session: Session context; one is created around ``client`` if omitted.
        store: Search cache; defaults to the module-level disk cache.
        ttl_seconds: Search cache TTL override.
    """

    def __init__(
        self,
        client: Optional[DogsClient] = None,
        *,
        session: Optional[SessionContext] = None,
        store: Optional[Cache] = None,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        self.client = client or DogsClient()
        self.session = session or SessionContext(self.client)
        self.filters = FilterStateStore()
        self.search = SearchQueryEngine(self.client, store=store, ttl_seconds=ttl_seconds)
        self.hydrator = DetailHydrator(self.client)
        self.favorites = FavoritesSet()
        self.matcher = MatchResolver(self.client)

    # ===========================
    # Lifecycle
    # ===========================

    async def start(self) -> bool:
        """Check the session, then load breeds and the first page.

        Returns:
            False when the user has to log in first.
        """
        if not await self.session.check():
            return False
        await self.search.load_breeds()
        await self.refresh()
        return True

    async def login(self, name: str, email: str) -> None:
        await self.session.login(name, email)
        await self.search.load_breeds()
        await self.refresh()

    async def logout(self) -> None:
        self._clear_session_state()
        await self.session.logout()

    def _clear_session_state(self) -> None:
        self.favorites.clear()
        self.matcher.reset()

    async def _end_expired_session(self) -> bool:
        if not await self.session.enforce_timeout():
            return False
        self._clear_session_state()
        return True

    def _hydration_failed(self) -> bool:
        result = self.search.result
        return (
            result is not None
            and self.hydrator.error is not None
            and self.hydrator.current_ids == tuple(result.result_ids)
        )

    async def refresh(self, force: bool = False) -> list[DogRecord]:
        """Search for the current criteria and hydrate a newly accepted result.

        An unchanged search still re-hydrates when forced or when the last
        hydration of the current ids failed.
        """
        await self._end_expired_session()
        if not self.session.is_authenticated:
            logger.info("Not signed in; skipping search.")
            return self.records
        result = await self.search.refresh(self.filters.derive_request(), force=force)
        if result is not None:
            await self.hydrator.hydrate(result.result_ids)
        elif self.search.result is not None and (force or self._hydration_failed()):
            await self.hydrator.hydrate(self.search.result.result_ids)
        return self.records

    # ===========================
    # Filters + pagination
    # ===========================

    async def apply_filters(self, **changes: Any) -> list[DogRecord]:
        self.filters.apply_filters(**changes)
        return await self.refresh()

    async def set_page(self, page_number: int) -> list[DogRecord]:
        self.filters.set_page(page_number)
        return await self.refresh()

    async def remove_criterion(
        self, criterion: Criterion | str, value: Optional[str] = None
    ) -> list[DogRecord]:
        self.filters.remove_criterion(criterion, value)
        return await self.refresh()

    # ===========================
    # Favorites + match
    # ===========================

    def toggle_favorite(self, record: DogRecord) -> bool:
        return self.favorites.toggle(record)

    def is_favorite(self, record_id: str) -> bool:
        return self.favorites.is_favorite(record_id)

    async def find_match(self) -> Optional[DogRecord]:
        if await self._end_expired_session():
            return None
        result = await self.matcher.find_match(self.favorites)
        return result.record if result else None

    # ===========================
    # View state
    # ===========================

    @property
    def breeds(self) -> list[str]:
        return self.search.breeds

    @property
    def records(self) -> list[DogRecord]:
        return self.hydrator.records

    @property
    def total(self) -> int:
        return self.search.result.total if self.search.result else 0

    @property
    def page_number(self) -> int:
        return self.filters.page.page_number

    @property
    def page_count(self) -> int:
        return math.ceil(self.total / self.filters.page.page_size)

    @property
    def show_pagination(self) -> bool:
        return self.total > 0

    @property
    def no_results(self) -> bool:
        return self.search.result is not None and self.search.result.total == 0

    @property
    def is_loading(self) -> bool:
        return self.search.is_loading or self.hydrator.is_loading or self.matcher.is_loading

    @property
    def chips(self) -> list[FilterChip]:
        return self.filters.active_filters()

    @property
    def match(self) -> Optional[MatchResult]:
        return self.matcher.result

    @property
    def favorites_hint(self) -> Optional[str]:
        if self.favorites or self.matcher.result:
            return None
        return EMPTY_FAVORITES_MESSAGE

    def _errors(self) -> dict[str, Optional[PuppyMatchError]]:
        return {
            "search": self.search.error or self.search.breeds_error,
            "hydration": self.hydrator.error,
            "match": self.matcher.error,
            "auth": self.session.error,
        }

    @property
    def messages(self) -> dict[str, str]:
        """Return one user-facing message per failing domain."""
        return {
            domain: error.user_message()
            for domain, error in self._errors().items()
            if error is not None
        }

    def dismiss_error(self, domain: str) -> None:
        if domain == "search":
            self.search.error = None
            self.search.breeds_error = None
        elif domain == "hydration":
            self.hydrator.error = None
        elif domain == "match":
            self.matcher.error = None
        elif domain == "auth":
            self.session.error = None
        else:
            raise ValueError(f"Unknown error domain='{domain}'")
