from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .client import DogsClient
from .errors import MatchError
from .favorites import FavoritesSet
from .models import MatchResult

logger = logging.getLogger(__name__)


class MatchResolver:
    """Requests one match from the favorites and resolves it locally.

    Only one request runs at a time; a call made while another is pending is
    ignored and returns None. The match POST is never retried.
    """

    def __init__(self, client: DogsClient) -> None:
        self.client = client
        self.result: Optional[MatchResult] = None
        self.error: Optional[MatchError] = None
        self._pending = False

    @property
    def is_loading(self) -> bool:
        return self._pending

    async def find_match(self, favorites: FavoritesSet) -> Optional[MatchResult]:
        """Ask the catalog to pick one dog from ``favorites``.

        On success the favorites are cleared. On failure they are left as
        they were so the user can retry.

        Args:
            favorites: Current favorites set.

        Returns:
            The match, or None when nothing was resolved.
        """
        if not favorites:
            logger.debug("No favorites; skipping match request.")
            return None
        if self._pending:
            logger.info("Match already in progress; ignoring repeated request.")
            return None

        ids = favorites.ids()
        self._pending = True
        try:
            match_id = await asyncio.to_thread(self.client.get_match, ids)
            record = favorites.get(match_id)
            if record is None:
                raise MatchError(f"Matched id {match_id} is not among the favorites")
        except MatchError as exc:
            self.error = exc
            logger.warning(f"Match failed; keeping {len(favorites)} favorites: {exc}")
            return None
        finally:
            self._pending = False

        self.result = MatchResult(record=record, favorite_ids=tuple(ids))
        self.error = None
        favorites.clear()
        logger.info(f"Matched dog {match_id} from {len(ids)} favorites.")
        return self.result

    def reset(self) -> None:
        self.result = None
        self.error = None
