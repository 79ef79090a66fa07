from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from .client import DogsClient
from .errors import HydrationError
from .models import DogRecord

logger = logging.getLogger(__name__)


class DetailHydrator:
    """Turns the latest search ids into full records.

    Only a change in the id sequence triggers a fetch. A response that no
    longer matches the current ids is dropped, and a failed fetch keeps the
    records already on display.
    """

    def __init__(self, client: DogsClient) -> None:
        self.client = client
        self.records: list[DogRecord] = []
        self.error: Optional[HydrationError] = None

        self._generation = 0
        self._current_ids: Optional[tuple[str, ...]] = None
        self._pending = False
        self._failed = False

    @property
    def is_loading(self) -> bool:
        return self._pending

    @property
    def current_ids(self) -> Optional[tuple[str, ...]]:
        return self._current_ids

    async def hydrate(self, result_ids: Iterable[str]) -> Optional[list[DogRecord]]:
        """Fetch records for ``result_ids`` in one batched call.

        Args:
            result_ids: Ordered ids from the accepted search result.

        Returns:
            The records now on display, or None when nothing was applied.
        """
        ids = tuple(result_ids)
        if ids == self._current_ids and not self._failed:
            return None

        self._generation += 1
        generation = self._generation
        self._current_ids = ids
        self._failed = False

        if not ids:
            self._pending = False
            self.records = []
            self.error = None
            return self.records

        self._pending = True
        try:
            fetched = await asyncio.to_thread(self.client.fetch_dogs, list(ids))
        except HydrationError as exc:
            if generation != self._generation:
                logger.info(f"Ignoring failed hydration for superseded ids {list(ids)}.")
                return None
            self._pending = False
            self._failed = True
            self.error = exc
            logger.warning(f"Hydration failed; keeping {len(self.records)} displayed records: {exc}")
            return None

        if generation != self._generation:
            logger.info(f"Discarding stale hydration for ids {list(ids)}.")
            return None

        by_id = {record.id: record for record in fetched}
        missing = [i for i in ids if i not in by_id]
        if missing:
            logger.warning(f"Catalog returned no details for {len(missing)} id(s): {missing}")

        self._pending = False
        self.error = None
        self.records = [by_id[i] for i in ids if i in by_id]
        return self.records
