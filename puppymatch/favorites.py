from __future__ import annotations

from typing import Iterator, Optional

from .models import DogRecord


class FavoritesSet:
    """Session-scoped favorites keyed by dog id, kept in the order added."""

    def __init__(self) -> None:
        self._records: dict[str, DogRecord] = {}

    def __contains__(self, record_id: object) -> bool:
        if isinstance(record_id, DogRecord):
            record_id = record_id.id
        return record_id in self._records

    def __iter__(self) -> Iterator[DogRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def is_favorite(self, record_id: str) -> bool:
        return record_id in self._records

    def get(self, record_id: str) -> Optional[DogRecord]:
        return self._records.get(record_id)

    def add(self, record: DogRecord) -> None:
        self._records.setdefault(record.id, record)

    def remove(self, record_id: str) -> None:
        self._records.pop(record_id, None)

    def toggle(self, record: DogRecord) -> bool:
        """Flip membership for ``record``.

        Returns:
            True if the record is a favorite after the call.
        """
        if record.id in self._records:
            del self._records[record.id]
            return False
        self._records[record.id] = record
        return True

    def ids(self) -> list[str]:
        return list(self._records)

    def records(self) -> list[DogRecord]:
        return list(self._records.values())

    def clear(self) -> None:
        self._records.clear()
