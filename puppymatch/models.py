from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class DogRecord:
    id: str
    img: Optional[str] = None
    name: Optional[str] = None
    age: Optional[int] = None
    zip_code: Optional[str] = None
    breed: Optional[str] = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "DogRecord":
        """Build a record from one item of the ``POST /dogs`` response.

        Args:
            payload: Decoded JSON object for a single dog.

        Returns:
            Parsed DogRecord.

        Raises:
            ValueError: If the payload has no id.
        """
        dog_id = str(payload.get("id") or "").strip()
        if not dog_id:
            raise ValueError(f"Dog payload is missing an id: {payload!r}")

        age = payload.get("age")
        try:
            age = int(age) if age is not None else None
        except (TypeError, ValueError):
            age = None

        zip_code = payload.get("zip_code")
        return cls(
            id=dog_id,
            img=payload.get("img"),
            name=payload.get("name"),
            age=age,
            zip_code=str(zip_code) if zip_code is not None else None,
            breed=payload.get("breed"),
        )

    def __str__(self) -> str:
        """Return a human-readable record summary.

        Returns:
            Formatted record string.
        """

        def fmt(v):
            return v if v is not None else "--"

        return (
            f"Dog #{self.id}\n"
            f"{'-' * 60}\n"
            f"Name     : {fmt(self.name)}\n"
            f"Breed    : {fmt(self.breed)}\n"
            f"Age      : {fmt(self.age)} years\n"
            f"Zip Code : {fmt(self.zip_code)}\n"
            f"Image    : {fmt(self.img)}\n"
        )


@dataclass(frozen=True)
class SearchResult:
    result_ids: tuple[str, ...] = ()
    total: int = 0
    next_cursor: Optional[str] = None
    prev_cursor: Optional[str] = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "SearchResult":
        """Build a result from the ``GET /dogs/search`` response body."""
        ids = payload.get("resultIds") or []
        total = payload.get("total") or 0
        return cls(
            result_ids=tuple(str(i) for i in ids),
            total=max(0, int(total)),
            next_cursor=payload.get("next") or None,
            prev_cursor=payload.get("prev") or None,
        )

    @property
    def has_next(self) -> bool:
        return self.next_cursor is not None

    @property
    def has_prev(self) -> bool:
        return self.prev_cursor is not None


@dataclass(frozen=True)
class MatchResult:
    record: DogRecord
    favorite_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def match_id(self) -> str:
        return self.record.id
