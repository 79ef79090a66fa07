"""Filter criteria, pagination, and the derived search request."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Optional

from .config import (
    DEFAULT_SORT,
    PAGE_SIZE,
    SORT_DIRECTIONS,
    SORT_FIELDS,
    ZIP_CODE_LENGTH,
)

logger = logging.getLogger(__name__)

ZIP_CODE_RE = re.compile(rf"\d{{{ZIP_CODE_LENGTH}}}")
ZIP_SPLIT_RE = re.compile(r"[,\s]+")
AGE_RE = re.compile(r"\d+")

# Query keys as the catalog expects them; arrays are sent as repeated keys.
BREEDS_PARAM = "breeds[]"
ZIP_CODES_PARAM = "zipCodes[]"

SORT_LABELS = {
    "breed:asc": "Breed (A-Z)",
    "breed:desc": "Breed (Z-A)",
    "name:asc": "Dog Name (A-Z)",
    "name:desc": "Dog Name (Z-A)",
    "age:asc": "Age (Youngest First)",
    "age:desc": "Age (Oldest First)",
}


class Criterion(str, Enum):
    SELECTED_BREEDS = "selected_breeds"
    ZIP_CODES = "zip_codes"
    AGE_MIN = "age_min"
    AGE_MAX = "age_max"
    SORT_ORDER = "sort_order"


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def sanitize_zip_codes(value: str | Iterable[str] | None) -> tuple[str, ...]:
    """Keep only well-formed 5-digit zip codes, in entry order, deduped.

    Malformed tokens are dropped rather than rejected.

    Args:
        value: Raw comma/space separated text, or an iterable of tokens.

    Returns:
        Tuple of accepted zip codes.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        tokens = ZIP_SPLIT_RE.split(value)
    else:
        tokens = [str(item) for item in value]

    cleaned = [t.strip() for t in tokens if ZIP_CODE_RE.fullmatch(t.strip())]
    dropped = [t for t in tokens if t.strip() and not ZIP_CODE_RE.fullmatch(t.strip())]
    if dropped:
        logger.debug(f"Dropped malformed zip tokens: {dropped}")
    return tuple(dict.fromkeys(cleaned))


def parse_age(value: int | str | None) -> Optional[int]:
    """Return a non-negative integer age, or None for unconstrained.

    Blank, non-numeric and negative input all mean "no bound".
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    text = str(value).strip()
    if not AGE_RE.fullmatch(text):
        return None
    return int(text)


@dataclass(frozen=True)
class SortOrder:
    field: str = "breed"
    direction: str = "asc"

    def __post_init__(self) -> None:
        """Validate field and direction against the catalog's options."""
        if self.field not in SORT_FIELDS:
            raise ValueError(f"Unknown sort field='{self.field}'. Options: {SORT_FIELDS}")
        if self.direction not in SORT_DIRECTIONS:
            raise ValueError(
                f"Unknown sort direction='{self.direction}'. Options: {SORT_DIRECTIONS}"
            )

    @classmethod
    def parse(cls, value: "SortOrder | str") -> "SortOrder":
        if isinstance(value, SortOrder):
            return value
        sort_field, sep, direction = str(value).strip().partition(":")
        if not sep:
            raise ValueError(f"Sort order must look like 'field:direction', got {value!r}")
        return cls(sort_field, direction)

    @property
    def wire(self) -> str:
        return f"{self.field}:{self.direction}"

    @property
    def label(self) -> str:
        return SORT_LABELS[self.wire]

    @property
    def is_default(self) -> bool:
        return self.wire == DEFAULT_SORT


DEFAULT_SORT_ORDER = SortOrder.parse(DEFAULT_SORT)


@dataclass(frozen=True)
class FilterCriteria:
    selected_breeds: frozenset[str] = frozenset()
    zip_codes: tuple[str, ...] = ()
    age_min: Optional[int] = None
    age_max: Optional[int] = None
    sort_order: SortOrder = DEFAULT_SORT_ORDER

    def __post_init__(self) -> None:
        """Coerce collections and keep age_max >= age_min."""
        breeds = frozenset(b.strip() for b in self.selected_breeds if b and b.strip())
        object.__setattr__(self, "selected_breeds", breeds)
        object.__setattr__(self, "zip_codes", sanitize_zip_codes(self.zip_codes))
        object.__setattr__(self, "age_min", parse_age(self.age_min))
        object.__setattr__(self, "age_max", parse_age(self.age_max))
        object.__setattr__(self, "sort_order", SortOrder.parse(self.sort_order))
        if (
            self.age_min is not None
            and self.age_max is not None
            and self.age_max < self.age_min
        ):
            low, high = self.age_max, self.age_min
            object.__setattr__(self, "age_min", low)
            object.__setattr__(self, "age_max", high)


@dataclass(frozen=True)
class PageState:
    page_number: int = 1
    page_size: int = PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size


@dataclass(frozen=True)
class SearchRequest:
    breeds: tuple[str, ...] = ()
    zip_codes: tuple[str, ...] = ()
    age_min: Optional[int] = None
    age_max: Optional[int] = None
    size: int = PAGE_SIZE
    from_: int = 0
    sort: str = DEFAULT_SORT

    def as_dict(self) -> dict[str, Any]:
        """Return the request shape, leaving out unset fields."""
        shape: dict[str, Any] = {}
        if self.breeds:
            shape["breeds"] = list(self.breeds)
        if self.zip_codes:
            shape["zipCodes"] = list(self.zip_codes)
        if self.age_min is not None:
            shape["ageMin"] = self.age_min
        if self.age_max is not None:
            shape["ageMax"] = self.age_max
        shape["size"] = self.size
        shape["from"] = self.from_
        shape["sort"] = self.sort
        return shape

    def params(self) -> list[tuple[str, Any]]:
        """Return query parameters with arrays as repeated keys."""
        params: list[tuple[str, Any]] = [(BREEDS_PARAM, b) for b in self.breeds]
        params.extend((ZIP_CODES_PARAM, z) for z in self.zip_codes)
        shape = self.as_dict()
        for key in ("ageMin", "ageMax", "size", "from", "sort"):
            value = shape.get(key)
            if value is not None:
                params.append((key, value))
        return params

    @property
    def key(self) -> str:
        """Canonical serialization used to detect a changed search."""
        return json.dumps(self.as_dict(), sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True)
class FilterChip:
    criterion: Criterion
    label: str
    value: Optional[str] = None
    removable: bool = True


def derive_request(criteria: FilterCriteria, page: PageState) -> SearchRequest:
    """Derive the search request for a criteria/page pair.

    Breeds are sorted so that the unordered selection always serializes the
    same way.
    """
    return SearchRequest(
        breeds=tuple(sorted(criteria.selected_breeds)),
        zip_codes=criteria.zip_codes,
        age_min=criteria.age_min,
        age_max=criteria.age_max,
        size=page.page_size,
        from_=page.offset,
        sort=criteria.sort_order.wire,
    )


@dataclass
class FilterStateStore:
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    page: PageState = field(default_factory=PageState)

    def _reset_page(self) -> None:
        self.page = replace(self.page, page_number=1)

    def apply_filters(
        self,
        *,
        selected_breeds: Iterable[str] = UNSET,
        zip_codes: Iterable[str] = UNSET,
        zip_input: str = UNSET,
        age_min: int | str | None = UNSET,
        age_max: int | str | None = UNSET,
        sort_order: SortOrder | str = UNSET,
    ) -> FilterCriteria:
        """Merge the given fields into the criteria and go back to page 1.

        Args:
            selected_breeds: Replacement breed selection.
            zip_codes: Replacement zip list; malformed entries are dropped.
            zip_input: Raw zip text as typed; sanitized like zip_codes.
            age_min: Minimum age; blank or invalid means unconstrained.
            age_max: Maximum age; blank or invalid means unconstrained.
            sort_order: SortOrder or wire value such as "age:desc".

        Returns:
            The merged criteria.
        """
        if zip_codes is not UNSET and zip_input is not UNSET:
            raise TypeError("Pass zip_codes or zip_input, not both")

        changes: dict[str, Any] = {}
        if selected_breeds is not UNSET:
            if isinstance(selected_breeds, str):
                selected_breeds = [selected_breeds]
            changes["selected_breeds"] = frozenset(selected_breeds or ())
        if zip_codes is not UNSET:
            changes["zip_codes"] = sanitize_zip_codes(zip_codes)
        if zip_input is not UNSET:
            changes["zip_codes"] = sanitize_zip_codes(zip_input)
        if age_min is not UNSET:
            changes["age_min"] = parse_age(age_min)
        if age_max is not UNSET:
            changes["age_max"] = parse_age(age_max)
        if sort_order is not UNSET:
            changes["sort_order"] = SortOrder.parse(sort_order)

        self.criteria = replace(self.criteria, **changes)
        self._reset_page()
        logger.debug(f"Applied filters {sorted(changes)}; page reset to 1.")
        return self.criteria

    def set_page(self, page_number: int) -> PageState:
        self.page = replace(self.page, page_number=max(1, int(page_number)))
        return self.page

    def remove_criterion(
        self, criterion: Criterion | str, value: Optional[str] = None
    ) -> FilterCriteria:
        """Clear one criterion (or one value of it) and go back to page 1.

        Args:
            criterion: Which field to clear.
            value: For breeds or zip codes, the single entry to drop. None
                clears the whole field.

        Returns:
            The updated criteria.
        """
        criterion = Criterion(criterion)
        current = self.criteria
        if criterion is Criterion.SELECTED_BREEDS:
            breeds = frozenset() if value is None else current.selected_breeds - {value}
            updated = replace(current, selected_breeds=breeds)
        elif criterion is Criterion.ZIP_CODES:
            zips = () if value is None else tuple(z for z in current.zip_codes if z != value)
            updated = replace(current, zip_codes=zips)
        elif criterion is Criterion.AGE_MIN:
            updated = replace(current, age_min=None)
        elif criterion is Criterion.AGE_MAX:
            updated = replace(current, age_max=None)
        else:
            updated = replace(current, sort_order=DEFAULT_SORT_ORDER)

        self.criteria = updated
        self._reset_page()
        return self.criteria

    def derive_request(self) -> SearchRequest:
        return derive_request(self.criteria, self.page)

    def active_filters(self) -> list[FilterChip]:
        """Return the chips for the current criteria, sort chip first."""
        c = self.criteria
        chips = [
            FilterChip(
                Criterion.SORT_ORDER,
                f"Sorted by: {c.sort_order.label}",
                c.sort_order.wire,
                removable=not c.sort_order.is_default,
            )
        ]
        chips.extend(
            FilterChip(Criterion.SELECTED_BREEDS, breed, breed)
            for breed in sorted(c.selected_breeds)
        )
        chips.extend(FilterChip(Criterion.ZIP_CODES, z, z) for z in c.zip_codes)
        if c.age_min is not None:
            chips.append(FilterChip(Criterion.AGE_MIN, f"Min Age: {c.age_min}", str(c.age_min)))
        if c.age_max is not None:
            chips.append(FilterChip(Criterion.AGE_MAX, f"Max Age: {c.age_max}", str(c.age_max)))
        return chips
