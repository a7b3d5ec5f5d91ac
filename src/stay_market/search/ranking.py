"""Client-side ordering and filtering of resolved properties."""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict

from stay_market.models.property import PropertySummary


class SortField(str, Enum):
    price = "price"
    rating = "rating"
    newest = "newest"


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.desc if self is SortDirection.asc else SortDirection.asc


class SortState(BaseModel):
    """Active sort. ``field=None`` means the default, highest rating first."""

    model_config = ConfigDict(frozen=True)

    field: SortField | None = None
    direction: SortDirection = SortDirection.desc

    def select(self, field: SortField) -> "SortState":
        """Re-selecting the active field flips direction; a new field starts descending."""
        if field == self.field:
            return SortState(field=field, direction=self.direction.flipped())
        return SortState(field=field, direction=SortDirection.desc)


_DIGITS = re.compile(r"\d+")


def id_recency(property_id: str) -> int:
    """Recency proxy from the first run of digits in an identifier.

    Identifiers are opaque, so this is best-effort ordering, not a
    chronological guarantee.
    """
    match = _DIGITS.search(property_id)
    return int(match.group()) if match else 0


def _newest_keys(properties: list[PropertySummary]) -> list[float]:
    if properties and all(p.created_at is not None for p in properties):
        return [p.created_at.timestamp() for p in properties]  # type: ignore[union-attr]
    return [float(id_recency(p.id)) for p in properties]


def rank_properties(properties: list[PropertySummary], sort: SortState | None = None) -> list[PropertySummary]:
    """Stable sort on the chosen field; ties keep their input order."""
    sort = sort or SortState()
    field = sort.field or SortField.rating

    if field is SortField.price:
        keys = [p.price for p in properties]
    elif field is SortField.rating:
        keys = [p.rating for p in properties]
    else:
        keys = _newest_keys(properties)

    order = sorted(range(len(properties)), key=lambda i: keys[i], reverse=sort.direction is SortDirection.desc)
    return [properties[i] for i in order]


def filter_properties(
    properties: list[PropertySummary],
    min_price: float | None = None,
    max_price: float | None = None,
    min_rating: float | None = None,
) -> list[PropertySummary]:
    return [
        p
        for p in properties
        if (min_price is None or p.price >= min_price)
        and (max_price is None or p.price <= max_price)
        and (min_rating is None or p.rating >= min_rating)
    ]
