import math
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SearchTier(str, Enum):
    exact = "exact"
    state_country = "state_country"
    country_only = "country_only"
    coordinates_only = "coordinates_only"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)


_TIER_ORDER: list[SearchTier] = [
    SearchTier.exact,
    SearchTier.state_country,
    SearchTier.country_only,
    SearchTier.coordinates_only,
]


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    radius_km: float | None = None  # None -> settings.default_radius_km

    @field_validator("latitude")
    @classmethod
    def latitude_in_range(cls, v: float) -> float:
        if not math.isfinite(v) or not -90.0 <= v <= 90.0:
            raise ValueError("latitude must be finite and within [-90, 90]")
        return v

    @field_validator("longitude")
    @classmethod
    def longitude_in_range(cls, v: float) -> float:
        if not math.isfinite(v) or not -180.0 <= v <= 180.0:
            raise ValueError("longitude must be finite and within [-180, 180]")
        return v

    @field_validator("radius_km")
    @classmethod
    def radius_positive(cls, v: float | None) -> float | None:
        if v is not None and (not math.isfinite(v) or v <= 0):
            raise ValueError("radius_km must be a positive number")
        return v


class LocationQuery(BaseModel):
    """Canonical location input.

    A non-empty ``keyword`` is the primary filter; the structured fields are
    kept only as a fallback aid for relaxed search tiers.
    """

    model_config = ConfigDict(frozen=True)

    keyword: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    coordinates: Coordinates | None = None

    @property
    def has_structure(self) -> bool:
        return bool(self.city or self.state or self.country)

    @property
    def is_empty(self) -> bool:
        return not (self.keyword or self.has_structure or self.coordinates)


class SearchFilters(BaseModel):
    """Secondary filters. Held fixed across every relaxation tier."""

    model_config = ConfigDict(frozen=True)

    start_date: date | None = None
    end_date: date | None = None
    guests: int | None = None
    min_price: float | None = None
    max_price: float | None = None
    property_type: str = ""
    amenities: tuple[str, ...] = ()
    sort: str = ""

    @model_validator(mode="after")
    def date_range_ordered(self) -> "SearchFilters":
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.start_date:
            params["startDate"] = self.start_date.isoformat()
        if self.end_date:
            params["endDate"] = self.end_date.isoformat()
        if self.guests:
            params["guests"] = self.guests
        if self.min_price is not None:
            params["minPrice"] = self.min_price
        if self.max_price is not None:
            params["maxPrice"] = self.max_price
        if self.property_type:
            params["type"] = self.property_type
        if self.amenities:
            params["amenities"] = ",".join(self.amenities)
        if self.sort:
            # legacy "price_asc" -> API "price:asc"
            params["sort"] = self.sort.replace("_", ":", 1)
        return params


class SearchState(BaseModel):
    """Immutable snapshot threaded through one resolver invocation."""

    model_config = ConfigDict(frozen=True)

    query: LocationQuery = Field(default_factory=LocationQuery)
    filters: SearchFilters = Field(default_factory=SearchFilters)

    def with_query(self, **changes: Any) -> "SearchState":
        query = LocationQuery(**{**self.query.model_dump(), **changes})
        return self.model_copy(update={"query": query})

    def with_filters(self, **changes: Any) -> "SearchState":
        filters = SearchFilters(**{**self.filters.model_dump(), **changes})
        return self.model_copy(update={"filters": filters})
