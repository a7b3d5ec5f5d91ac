"""Free-text and structured location input -> canonical LocationQuery."""

from datetime import date, datetime
from typing import Any

from loguru import logger
from pydantic import ValidationError

from stay_market.errors import MalformedInput
from stay_market.models.location import (
    Coordinates,
    LocationQuery,
    SearchFilters,
    SearchState,
)

_US_STATES = frozenset({
    "Alabama", "Alaska", "Arizona", "Arkansas", "California", "Colorado",
    "Connecticut", "Delaware", "Florida", "Georgia", "Hawaii", "Idaho",
    "Illinois", "Indiana", "Iowa", "Kansas", "Kentucky", "Louisiana", "Maine",
    "Maryland", "Massachusetts", "Michigan", "Minnesota", "Mississippi",
    "Missouri", "Montana", "Nebraska", "Nevada", "New Hampshire", "New Jersey",
    "New Mexico", "New York", "North Carolina", "North Dakota", "Ohio",
    "Oklahoma", "Oregon", "Pennsylvania", "Rhode Island", "South Carolina",
    "South Dakota", "Tennessee", "Texas", "Utah", "Vermont", "Virginia",
    "Washington", "West Virginia", "Wisconsin", "Wyoming",
    "District of Columbia", "Puerto Rico", "Guam",
})

_CANADIAN_PROVINCES = frozenset({
    "Alberta", "British Columbia", "Manitoba", "New Brunswick",
    "Newfoundland and Labrador", "Northwest Territories", "Nova Scotia",
    "Nunavut", "Ontario", "Prince Edward Island", "Quebec", "Saskatchewan",
    "Yukon",
})

_AUSTRALIAN_STATES = frozenset({
    "New South Wales", "Victoria", "Queensland", "Western Australia",
    "South Australia", "Tasmania", "Northern Territory",
    "Australian Capital Territory",
})

_UK_REGIONS = frozenset({"England", "Scotland", "Wales", "Northern Ireland"})

_GERMAN_STATES = frozenset({
    "Baden-Württemberg", "Bavaria", "Berlin", "Brandenburg", "Bremen",
    "Hamburg", "Hesse", "Lower Saxony", "Mecklenburg-Vorpommern",
    "North Rhine-Westphalia", "Rhineland-Palatinate", "Saarland", "Saxony",
    "Saxony-Anhalt", "Schleswig-Holstein", "Thuringia",
})

# alias (lowercase) -> canonical country
_COUNTRY_ALIASES: dict[str, str] = {
    "united states": "United States",
    "united states of america": "United States",
    "usa": "United States",
    "us": "United States",
    "canada": "Canada",
    "australia": "Australia",
    "united kingdom": "United Kingdom",
    "uk": "United Kingdom",
    "great britain": "United Kingdom",
    "germany": "Germany",
    "france": "France",
    "spain": "Spain",
    "italy": "Italy",
    "japan": "Japan",
    "china": "China",
    "india": "India",
    "brazil": "Brazil",
    "mexico": "Mexico",
    "russia": "Russia",
    "somalia": "Somalia",
    "kenya": "Kenya",
}

_REGIONS_BY_COUNTRY: dict[str, frozenset[str]] = {
    "United States": _US_STATES,
    "Canada": _CANADIAN_PROVINCES,
    "Australia": _AUSTRALIAN_STATES,
    "United Kingdom": _UK_REGIONS,
    "Germany": _GERMAN_STATES,
}

_ALL_REGIONS = frozenset().union(*_REGIONS_BY_COUNTRY.values())


def _is_country(part: str) -> bool:
    return part.lower() in _COUNTRY_ALIASES


def _is_state(part: str, country: str = "") -> bool:
    if country:
        regions = _REGIONS_BY_COUNTRY.get(_COUNTRY_ALIASES.get(country.lower(), ""))
        if regions is not None:
            return part in regions
    return part in _ALL_REGIONS


def parse_location(text: str) -> LocationQuery:
    """Split "city, region[, country]" into structured fields.

    Countries are kept as typed ("USA" stays "USA"); only classification
    uses the alias table.
    """
    parts = [p.strip() for p in (text or "").split(",") if p.strip()]
    if not parts:
        return LocationQuery()

    if len(parts) == 1:
        part = parts[0]
        if _is_country(part):
            return LocationQuery(country=part)
        if _is_state(part):
            return LocationQuery(state=part)
        return LocationQuery(city=part)

    if len(parts) == 2:
        first, second = parts
        if _is_country(second):
            if _is_state(first, second):
                return LocationQuery(state=first, country=second)
            return LocationQuery(city=first, country=second)
        if _is_state(second):
            return LocationQuery(city=first, state=second)
        return LocationQuery(city=first, country=second)

    first, second, third = parts[0], parts[1], parts[2]
    if _is_country(third):
        if _is_state(second, third):
            return LocationQuery(city=first, state=second, country=third)
        return LocationQuery(city=f"{first}, {second}", country=third)
    return LocationQuery(city=", ".join(parts[:-1]), country=parts[-1])


def build_location_query(
    text: str = "",
    *,
    city: str = "",
    state: str = "",
    country: str = "",
    coordinates: Coordinates | None = None,
) -> LocationQuery:
    """Normalize free text and/or structured fields into a LocationQuery.

    Free text becomes the keyword. When it looks like "city, region[, country]"
    the parsed parts also fill any structured field the caller left blank, so
    relaxed tiers have something to fall back on. Explicit structured fields
    always win over parsed ones.
    """
    keyword = " ".join((text or "").split())
    parsed = LocationQuery()
    if keyword and 2 <= keyword.count(",") + 1 <= 3:
        parsed = parse_location(keyword)

    return LocationQuery(
        keyword=keyword,
        city=city.strip() or parsed.city,
        state=state.strip() or parsed.state,
        country=country.strip() or parsed.country,
        coordinates=coordinates,
    )


def format_location_display(query: LocationQuery) -> str:
    parts = [p for p in (query.city, query.state, query.country) if p]
    return ", ".join(parts) if parts else query.keyword


def parse_coordinates(latitude: Any, longitude: Any, radius_km: Any = None) -> Coordinates:
    """Parse raw coordinate input. Raises MalformedInput on anything unusable."""
    try:
        lat = float(latitude)
        lng = float(longitude)
        radius = float(radius_km) if radius_km not in (None, "") else None
        return Coordinates(latitude=lat, longitude=lng, radius_km=radius)
    except (TypeError, ValueError, ValidationError) as exc:
        raise MalformedInput(f"invalid coordinates ({latitude}, {longitude}, {radius_km})") from exc


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise MalformedInput(f"invalid date {value!r}") from exc


def build_search_state(
    location: str = "",
    *,
    city: str = "",
    state: str = "",
    country: str = "",
    latitude: Any = None,
    longitude: Any = None,
    radius_km: Any = None,
    start_date: Any = None,
    end_date: Any = None,
    guests: int | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    property_type: str = "",
    amenities: list[str] | tuple[str, ...] = (),
    sort: str = "",
) -> SearchState:
    """Assemble a SearchState from raw UI input.

    Malformed coordinates or dates disable only that filter.
    """
    coordinates: Coordinates | None = None
    if latitude is not None or longitude is not None:
        try:
            coordinates = parse_coordinates(latitude, longitude, radius_km)
        except MalformedInput as exc:
            logger.warning(f"Coordinate filter disabled: {exc}")

    start = end = None
    if start_date or end_date:
        try:
            start = parse_date(start_date) if start_date else None
            end = parse_date(end_date) if end_date else None
            if start and end and end <= start:
                raise MalformedInput(f"date range {start} -> {end} is empty")
        except MalformedInput as exc:
            logger.warning(f"Date filter disabled: {exc}")
            start = end = None

    query = build_location_query(
        location, city=city, state=state, country=country, coordinates=coordinates
    )
    filters = SearchFilters(
        start_date=start,
        end_date=end,
        guests=guests,
        min_price=min_price,
        max_price=max_price,
        property_type=property_type,
        amenities=tuple(a.strip() for a in amenities if a.strip()),
        sort=sort,
    )
    return SearchState(query=query, filters=filters)
