"""Tests for location parsing and SearchState assembly."""

from datetime import date

import pytest

from stay_market.errors import MalformedInput
from stay_market.models.location import LocationQuery, SearchFilters, SearchState
from stay_market.search.location import (
    build_location_query,
    build_search_state,
    format_location_display,
    parse_coordinates,
    parse_location,
)


class TestParseLocation:
    def test_city_state_country(self) -> None:
        q = parse_location("Malibu, California, United States")
        assert (q.city, q.state, q.country) == ("Malibu", "California", "United States")

    def test_country_alias_recognised(self) -> None:
        q = parse_location("Springfield, Illinois, USA")
        assert (q.city, q.state, q.country) == ("Springfield", "Illinois", "USA")

    def test_state_country(self) -> None:
        q = parse_location("California, United States")
        assert q.state == "California"
        assert q.country == "United States"
        assert q.city == ""

    def test_city_country(self) -> None:
        q = parse_location("Paris, France")
        assert (q.city, q.state, q.country) == ("Paris", "", "France")

    def test_city_state_without_country(self) -> None:
        q = parse_location("Austin, Texas")
        assert (q.city, q.state, q.country) == ("Austin", "Texas", "")

    def test_single_segment_city(self) -> None:
        assert parse_location("Springfield").city == "Springfield"

    def test_single_segment_matching_a_state(self) -> None:
        q = parse_location("New York")
        assert (q.city, q.state) == ("", "New York")

    def test_single_segment_state(self) -> None:
        assert parse_location("Ontario").state == "Ontario"

    def test_single_segment_country(self) -> None:
        assert parse_location("Japan").country == "Japan"

    def test_unknown_third_segment_joins_city(self) -> None:
        q = parse_location("Shibuya, Tokyo, Kanto")
        assert q.city == "Shibuya, Tokyo"
        assert q.country == "Kanto"

    def test_empty(self) -> None:
        assert parse_location("  ,  ") == LocationQuery()


class TestBuildLocationQuery:
    def test_keyword_kept_and_structure_filled(self) -> None:
        q = build_location_query("Springfield, Illinois, USA")
        assert q.keyword == "Springfield, Illinois, USA"
        assert (q.city, q.state, q.country) == ("Springfield", "Illinois", "USA")

    def test_single_word_is_keyword_only(self) -> None:
        q = build_location_query("Springfield")
        assert q.keyword == "Springfield"
        assert not q.has_structure

    def test_explicit_fields_win(self) -> None:
        q = build_location_query("Springfield, Illinois, USA", city="Chicago")
        assert q.city == "Chicago"
        assert q.state == "Illinois"

    def test_empty_input_is_no_filter(self) -> None:
        q = build_location_query("   ")
        assert q.is_empty

    def test_whitespace_collapsed(self) -> None:
        assert build_location_query("  Lake   Como ").keyword == "Lake Como"

    def test_display(self) -> None:
        assert format_location_display(parse_location("Paris, France")) == "Paris, France"
        assert format_location_display(LocationQuery(keyword="beach")) == "beach"


class TestCoordinates:
    def test_valid(self) -> None:
        c = parse_coordinates("41.88", "-87.63", "15")
        assert c.latitude == pytest.approx(41.88)
        assert c.radius_km == 15

    @pytest.mark.parametrize(
        "lat,lng",
        [(91, 200), ("nan", 10), (10, "inf"), ("north", 3), (None, 4)],
    )
    def test_malformed_raises(self, lat, lng) -> None:
        with pytest.raises(MalformedInput):
            parse_coordinates(lat, lng)


class TestBuildSearchState:
    def test_out_of_range_coordinates_disable_filter(self) -> None:
        state = build_search_state("Springfield", latitude=91, longitude=200)
        assert state.query.coordinates is None
        assert state.query.keyword == "Springfield"

    def test_bad_date_disables_dates_only(self) -> None:
        state = build_search_state("Paris", start_date="next friday", end_date="2024-05-03", guests=2)
        assert state.filters.start_date is None
        assert state.filters.end_date is None
        assert state.filters.guests == 2

    def test_inverted_date_range_disabled(self) -> None:
        state = build_search_state("Paris", start_date="2024-05-03", end_date="2024-05-01")
        assert state.filters.start_date is None

    def test_dates_parsed(self) -> None:
        state = build_search_state("Paris", start_date="2024-05-01", end_date="2024-05-03")
        assert state.filters.start_date == date(2024, 5, 1)
        assert state.filters.end_date == date(2024, 5, 3)


class TestSearchState:
    def test_updates_produce_new_state(self) -> None:
        original = SearchState(query=LocationQuery(keyword="Rome"))
        updated = original.with_filters(guests=3)
        assert original.filters.guests is None
        assert updated.filters.guests == 3
        assert updated.query == original.query

    def test_frozen(self) -> None:
        state = SearchState()
        with pytest.raises(Exception):
            state.query = LocationQuery(keyword="x")  # type: ignore[misc]

    def test_filter_params(self) -> None:
        filters = SearchFilters(
            start_date=date(2024, 5, 1),
            end_date=date(2024, 5, 3),
            guests=2,
            property_type="house",
            amenities=("wifi", "pool"),
            sort="price_asc",
        )
        assert filters.to_params() == {
            "startDate": "2024-05-01",
            "endDate": "2024-05-03",
            "guests": 2,
            "type": "house",
            "amenities": "wifi,pool",
            "sort": "price:asc",
        }

    def test_inverted_range_rejected(self) -> None:
        with pytest.raises(ValueError):
            SearchFilters(start_date=date(2024, 5, 3), end_date=date(2024, 5, 1))
