"""Tests for the tier cascade, request tokens and the debounced controller."""

import asyncio
from datetime import date

import pytest

from stay_market.errors import AuthorizationPending, NetworkFailure
from stay_market.models.location import Coordinates, LocationQuery, SearchFilters, SearchState, SearchTier
from stay_market.models.outcome import OutcomeStatus
from stay_market.search.location import build_search_state
from stay_market.search.resolver import (
    LatestRequestToken,
    SearchController,
    SearchResolver,
    plan_tiers,
)

_FULL = LocationQuery(
    keyword="Springfield",
    city="Springfield",
    state="Illinois",
    country="USA",
    coordinates=Coordinates(latitude=39.78, longitude=-89.65),
)


def _resolver(search) -> SearchResolver:
    return SearchResolver(search, default_radius_km=10, radius_multiplier=5, radius_floor_km=50)


class TestPlanTiers:
    def test_full_plan_order(self) -> None:
        plans = plan_tiers(SearchState(query=_FULL), 10, 5, 50)
        assert [p.tier for p in plans] == [
            SearchTier.exact,
            SearchTier.state_country,
            SearchTier.country_only,
            SearchTier.coordinates_only,
        ]
        assert [p.tier.rank for p in plans] == [0, 1, 2, 3]

    def test_keyword_suppresses_structured_fields(self) -> None:
        exact = plan_tiers(SearchState(query=_FULL), 10, 5, 50)[0]
        assert exact.params["keyword"] == "Springfield"
        assert not {"city", "state", "country"} & exact.params.keys()

    def test_structured_exact_without_keyword(self) -> None:
        query = LocationQuery(city="Peoria", state="Illinois", country="USA")
        exact = plan_tiers(SearchState(query=query), 10, 5, 50)[0]
        assert exact.params == {"city": "Peoria", "state": "Illinois", "country": "USA"}

    def test_default_radius_applied(self) -> None:
        exact = plan_tiers(SearchState(query=_FULL), 10, 5, 50)[0]
        assert exact.params["radius"] == 10
        assert exact.params["lat"] == pytest.approx(39.78)

    def test_relaxed_tiers_keep_coordinates(self) -> None:
        plans = plan_tiers(SearchState(query=_FULL), 10, 5, 50)
        assert plans[1].params == {"state": "Illinois", "country": "USA", "lat": 39.78, "lng": -89.65, "radius": 10}
        assert plans[2].params == {"country": "USA", "lat": 39.78, "lng": -89.65, "radius": 10}

    def test_coordinate_tier_floor(self) -> None:
        last = plan_tiers(SearchState(query=_FULL), 10, 5, 50)[-1]
        assert last.params == {"lat": 39.78, "lng": -89.65, "radius": 50}

    def test_coordinate_tier_multiplier(self) -> None:
        query = LocationQuery(coordinates=Coordinates(latitude=1, longitude=2, radius_km=20))
        last = plan_tiers(SearchState(query=query), 10, 5, 50)[-1]
        assert last.tier is SearchTier.coordinates_only
        assert last.params["radius"] == 100

    def test_state_country_needs_all_three(self) -> None:
        query = LocationQuery(keyword="Lyon, France", city="Lyon", country="France")
        tiers = [p.tier for p in plan_tiers(SearchState(query=query), 10, 5, 50)]
        assert tiers == [SearchTier.exact, SearchTier.country_only]

    def test_duplicate_tier_dropped(self) -> None:
        query = LocationQuery(country="France")
        tiers = [p.tier for p in plan_tiers(SearchState(query=query), 10, 5, 50)]
        assert tiers == [SearchTier.exact]

    def test_secondary_filters_fixed_on_every_tier(self) -> None:
        state = SearchState(
            query=_FULL,
            filters=SearchFilters(start_date=date(2024, 5, 1), end_date=date(2024, 5, 4), guests=2),
        )
        for plan in plan_tiers(state, 10, 5, 50):
            assert plan.params["startDate"] == "2024-05-01"
            assert plan.params["endDate"] == "2024-05-04"
            assert plan.params["guests"] == 2


class TestSearchResolver:
    @pytest.mark.asyncio
    async def test_springfield_resolves_on_second_call(self, recording_search, make_property) -> None:
        rows = [make_property("prop-7")]
        search = recording_search([[], rows])
        outcome = await _resolver(search).resolve(SearchState(query=_FULL))

        assert outcome.status is OutcomeStatus.success
        assert outcome.properties == rows
        assert outcome.tier is SearchTier.state_country
        assert len(search.calls) == 2
        assert outcome.calls == 2
        assert search.calls[1]["state"] == "Illinois"
        assert "city" not in search.calls[1]

    @pytest.mark.asyncio
    async def test_stops_after_first_hit(self, recording_search, make_property) -> None:
        search = recording_search([[make_property()]])
        outcome = await _resolver(search).resolve(SearchState(query=_FULL))
        assert outcome.tier is SearchTier.exact
        assert len(search.calls) == 1

    @pytest.mark.asyncio
    async def test_exhaustion_is_empty_not_error(self, recording_search) -> None:
        search = recording_search()
        outcome = await _resolver(search).resolve(SearchState(query=_FULL))
        assert outcome.status is OutcomeStatus.empty
        assert outcome.properties == []
        assert outcome.tiers_attempted == [
            SearchTier.exact,
            SearchTier.state_country,
            SearchTier.country_only,
            SearchTier.coordinates_only,
        ]
        assert len(search.calls) == 4

    @pytest.mark.asyncio
    async def test_invalid_coordinates_skip_coordinate_tier(self, recording_search) -> None:
        state = build_search_state("Springfield, Illinois, USA", latitude=91, longitude=200)
        search = recording_search()
        await _resolver(search).resolve(state)
        assert len(search.calls) == 3
        assert all("lat" not in call and "radius" not in call for call in search.calls)

    @pytest.mark.asyncio
    async def test_network_failure_stops_cascade(self, make_property) -> None:
        calls = []

        async def flaky(params):
            calls.append(params)
            if len(calls) == 2:
                raise NetworkFailure("connection reset")
            return []

        outcome = await _resolver(flaky).resolve(SearchState(query=_FULL))
        assert outcome.status is OutcomeStatus.error
        assert outcome.retryable is True
        assert "connection reset" in outcome.error
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_authorization_rejection_is_error(self) -> None:
        async def rejected(params):
            raise AuthorizationPending()

        outcome = await _resolver(rejected).resolve(SearchState(query=_FULL))
        assert outcome.status is OutcomeStatus.error
        assert outcome.retryable is False

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self) -> None:
        async def broken(params):
            raise KeyError("boom")

        with pytest.raises(KeyError):
            await _resolver(broken).resolve(SearchState(query=_FULL))

    @pytest.mark.asyncio
    async def test_empty_query_issues_one_unfiltered_call(self, recording_search) -> None:
        search = recording_search()
        outcome = await _resolver(search).resolve(SearchState())
        assert search.calls == [{}]
        assert outcome.status is OutcomeStatus.empty


class TestLatestRequestToken:
    def test_only_latest_is_current(self) -> None:
        tokens = LatestRequestToken()
        first = tokens.issue()
        second = tokens.issue()
        assert not tokens.is_current(first)
        assert tokens.is_current(second)


class TestSearchController:
    @pytest.mark.asyncio
    async def test_debounce_collapses_rapid_submissions(self, recording_search, make_property) -> None:
        search = recording_search([[make_property()]])
        controller = SearchController(_resolver(search), debounce_ms=20)

        states = [SearchState(query=LocationQuery(keyword=k)) for k in ("S", "Sp", "Spr")]
        results = await asyncio.gather(*(controller.submit(s) for s in states))

        assert results[0] is None
        assert results[1] is None
        assert results[2] is not None
        assert search.calls == [{"keyword": "Spr"}]
        assert controller.state == states[2]

    @pytest.mark.asyncio
    async def test_stale_result_discarded(self, make_property) -> None:
        release_first = asyncio.Event()

        async def search(params):
            if params["keyword"] == "old":
                await release_first.wait()
                return [make_property("old")]
            return [make_property("new")]

        controller = SearchController(_resolver(search), debounce_ms=0)
        old_task = asyncio.create_task(controller.submit(SearchState(query=LocationQuery(keyword="old"))))
        await asyncio.sleep(0)
        new_outcome = await controller.submit(SearchState(query=LocationQuery(keyword="new")))
        release_first.set()
        old_outcome = await old_task

        assert old_outcome is None
        assert new_outcome is not None
        assert controller.latest is new_outcome
        assert controller.latest.properties[0].id == "new"
