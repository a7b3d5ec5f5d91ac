"""Progressive-relaxation search: broaden the location filter tier by tier
until the backend returns at least one property.

Tiers run strictly in sequence; each is only issued when every earlier tier
came back empty. Secondary filters (dates, guests, price, type, amenities)
are identical on every tier.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger

from stay_market.config import settings
from stay_market.errors import AuthorizationPending, NetworkFailure
from stay_market.models.location import Coordinates, SearchState, SearchTier
from stay_market.models.outcome import OutcomeStatus, SearchOutcome
from stay_market.models.property import PropertySummary

SearchFn = Callable[[dict[str, Any]], Awaitable[list[PropertySummary]]]


@dataclass(frozen=True)
class TierPlan:
    tier: SearchTier
    params: dict[str, Any]


def _coordinate_params(coords: Coordinates, radius_km: float) -> dict[str, Any]:
    return {"lat": coords.latitude, "lng": coords.longitude, "radius": radius_km}


def plan_tiers(
    state: SearchState,
    default_radius_km: float | None = None,
    radius_multiplier: float | None = None,
    radius_floor_km: float | None = None,
) -> list[TierPlan]:
    """Build the ordered list of queries to try for ``state``.

    A keyword suppresses city/state/country on the exact tier. Tiers whose
    query would repeat an earlier one are dropped.
    """
    default_radius_km = default_radius_km if default_radius_km is not None else settings.default_radius_km
    radius_multiplier = radius_multiplier if radius_multiplier is not None else settings.fallback_radius_multiplier
    radius_floor_km = radius_floor_km if radius_floor_km is not None else settings.fallback_radius_floor_km

    query = state.query
    fixed = state.filters.to_params()
    coords = query.coordinates
    radius = (coords.radius_km or default_radius_km) if coords else None
    near = _coordinate_params(coords, radius) if coords and radius else {}

    candidates: list[TierPlan] = []

    if query.keyword:
        exact: dict[str, Any] = {"keyword": query.keyword}
    else:
        exact = {k: v for k, v in (("city", query.city), ("state", query.state), ("country", query.country)) if v}
    candidates.append(TierPlan(SearchTier.exact, {**exact, **near, **fixed}))

    if query.city and query.state and query.country:
        candidates.append(
            TierPlan(SearchTier.state_country, {"state": query.state, "country": query.country, **near, **fixed})
        )

    if query.country:
        candidates.append(TierPlan(SearchTier.country_only, {"country": query.country, **near, **fixed}))

    if coords and radius:
        wide = max(radius * radius_multiplier, radius_floor_km)
        candidates.append(TierPlan(SearchTier.coordinates_only, {**_coordinate_params(coords, wide), **fixed}))

    plans: list[TierPlan] = []
    for plan in candidates:
        if any(plan.params == seen.params for seen in plans):
            logger.debug(f"Skipping {plan.tier.value} tier: same query as an earlier tier")
            continue
        plans.append(plan)
    return plans


class SearchResolver:
    def __init__(
        self,
        search: SearchFn,
        default_radius_km: float | None = None,
        radius_multiplier: float | None = None,
        radius_floor_km: float | None = None,
    ) -> None:
        self._search = search
        self._default_radius_km = default_radius_km
        self._radius_multiplier = radius_multiplier
        self._radius_floor_km = radius_floor_km

    async def resolve(self, state: SearchState) -> SearchOutcome:
        plans = plan_tiers(
            state,
            default_radius_km=self._default_radius_km,
            radius_multiplier=self._radius_multiplier,
            radius_floor_km=self._radius_floor_km,
        )
        attempted: list[SearchTier] = []

        for plan in plans:
            attempted.append(plan.tier)
            logger.info(f"Search tier {plan.tier.value}: {plan.params}")
            try:
                rows = await self._search(plan.params)
            except NetworkFailure as exc:
                logger.warning(f"Search tier {plan.tier.value} failed: {exc}")
                return SearchOutcome(
                    status=OutcomeStatus.error,
                    tiers_attempted=attempted,
                    error=str(exc),
                    retryable=exc.retryable,
                )
            except AuthorizationPending as exc:
                logger.warning(f"Search rejected by backend: {exc}")
                return SearchOutcome(
                    status=OutcomeStatus.error,
                    tiers_attempted=attempted,
                    error=str(exc),
                )

            logger.info(f"Search tier {plan.tier.value} returned {len(rows)} properties")
            if rows:
                return SearchOutcome(
                    status=OutcomeStatus.success,
                    properties=rows,
                    tier=plan.tier,
                    tiers_attempted=attempted,
                )

        logger.info(f"No properties after {len(attempted)} tier(s)")
        return SearchOutcome(status=OutcomeStatus.empty, tiers_attempted=attempted)


class LatestRequestToken:
    """Monotonic token; only the most recently issued one may commit results."""

    def __init__(self) -> None:
        self._latest = 0

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest


class SearchController:
    """Debounced, supersedable front door to a SearchResolver.

    Every ``submit`` takes a fresh token. A submission that is overtaken
    during the debounce window never reaches the backend; one overtaken
    while resolving has its result dropped. Superseded calls return None.
    """

    def __init__(self, resolver: SearchResolver, debounce_ms: int | None = None) -> None:
        self._resolver = resolver
        self._debounce_s = (debounce_ms if debounce_ms is not None else settings.debounce_ms) / 1000
        self._tokens = LatestRequestToken()
        self.latest: SearchOutcome | None = None
        self.state: SearchState | None = None

    async def submit(self, state: SearchState) -> SearchOutcome | None:
        token = self._tokens.issue()
        if self._debounce_s > 0:
            await asyncio.sleep(self._debounce_s)
        if not self._tokens.is_current(token):
            return None

        outcome = await self._resolver.resolve(state)
        if not self._tokens.is_current(token):
            logger.debug(f"Discarding stale search result (token {token})")
            return None

        self.state = state
        self.latest = outcome
        return outcome
