"""Async client for the booking backend: property search and host endpoints."""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import httpx
from loguru import logger

from stay_market.config import settings
from stay_market.errors import AuthorizationPending, NetworkFailure
from stay_market.models.property import PropertySummary
from stay_market.search.transform import to_property_summaries

_SEARCH_PATH = "/properties/search"
_HOST_DASHBOARD_PATH = "/host/dashboard"
_HOST_RESERVATIONS_PATH = "/host/reservations"


@dataclass
class _SearchCache:
    ttl_s: float
    entries: dict[str, tuple[float, list[PropertySummary]]] = field(default_factory=dict)

    def get(self, key: str) -> list[PropertySummary] | None:
        hit = self.entries.get(key)
        if hit is None:
            return None
        expires_at, rows = hit
        if time.monotonic() >= expires_at:
            del self.entries[key]
            return None
        return rows

    def put(self, key: str, rows: list[PropertySummary]) -> None:
        if self.ttl_s <= 0:
            return
        now = time.monotonic()
        self.entries = {k: hit for k, hit in self.entries.items() if hit[0] > now}
        self.entries[key] = (now + self.ttl_s, rows)


class MarketplaceClient:
    def __init__(
        self,
        mock: bool = False,
        base_url: str | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        cache_ttl_s: float | None = None,
    ) -> None:
        self._mock = mock
        headers = {"Accept": "application/json"}
        token = token if token is not None else settings.api_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            headers=headers,
            timeout=settings.request_timeout_s,
            transport=transport,
        )
        self._cache = _SearchCache(ttl_s=cache_ttl_s if cache_ttl_s is not None else settings.search_cache_ttl_s)

    async def __aenter__(self) -> "MarketplaceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            resp = await self._http.get(path, params=params)
        except httpx.TransportError as exc:
            raise NetworkFailure(f"GET {path}: {exc.__class__.__name__}: {exc}") from exc

        if resp.status_code in (401, 403):
            raise AuthorizationPending(f"GET {path} rejected ({resp.status_code})", status_code=resp.status_code)
        if resp.is_error:
            raise NetworkFailure(f"GET {path} returned {resp.status_code}", status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise NetworkFailure(f"GET {path} returned a non-JSON body", status_code=resp.status_code) from exc

    async def search_properties(self, params: dict[str, Any]) -> list[PropertySummary]:
        key = json.dumps(params, sort_keys=True, default=str)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Search cache hit: {key}")
            return cached

        if self._mock:
            rows = to_property_summaries(_mock_search(params))
        else:
            data = await self._get(_SEARCH_PATH, params)
            rows = to_property_summaries(_unwrap_list(data, "properties"))
        self._cache.put(key, rows)
        return rows

    async def get_host_dashboard(self) -> Any:
        if self._mock:
            return _mock_dashboard()
        data = await self._get(_HOST_DASHBOARD_PATH)
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            return data["data"]
        return data

    async def get_host_reservations(self, status: str | None = None) -> list[Any]:
        if self._mock:
            return _mock_bookings()
        data = await self._get(_HOST_RESERVATIONS_PATH, {"status": status} if status else None)
        return _unwrap_list(data, "reservations")

    async def close(self) -> None:
        await self._http.aclose()


def _unwrap_list(data: Any, key: str) -> list[Any]:
    """Accept a bare list, {"data": [...]}, or {"data": {key: [...]}}."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        inner = data.get("data", data)
        if isinstance(inner, list):
            return inner
        if isinstance(inner, dict) and isinstance(inner.get(key), list):
            return inner[key]
    return []


# ---------------------------------------------------------------------------
# Mock data for --mock mode
# ---------------------------------------------------------------------------

_MOCK_PROPERTIES: list[dict[str, Any]] = [
    {
        "_id": "prop-1001",
        "name": "Lakeview Loft",
        "price": {"amount": 145, "currency": "USD"},
        "rating": 4.8,
        "reviewCount": 212,
        "type": "apartment",
        "address": {"city": "Chicago", "state": "Illinois", "country": "USA"},
        "images": ["https://img.example.com/1001.jpg"],
    },
    {
        "_id": "prop-1007",
        "title": "Prairie Farmhouse",
        "price": 98,
        "rating": 4.5,
        "reviewCount": 37,
        "type": "house",
        "address": {"city": "Peoria", "state": "Illinois", "country": "USA"},
        "images": [{"url": "https://img.example.com/1007.jpg"}],
    },
    {
        "_id": "prop-1012",
        "title": "Desert Casita",
        "price": 120,
        "rating": 4.9,
        "reviewCount": 88,
        "type": "house",
        "address": {"city": "Sedona", "state": "Arizona", "country": "USA"},
    },
    {
        "_id": "prop-1020",
        "title": "Old Port Studio",
        "weekdayPrice": 75,
        "currency": "EUR",
        "rating": 4.2,
        "reviewCount": 19,
        "type": "apartment",
        "address": {"city": "Marseille", "country": "France"},
    },
]


def _mock_search(params: dict[str, Any]) -> list[dict[str, Any]]:
    def matches(prop: dict[str, Any]) -> bool:
        address = prop.get("address", {})
        keyword = str(params.get("keyword", "")).lower()
        if keyword:
            haystack = " ".join([str(prop.get("title") or prop.get("name", ""))] + [str(v) for v in address.values()])
            if keyword not in haystack.lower():
                return False
        for key in ("city", "state", "country"):
            if key in params and str(params[key]).lower() != str(address.get(key, "")).lower():
                return False
        if params.get("type") and params["type"] != prop.get("type"):
            return False
        return True

    # Coordinates are ignored by the mock; a coordinates-only query returns everything.
    return [p for p in _MOCK_PROPERTIES if matches(p)]


def _mock_bookings() -> list[dict[str, Any]]:
    now = datetime.now().replace(minute=0, second=0, microsecond=0)
    day = timedelta(days=1)
    return [
        {
            "_id": "bk-501",
            "contactInfo": {"name": "Dana Whitfield"},
            "property": {"name": "Lakeview Loft"},
            "checkIn": (now - 2 * day).isoformat(),
            "checkOut": now.replace(hour=23).isoformat(),
            "bookingStatus": "in-progress",
            "totalPrice": 435,
            "isPaid": True,
        },
        {
            "_id": "bk-502",
            "userId": {"firstName": "Sam", "lastName": "Okafor"},
            "propertyId": {"name": "Prairie Farmhouse"},
            "checkIn": (now - day).isoformat(),
            "checkOut": (now + 3 * day).isoformat(),
            "bookingStatus": "in-progress",
            "totalPrice": 392,
        },
        {
            "_id": "bk-503",
            "contactInfo": {"name": "Lee Park"},
            "property": {"name": "Desert Casita"},
            "checkIn": (now + day).isoformat(),
            "checkOut": (now + 4 * day).isoformat(),
            "bookingStatus": "confirmed",
            "totalPrice": 360,
            "createdAt": now.isoformat(),
        },
        {
            "_id": "bk-504",
            "contactInfo": {"name": "Ari Moreno"},
            "property": {"name": "Lakeview Loft"},
            "checkIn": (now + 10 * day).isoformat(),
            "checkOut": (now + 12 * day).isoformat(),
            "bookingStatus": "confirmed",
            "totalPrice": 290,
        },
        {
            "_id": "bk-505",
            "contactInfo": {"name": "Jo Tanaka"},
            "property": {"name": "Desert Casita"},
            "checkIn": (now - 9 * day).isoformat(),
            "checkOut": (now - 6 * day).isoformat(),
            "bookingStatus": "completed",
            "totalPrice": 360,
            "isPaid": True,
        },
        {
            "_id": "bk-506",
            "contactInfo": {"name": "Rae Quinn"},
            "property": {"name": "Prairie Farmhouse"},
            "checkIn": (now + 20 * day).isoformat(),
            "checkOut": (now + 22 * day).isoformat(),
            "bookingStatus": "cancelled",
            "totalPrice": 196,
        },
    ]


def _mock_dashboard() -> dict[str, Any]:
    return {
        "totalEarnings": 18450,
        "activePropertiesCount": 3,
        "occupancyRate": 72,
        "hostRating": 4.7,
        "stats": {"totalReservations": 41},
        "earningsData": {
            "thisMonth": 2310,
            "previousMonth": 1985,
            "totalEarnings": 18450,
            "pendingPayouts": 640,
            "monthlyData": [
                {"month": "Jul", "amount": 1720},
                {"month": "Aug", "amount": 2140},
                {"month": "Sep", "amount": 1985},
                {"month": "Oct", "earnings": 2310},
            ],
        },
        "recentReservations": _mock_bookings(),
    }
