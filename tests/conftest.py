"""Shared fixtures for stay-market tests."""

from datetime import datetime
from typing import Any

import pytest

from stay_market.models.property import PropertySummary
from stay_market.models.reservation import Reservation, ReservationStatus


class RecordingSearch:
    """Fake search endpoint: returns canned rows per call and records params."""

    def __init__(self, responses: list[list[PropertySummary]] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []

    async def __call__(self, params: dict[str, Any]) -> list[PropertySummary]:
        self.calls.append(params)
        if self.responses:
            return self.responses.pop(0)
        return []


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 1, 10, 9, 0)


@pytest.fixture
def make_property():
    def _make(id: str = "prop-1", price: float = 100.0, rating: float = 4.0, **kw: Any) -> PropertySummary:
        return PropertySummary(id=id, title=kw.pop("title", f"Stay {id}"), price=price, rating=rating, **kw)
    return _make


@pytest.fixture
def make_reservation():
    def _make(
        check_in: str,
        check_out: str,
        status: ReservationStatus = ReservationStatus.active,
        id: str = "r-1",
        **kw: Any,
    ) -> Reservation:
        return Reservation(
            id=id,
            check_in=datetime.fromisoformat(check_in),
            check_out=datetime.fromisoformat(check_out),
            status=status,
            **kw,
        )
    return _make


@pytest.fixture
def recording_search():
    return RecordingSearch
