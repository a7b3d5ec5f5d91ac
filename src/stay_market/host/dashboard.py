"""Fold the host dashboard payload into summary metrics.

The backend has shipped this payload in several shapes (nested
``earningsData`` / ``earnings`` / ``stats`` objects, or flat root fields).
Every metric is read through an ordered probe list and only defaults to 0
once all of its probes miss.
"""

from datetime import datetime
from typing import Any, Awaitable, Callable

from loguru import logger

from stay_market.errors import AuthorizationPending, NetworkFailure
from stay_market.host.reservations import align_to, bookings_to_reservations
from stay_market.models.dashboard import (
    DashboardMetrics,
    DashboardStats,
    EarningsSummary,
    MonthlyEarnings,
    TodaysActivity,
)
from stay_market.models.outcome import DashboardOutcome, OutcomeStatus
from stay_market.models.reservation import Reservation
from stay_market.probes import FieldProbe, as_list, as_text, resolve_all

EARNINGS_PROBES: dict[str, FieldProbe] = {
    "this_month": FieldProbe(("earningsData.thisMonth", "earnings.thisMonth", "thisMonthEarnings", "monthlyEarnings")),
    "last_month": FieldProbe((
        "earningsData.previousMonth",
        "earningsData.lastMonth",
        "earnings.previousMonth",
        "earnings.lastMonth",
        "lastMonthEarnings",
    )),
    "year_total": FieldProbe((
        "earningsData.yearToDate",
        "earningsData.totalEarnings",
        "earnings.yearToDate",
        "earnings.totalEarnings",
        "totalEarnings",
    )),
    "pending_payouts": FieldProbe(("earningsData.pendingPayouts", "earnings.pendingPayouts", "pendingPayouts")),
    "monthly_series": FieldProbe(
        ("earningsData.monthlyData", "earnings.monthlyData", "monthlyData"),
        coerce=as_list,
        default_factory=list,
    ),
}

STATS_PROBES: dict[str, FieldProbe] = {
    "total_earnings": FieldProbe(("totalEarnings", "stats.totalEarnings", "earningsData.totalEarnings", "earnings.totalEarnings")),
    "active_listings": FieldProbe(("activePropertiesCount", "activeProperties", "stats.activeListings")),
    "occupancy_rate": FieldProbe(("occupancyRate", "stats.occupancyRate")),
    "total_reservations": FieldProbe(("stats.totalReservations", "totalReservations", "reservationCount"), default=None),
    "average_rating": FieldProbe(("hostRating", "stats.averageRating", "averageRating")),
}

RESERVATIONS_PROBE = FieldProbe(
    ("recentReservations", "reservations", "bookings"),
    coerce=as_list,
    default_factory=list,
)

_MONTH_PROBES: dict[str, FieldProbe] = {
    "month": FieldProbe(("month", "label"), coerce=as_text, default=""),
    "amount": FieldProbe(("amount", "earnings", "total")),
}


def _monthly_series(points: list[Any]) -> list[MonthlyEarnings]:
    series: list[MonthlyEarnings] = []
    for point in points:
        if not isinstance(point, dict):
            continue
        fields = resolve_all(_MONTH_PROBES, point)
        if fields["month"]:
            series.append(MonthlyEarnings(**fields))
    return series


def _todays_activity(reservations: list[Reservation], now: datetime) -> TodaysActivity:
    today = now.date()

    def on_today(moment: datetime | None) -> bool:
        return moment is not None and align_to(moment, now).date() == today

    return TodaysActivity(
        check_ins=sum(on_today(r.check_in) for r in reservations),
        check_outs=sum(on_today(r.check_out) for r in reservations),
        new_reservations=sum(on_today(r.created_at) for r in reservations),
    )


def aggregate_dashboard(payload: Any, now: datetime) -> DashboardMetrics:
    """Build DashboardMetrics from a raw payload. Missing data yields zeros."""
    if not isinstance(payload, dict):
        return DashboardMetrics()

    earnings = resolve_all(EARNINGS_PROBES, payload)
    stats = resolve_all(STATS_PROBES, payload)
    records = RESERVATIONS_PROBE.resolve(payload)

    reservations = sorted(bookings_to_reservations(records), key=lambda r: align_to(r.check_in, now))
    total_reservations = stats["total_reservations"]
    if total_reservations is None:
        total_reservations = len(reservations)

    return DashboardMetrics(
        earnings=EarningsSummary(
            this_month=earnings["this_month"],
            last_month=earnings["last_month"],
            year_total=earnings["year_total"],
            pending_payouts=earnings["pending_payouts"],
            monthly_series=_monthly_series(earnings["monthly_series"]),
        ),
        stats=DashboardStats(
            total_earnings=stats["total_earnings"],
            active_listings=int(stats["active_listings"]),
            occupancy_rate=stats["occupancy_rate"],
            total_reservations=int(total_reservations),
            average_rating=stats["average_rating"],
        ),
        recent_reservations=reservations,
        today=_todays_activity(reservations, now),
    )


async def load_dashboard(fetch: Callable[[], Awaitable[Any]], now: datetime) -> DashboardOutcome:
    """Fetch and aggregate, classifying backend failures into an outcome."""
    try:
        payload = await fetch()
    except AuthorizationPending:
        logger.info("Host dashboard not available yet: onboarding incomplete")
        return DashboardOutcome(status=OutcomeStatus.empty, needs_onboarding=True)
    except NetworkFailure as exc:
        logger.warning(f"Dashboard fetch failed: {exc}")
        return DashboardOutcome(status=OutcomeStatus.error, error=str(exc), retryable=exc.retryable)

    metrics = aggregate_dashboard(payload, now)
    if metrics == DashboardMetrics():
        return DashboardOutcome(status=OutcomeStatus.empty, metrics=metrics)
    return DashboardOutcome(status=OutcomeStatus.success, metrics=metrics)
