"""Reservation normalisation and lifecycle buckets for the host "today" view.

Categorisation is a pure function of (reservation, now); ``now`` is always
passed in, never read from the clock here.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from loguru import logger
from pydantic import ValidationError

from stay_market.config import settings
from stay_market.errors import MalformedInput
from stay_market.models.reservation import (
    ALL_VIEW_ORDER,
    CATEGORY_PRECEDENCE,
    Reservation,
    ReservationCategory,
    ReservationStatus,
)
from stay_market.probes import FieldProbe, as_text, lookup, resolve_all

ReservationView = ReservationCategory | Literal["all"]

_BOOKING_STATUS_MAP: dict[str, ReservationStatus] = {
    "confirmed": ReservationStatus.upcoming,
    "upcoming": ReservationStatus.upcoming,
    "pending": ReservationStatus.pending,
    "in-progress": ReservationStatus.active,
    "in_progress": ReservationStatus.active,
    "active": ReservationStatus.active,
    "completed": ReservationStatus.completed,
    "cancelled": ReservationStatus.cancelled,
    "canceled": ReservationStatus.cancelled,
}

_STATUS_LABELS: dict[ReservationCategory, str] = {
    ReservationCategory.checking_out: "Checking out",
    ReservationCategory.currently_hosting: "Currently hosting",
    ReservationCategory.arriving_soon: "Arriving soon",
    ReservationCategory.upcoming: "Upcoming",
    ReservationCategory.pending_review: "Pending review",
}

_BOOKING_PROBES: dict[str, FieldProbe] = {
    "id": FieldProbe(("_id", "id", "bookingId"), coerce=as_text, default=""),
    "guest_name": FieldProbe(("contactInfo.name", "guest.name", "guestName"), coerce=as_text, default=""),
    "property_name": FieldProbe(
        ("property.name", "property.title", "propertyId.name", "propertyId.title", "propertyName", "propertyTitle"),
        coerce=as_text,
        default="Property",
    ),
    "check_in": FieldProbe(("checkIn", "checkInDate", "dates.checkIn"), coerce=as_text, default=None),
    "check_out": FieldProbe(("checkOut", "checkOutDate", "dates.checkOut"), coerce=as_text, default=None),
    "status": FieldProbe(("bookingStatus", "status"), coerce=as_text, default="pending"),
    "total_amount": FieldProbe(("totalPrice", "totalAmount", "pricing.total", "amount")),
    "created_at": FieldProbe(("createdAt", "created_at"), coerce=as_text, default=None),
}


def map_booking_status(raw_status: str) -> ReservationStatus:
    return _BOOKING_STATUS_MAP.get(raw_status.strip().lower(), ReservationStatus.pending)


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise MalformedInput(f"missing timestamp {value!r}")
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as exc:
        raise MalformedInput(f"invalid timestamp {value!r}") from exc


def _guest_name(raw: dict[str, Any], probed: str) -> str:
    if probed:
        return probed
    for person in ("userId", "user", "guest"):
        first = as_text(lookup(raw, f"{person}.firstName")) or ""
        last = as_text(lookup(raw, f"{person}.lastName")) or ""
        full = f"{first} {last}".strip()
        if full:
            return full
    return "Guest"


def _is_paid(raw: dict[str, Any]) -> bool:
    if isinstance(raw.get("isPaid"), bool):
        return raw["isPaid"]
    return str(raw.get("paymentStatus", "")).lower() == "paid"


def booking_to_reservation(raw: dict[str, Any]) -> Reservation:
    """Map one loosely-shaped booking record. Raises MalformedInput on bad dates."""
    fields = resolve_all(_BOOKING_PROBES, raw)
    check_in = parse_timestamp(fields["check_in"])
    check_out = parse_timestamp(fields["check_out"])
    created_at = None
    if fields["created_at"]:
        try:
            created_at = parse_timestamp(fields["created_at"])
        except MalformedInput:
            created_at = None

    try:
        return Reservation(
            id=fields["id"] or f"booking-{check_in.isoformat()}",
            guest_name=_guest_name(raw, fields["guest_name"]),
            property_name=fields["property_name"],
            check_in=check_in,
            check_out=check_out,
            status=map_booking_status(fields["status"]),
            total_amount=fields["total_amount"],
            is_paid=_is_paid(raw),
            created_at=created_at,
        )
    except ValidationError as exc:
        raise MalformedInput(f"booking {fields['id'] or '?'} rejected: {exc.errors()[0]['msg']}") from exc


def bookings_to_reservations(records: list[Any]) -> list[Reservation]:
    reservations: list[Reservation] = []
    for record in records:
        if not isinstance(record, dict):
            logger.warning(f"Skipping non-object booking record: {record!r}")
            continue
        try:
            reservations.append(booking_to_reservation(record))
        except MalformedInput as exc:
            logger.warning(f"Skipping booking: {exc}")
    return reservations


# ---------------------------------------------------------------------------
# Categorisation
# ---------------------------------------------------------------------------

def align_to(moment: datetime, now: datetime) -> datetime:
    """Bring ``moment`` into the same timezone frame as ``now``.

    A naive ``now`` is read as UTC; naive moments take ``now``'s zone.
    """
    if now.tzinfo is None:
        return moment if moment.tzinfo is None else moment.astimezone(timezone.utc).replace(tzinfo=None)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=now.tzinfo)
    return moment.astimezone(now.tzinfo)


def categorize(
    reservation: Reservation,
    now: datetime,
    checking_out_window_h: int | None = None,
    arriving_soon_window_h: int | None = None,
) -> ReservationCategory | None:
    """Return the single bucket for ``reservation`` at ``now``, or None."""
    checking_out_window = timedelta(
        hours=checking_out_window_h if checking_out_window_h is not None else settings.checking_out_window_h
    )
    arriving_soon_window = timedelta(
        hours=arriving_soon_window_h if arriving_soon_window_h is not None else settings.arriving_soon_window_h
    )

    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    check_in = align_to(reservation.check_in, now)
    check_out = align_to(reservation.check_out, now)
    status = reservation.status

    if status is ReservationStatus.active:
        if today_start <= check_out < today_start + checking_out_window:
            return ReservationCategory.checking_out
        if check_in < now < check_out:
            return ReservationCategory.currently_hosting
        return None
    if status is ReservationStatus.upcoming:
        if today_start <= check_in < today_start + arriving_soon_window:
            return ReservationCategory.arriving_soon
        return ReservationCategory.upcoming
    if status is ReservationStatus.completed:
        return ReservationCategory.pending_review
    return None


def categorize_all(
    reservations: list[Reservation],
    now: datetime,
    checking_out_window_h: int | None = None,
    arriving_soon_window_h: int | None = None,
) -> dict[ReservationCategory, list[Reservation]]:
    buckets: dict[ReservationCategory, list[Reservation]] = {c: [] for c in CATEGORY_PRECEDENCE}
    for reservation in reservations:
        category = categorize(reservation, now, checking_out_window_h, arriving_soon_window_h)
        if category is not None:
            buckets[category].append(reservation)
    return buckets


def reservations_for_view(
    reservations: list[Reservation],
    view: ReservationView,
    now: datetime,
    checking_out_window_h: int | None = None,
    arriving_soon_window_h: int | None = None,
) -> list[Reservation]:
    """Reservations for one filter tab.

    "all" concatenates the buckets in attention order, then appends any
    reservation that fell into no bucket, so nothing is hidden.
    """
    buckets = categorize_all(reservations, now, checking_out_window_h, arriving_soon_window_h)
    if view != "all":
        return list(buckets[ReservationCategory(view)])

    ordered = [r for category in ALL_VIEW_ORDER for r in buckets[category]]
    bucketed = {id(r) for r in ordered}
    return ordered + [r for r in reservations if id(r) not in bucketed]


def status_label(
    reservation: Reservation,
    now: datetime,
    checking_out_window_h: int | None = None,
    arriving_soon_window_h: int | None = None,
) -> str | None:
    category = categorize(reservation, now, checking_out_window_h, arriving_soon_window_h)
    return _STATUS_LABELS[category] if category else None


def search_reservations(reservations: list[Reservation], text: str) -> list[Reservation]:
    needle = text.strip().lower()
    if not needle:
        return list(reservations)
    return [
        r for r in reservations
        if needle in r.guest_name.lower() or needle in r.property_name.lower()
    ]


def take(reservations: list[Reservation], limit: int | None) -> tuple[list[Reservation], bool]:
    """Apply a display limit; the flag says whether more remain."""
    if limit is None or limit >= len(reservations):
        return list(reservations), False
    return list(reservations[:limit]), True
