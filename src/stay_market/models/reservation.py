import math
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, computed_field, model_validator


class ReservationStatus(str, Enum):
    pending = "pending"
    active = "active"
    upcoming = "upcoming"
    completed = "completed"
    cancelled = "cancelled"


class ReservationCategory(str, Enum):
    checking_out = "checkingOut"
    currently_hosting = "currentlyHosting"
    arriving_soon = "arrivingSoon"
    upcoming = "upcoming"
    pending_review = "pendingReview"


# Order buckets are evaluated in; first match wins.
CATEGORY_PRECEDENCE: list[ReservationCategory] = [
    ReservationCategory.checking_out,
    ReservationCategory.currently_hosting,
    ReservationCategory.arriving_soon,
    ReservationCategory.upcoming,
    ReservationCategory.pending_review,
]

# Order buckets are concatenated in for the unfiltered "all" view.
ALL_VIEW_ORDER: list[ReservationCategory] = [
    ReservationCategory.currently_hosting,
    ReservationCategory.checking_out,
    ReservationCategory.arriving_soon,
    ReservationCategory.upcoming,
    ReservationCategory.pending_review,
]


class Reservation(BaseModel):
    id: str
    guest_name: str = "Guest"
    property_name: str = "Property"
    check_in: datetime
    check_out: datetime
    status: ReservationStatus = ReservationStatus.pending
    total_amount: float = 0.0
    is_paid: bool = False
    created_at: datetime | None = None

    @model_validator(mode="after")
    def check_out_after_check_in(self) -> "Reservation":
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def nights(self) -> int:
        days = (self.check_out - self.check_in).total_seconds() / 86400
        return max(math.ceil(days), 1)
