from pydantic import BaseModel, Field

from stay_market.models.reservation import Reservation


class MonthlyEarnings(BaseModel):
    month: str
    amount: float = 0.0


class EarningsSummary(BaseModel):
    this_month: float = 0.0
    last_month: float = 0.0
    year_total: float = 0.0
    pending_payouts: float = 0.0
    monthly_series: list[MonthlyEarnings] = Field(default_factory=list)


class DashboardStats(BaseModel):
    total_earnings: float = 0.0
    active_listings: int = 0
    occupancy_rate: float = 0.0
    total_reservations: int = 0
    average_rating: float = 0.0


class TodaysActivity(BaseModel):
    check_ins: int = 0
    check_outs: int = 0
    new_reservations: int = 0


class DashboardMetrics(BaseModel):
    earnings: EarningsSummary = Field(default_factory=EarningsSummary)
    stats: DashboardStats = Field(default_factory=DashboardStats)
    recent_reservations: list[Reservation] = Field(default_factory=list)
    today: TodaysActivity = Field(default_factory=TodaysActivity)
