"""Discriminated results returned across the resolver and dashboard boundaries."""

from enum import Enum

from pydantic import BaseModel, Field

from stay_market.models.dashboard import DashboardMetrics
from stay_market.models.location import SearchTier
from stay_market.models.property import PropertySummary


class OutcomeStatus(str, Enum):
    success = "success"
    empty = "empty"
    error = "error"


class SearchOutcome(BaseModel):
    status: OutcomeStatus
    properties: list[PropertySummary] = Field(default_factory=list)
    tier: SearchTier | None = None  # tier that produced rows
    tiers_attempted: list[SearchTier] = Field(default_factory=list)
    error: str = ""
    retryable: bool = False

    @property
    def calls(self) -> int:
        return len(self.tiers_attempted)


class DashboardOutcome(BaseModel):
    status: OutcomeStatus
    metrics: DashboardMetrics = Field(default_factory=DashboardMetrics)
    needs_onboarding: bool = False
    error: str = ""
    retryable: bool = False
