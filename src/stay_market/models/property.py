from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class PropertySummary(BaseModel):
    id: str
    title: str = "Untitled Property"
    price: float = 0.0
    currency: str = "USD"
    rating: float = 0.0
    review_count: int = 0
    location: str = "Unknown location"
    images: list[str] = Field(default_factory=list)
    created_at: datetime | None = None

    @field_validator("rating")
    @classmethod
    def rating_in_range(cls, v: float) -> float:
        return min(max(v, 0.0), 5.0)

    @field_validator("review_count")
    @classmethod
    def review_count_non_negative(cls, v: int) -> int:
        return max(v, 0)
