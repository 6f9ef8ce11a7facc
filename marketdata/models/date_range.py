"""Inclusive date range model used for fetch planning."""

from datetime import date

from pydantic import BaseModel, Field, model_validator


class DateRange(BaseModel):
    """An inclusive ``[start, end]`` span of trading dates."""

    start: date = Field(..., description="First date in the range")
    end: date = Field(..., description="Last date in the range (inclusive)")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError(f"range end {self.end} is before start {self.start}")
        return self

    @property
    def days(self) -> int:
        """Calendar-day width of the range, weekends included."""
        return (self.end - self.start).days + 1

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
