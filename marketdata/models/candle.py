"""Candle (OHLCV) data model."""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class Candle(BaseModel):
    """Represents a single 5-minute OHLCV candle.

    Prices are kept as ``Decimal`` so the exact decimal text survives a
    round trip through storage (``Decimal("150.50")`` stays ``"150.50"``).
    """

    timestamp: datetime = Field(..., description="Candle open time (UTC)")
    open: Decimal = Field(..., allow_inf_nan=False, description="Opening price")
    high: Decimal = Field(..., allow_inf_nan=False, description="High price")
    low: Decimal = Field(..., allow_inf_nan=False, description="Low price")
    close: Decimal = Field(..., allow_inf_nan=False, description="Closing price")
    volume: int = Field(..., ge=INT64_MIN, le=INT64_MAX, description="Traded volume")

    model_config = {"frozen": True}

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator("open", "high", "low", "close", mode="before")
    @classmethod
    def _reject_float(cls, value):
        # A float has already lost the decimal text the provider sent.
        if isinstance(value, float):
            raise ValueError("prices must be Decimal or str, not float")
        return value
