"""Data models for marketdata."""

from marketdata.models.candle import Candle
from marketdata.models.date_range import DateRange
from marketdata.models.session import Session

__all__ = [
    "Candle",
    "DateRange",
    "Session",
]
