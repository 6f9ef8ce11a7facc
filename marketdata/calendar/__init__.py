"""Trading calendar helpers: weekdays and session classification."""

from marketdata.calendar.sessions import (
    EXCHANGE_TZ,
    classify,
    to_exchange_time,
    trading_date,
)
from marketdata.calendar.trading_days import is_weekday, next_weekday, weekdays

__all__ = [
    "EXCHANGE_TZ",
    "classify",
    "is_weekday",
    "next_weekday",
    "to_exchange_time",
    "trading_date",
    "weekdays",
]
