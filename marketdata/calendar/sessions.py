"""Trading session classification.

Session boundaries are defined on the exchange's local wall clock, so the
UTC instant is converted with full time-zone rules (EST/EDT) before it is
compared. A fixed UTC offset would misclassify half the year.
"""

from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from marketdata.models import Session

EXCHANGE_TZ = ZoneInfo("America/New_York")

PRE_MARKET_OPEN = time(4, 0)
REGULAR_OPEN = time(9, 30)
REGULAR_CLOSE = time(16, 0)
AFTER_HOURS_CLOSE = time(20, 0)


def to_exchange_time(timestamp: datetime) -> datetime:
    """Convert a UTC instant to exchange-local time.

    Naive timestamps are interpreted as UTC.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(EXCHANGE_TZ)


def trading_date(timestamp: datetime) -> date:
    """Return the exchange-local calendar date an instant belongs to."""
    return to_exchange_time(timestamp).date()


def classify(timestamp: datetime) -> Optional[Session]:
    """Classify a UTC timestamp into a trading session.

    Boundaries are half-open: 09:30:00 local is REGULAR and 16:00:00 local
    is AFTER_HOURS.

    Args:
        timestamp: Instant to classify (UTC, or naive meaning UTC).

    Returns:
        The session, or None before 04:00 or from 20:00 local time.
    """
    wall = to_exchange_time(timestamp).time()

    if PRE_MARKET_OPEN <= wall < REGULAR_OPEN:
        return Session.PRE_MARKET
    if REGULAR_OPEN <= wall < REGULAR_CLOSE:
        return Session.REGULAR
    if REGULAR_CLOSE <= wall < AFTER_HOURS_CLOSE:
        return Session.AFTER_HOURS
    return None
