"""Candle provider interface and shared HTTP helpers."""

from datetime import date, datetime, time, timedelta
from operator import attrgetter
from typing import Iterable, Protocol, runtime_checkable

import requests

from marketdata.calendar import EXCHANGE_TZ, trading_date
from marketdata.errors import (
    ApiError,
    ProviderNotFoundError,
    RateLimitedError,
    UnauthorizedError,
)
from marketdata.models import Candle

DayGroups = list[tuple[date, list[Candle]]]

DEFAULT_RETRY_AFTER = 60


@runtime_checkable
class CandleProvider(Protocol):
    """Anything that can fetch 5-minute candles for a symbol.

    Implementations are interchangeable; the store and the population
    orchestrator only rely on these members.
    """

    name: str

    def fetch_candles(self, symbol: str, day: date) -> list[Candle]:
        """Fetch candles for one trading date, sorted by timestamp."""
        ...

    def fetch_candles_range(self, symbol: str, start: date, end: date) -> DayGroups:
        """Fetch candles for ``[start, end]`` grouped by trading date."""
        ...


def group_by_trading_date(candles: Iterable[Candle]) -> DayGroups:
    """Group candles by exchange-local trading date.

    Returns:
        ``(date, candles)`` pairs in ascending date order, each group
        sorted by timestamp.
    """
    groups: dict[date, list[Candle]] = {}
    for candle in sorted(candles, key=attrgetter("timestamp")):
        groups.setdefault(trading_date(candle.timestamp), []).append(candle)
    return sorted(groups.items())


def exchange_day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Exchange-local midnight of ``start`` and of the day after ``end``."""
    lower = datetime.combine(start, time.min, tzinfo=EXCHANGE_TZ)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=EXCHANGE_TZ)
    return lower, upper


def check_response(response: requests.Response, provider: str) -> None:
    """Map a non-success HTTP response to the matching ProviderError.

    Raises:
        RateLimitedError: On 429, with Retry-After when the server sent it.
        UnauthorizedError: On 401 or 403.
        ProviderNotFoundError: On 404.
        ApiError: On any other non-2xx status.
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    if status == 429:
        retry_after = response.headers.get("retry-after", "")
        raise RateLimitedError(
            f"{provider}: rate limited",
            retry_after=int(retry_after) if retry_after.isdigit() else DEFAULT_RETRY_AFTER,
        )
    if status in (401, 403):
        raise UnauthorizedError(f"{provider}: credentials rejected", status=status)
    if status == 404:
        raise ProviderNotFoundError(f"{provider}: not found", url=response.url)
    raise ApiError(f"{provider}: {response.text[:500]}", status=status)
