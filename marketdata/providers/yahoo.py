"""Yahoo Finance chart provider.

No authentication is required. Yahoo only serves roughly the last 60 days
of 5-minute history, and its prices arrive as JSON floats.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from marketdata.config import YahooConfig
from marketdata.errors import ApiError, NetworkError, ParseError, ProviderNotFoundError
from marketdata.models import Candle
from marketdata.providers.base import (
    DayGroups,
    check_response,
    exchange_day_bounds,
    group_by_trading_date,
)

logger = logging.getLogger(__name__)

INTERVAL = "5m"
USER_AGENT = "Mozilla/5.0"


def _price(value: float) -> Decimal:
    # repr gives the shortest text that round-trips the float
    return Decimal(repr(float(value)))


def parse_chart(body: dict[str, Any]) -> list[Candle]:
    """Convert a chart API response body into candles.

    Rows with any missing price are skipped; a missing volume becomes 0.

    Raises:
        ApiError: If the body carries a chart error.
        ProviderNotFoundError: If the error says the symbol is unknown.
        ParseError: If the body does not have the expected shape.
    """
    try:
        chart = body["chart"]
        error = chart.get("error")
        if error:
            code = error.get("code", "")
            message = f"yahoo: {code}: {error.get('description', '')}"
            if code == "Not Found":
                raise ProviderNotFoundError(message)
            raise ApiError(message)

        results = chart.get("result")
        if results is None:
            raise ParseError("yahoo: no results in response")
        if not results:
            return []

        result = results[0]
        timestamps = result.get("timestamp")
        if timestamps is None:
            # Yahoo omits timestamps when the range holds no trading data
            return []
        quotes = result["indicators"]["quote"]
        if not quotes:
            return []
        quote = quotes[0]

        candles = []
        for i, ts in enumerate(timestamps):
            row = [_column(quote, name, i) for name in ("open", "high", "low", "close")]
            if any(v is None for v in row):
                continue
            volume = _column(quote, "volume", i)
            candles.append(
                Candle(
                    timestamp=datetime.fromtimestamp(ts, tz=timezone.utc),
                    open=_price(row[0]),
                    high=_price(row[1]),
                    low=_price(row[2]),
                    close=_price(row[3]),
                    volume=int(volume) if volume is not None else 0,
                )
            )
        return candles
    except (KeyError, TypeError, ValueError, AttributeError, OverflowError, PydanticValidationError) as e:
        raise ParseError(f"yahoo: unexpected response shape: {e}") from e


def _column(quote: dict[str, Any], name: str, index: int) -> Any:
    values = quote.get(name) or []
    return values[index] if index < len(values) else None


class YahooProvider:
    """Yahoo Finance provider for 5-minute bars."""

    name = "yahoo"

    def __init__(
        self,
        config: Optional[YahooConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the provider.

        Args:
            config: Yahoo settings; defaults are used when omitted.
            session: Optional requests session (tests inject a mock).
        """
        self.config = config or YahooConfig()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def _fetch(self, symbol: str, start: date, end: date) -> list[Candle]:
        lower, upper = exchange_day_bounds(start, end)
        params = {
            "period1": str(int(lower.timestamp())),
            "period2": str(int(upper.timestamp())),
            "interval": INTERVAL,
        }
        try:
            response = self.session.get(
                f"{self.config.base_url}/{symbol}",
                params=params,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"yahoo: request failed: {e}") from e

        # Yahoo reports unknown symbols as 404 with a chart error body
        if response.status_code != 404:
            check_response(response, self.name)

        try:
            body = response.json()
        except ValueError as e:
            check_response(response, self.name)
            raise ParseError(f"yahoo: failed to parse response: {e}") from e

        candles = parse_chart(body)
        logger.debug("yahoo: %s %s..%s returned %d bar(s)", symbol, start, end, len(candles))
        return candles

    def fetch_candles(self, symbol: str, day: date) -> list[Candle]:
        """Fetch candles for a single trading date, sorted by timestamp."""
        return [c for _, group in self.fetch_candles_range(symbol, day, day) for c in group]

    def fetch_candles_range(self, symbol: str, start: date, end: date) -> DayGroups:
        """Fetch candles for ``[start, end]`` grouped by trading date."""
        return group_by_trading_date(self._fetch(symbol, start, end))
