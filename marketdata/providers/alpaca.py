"""Alpaca market data provider.

Authenticates with the APCA-API-KEY-ID and APCA-API-SECRET-KEY headers and
pages through ``/stocks/{symbol}/bars``. Prices are parsed straight into
Decimal so the digits Alpaca sends are the digits that get stored.
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from marketdata.config import AlpacaConfig
from marketdata.errors import NetworkError, ParseError
from marketdata.models import Candle
from marketdata.providers.base import (
    DayGroups,
    check_response,
    exchange_day_bounds,
    group_by_trading_date,
)

logger = logging.getLogger(__name__)

TIMEFRAME = "5Min"
PAGE_LIMIT = 10000


def parse_bar(bar: dict[str, Any]) -> Candle:
    """Convert one Alpaca bar object into a Candle.

    Raises:
        ParseError: If a field is missing or malformed.
    """
    try:
        timestamp = datetime.fromisoformat(bar["t"]).astimezone(timezone.utc)
        return Candle(
            timestamp=timestamp,
            open=Decimal(bar["o"]),
            high=Decimal(bar["h"]),
            low=Decimal(bar["l"]),
            close=Decimal(bar["c"]),
            volume=int(bar["v"]),
        )
    except (KeyError, TypeError, ValueError, ArithmeticError, PydanticValidationError) as e:
        raise ParseError(f"alpaca: invalid bar {bar!r}: {e}") from e


class AlpacaProvider:
    """Alpaca market data provider for 5-minute bars."""

    name = "alpaca"

    def __init__(self, config: AlpacaConfig, session: Optional[requests.Session] = None):
        """Initialize the provider.

        Args:
            config: Alpaca settings with credentials.
            session: Optional requests session (tests inject a mock).

        Raises:
            ProviderConfigError: If credentials are missing.
        """
        config.require_credentials()
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "APCA-API-KEY-ID": config.api_key_id,
                "APCA-API-SECRET-KEY": config.api_secret_key,
            }
        )

    def _get_page(self, symbol: str, params: dict[str, str]) -> dict[str, Any]:
        url = f"{self.config.base_url}/stocks/{symbol}/bars"
        try:
            response = self.session.get(url, params=params, timeout=self.config.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"alpaca: request failed: {e}") from e

        check_response(response, self.name)

        try:
            body = response.json(parse_float=Decimal)
        except (json.JSONDecodeError, ValueError) as e:
            raise ParseError(f"alpaca: failed to parse response: {e}") from e
        if not isinstance(body, dict):
            raise ParseError("alpaca: response is not an object")
        return body

    def _fetch(self, symbol: str, start: date, end: date) -> list[Candle]:
        lower, upper = exchange_day_bounds(start, end)
        params = {
            "timeframe": TIMEFRAME,
            "start": lower.isoformat(),
            "end": upper.isoformat(),
            "adjustment": "split",
            "feed": self.config.feed,
            "limit": str(PAGE_LIMIT),
        }

        candles: list[Candle] = []
        while True:
            body = self._get_page(symbol, params)
            candles.extend(parse_bar(bar) for bar in body.get("bars") or [])

            token = body.get("next_page_token")
            if not token:
                break
            params["page_token"] = token

        logger.debug("alpaca: %s %s..%s returned %d bar(s)", symbol, start, end, len(candles))
        return candles

    def fetch_candles(self, symbol: str, day: date) -> list[Candle]:
        """Fetch candles for a single trading date, sorted by timestamp."""
        return [c for _, group in self.fetch_candles_range(symbol, day, day) for c in group]

    def fetch_candles_range(self, symbol: str, start: date, end: date) -> DayGroups:
        """Fetch candles for ``[start, end]`` grouped by trading date."""
        return group_by_trading_date(self._fetch(symbol, start, end))
