"""Candle provider implementations for marketdata."""

from marketdata.config import Settings
from marketdata.errors import ProviderConfigError
from marketdata.providers.alpaca import AlpacaProvider
from marketdata.providers.base import CandleProvider, DayGroups, group_by_trading_date
from marketdata.providers.yahoo import YahooProvider

PROVIDER_NAMES = ["alpaca", "yahoo"]


def create_provider(name: str, settings: Settings) -> CandleProvider:
    """Build the provider called ``name`` from its settings.

    Raises:
        ProviderConfigError: If the name is unknown or credentials are missing.
    """
    if name == "alpaca":
        return AlpacaProvider(settings.alpaca)
    if name == "yahoo":
        return YahooProvider(settings.yahoo)
    raise ProviderConfigError(
        f"unknown provider: {name}. Expected: {', '.join(PROVIDER_NAMES)}"
    )


__all__ = [
    "AlpacaProvider",
    "CandleProvider",
    "DayGroups",
    "PROVIDER_NAMES",
    "YahooProvider",
    "create_provider",
    "group_by_trading_date",
]
