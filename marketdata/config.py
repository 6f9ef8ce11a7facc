"""Configuration for marketdata.

Settings come from a TOML file (``~/.config/marketdata/config.toml`` by
default) with environment variables layered on top for credentials and
the data directory. Provider credentials live on the provider's own
config object and are passed to the provider explicitly.
"""

import os
from pathlib import Path
from typing import Mapping, Optional

import toml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from marketdata.errors import ConfigError, ProviderConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "marketdata" / "config.toml"

ALPACA_DATA_BASE_URL = "https://data.alpaca.markets/v2"
YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart"

ENV_ALPACA_KEY_ID = "ALPACA_API_KEY_ID"
ENV_ALPACA_SECRET_KEY = "ALPACA_API_SECRET_KEY"
ENV_DATA_DIR = "MARKETDATA_DATA_DIR"


class AlpacaConfig(BaseModel):
    """Alpaca market data API settings."""

    api_key_id: str = Field(default="", description="APCA-API-KEY-ID header value")
    api_secret_key: str = Field(default="", description="APCA-API-SECRET-KEY header value")
    base_url: str = Field(default=ALPACA_DATA_BASE_URL, description="Data API base URL")
    feed: str = Field(default="iex", description="Bar feed (iex or sip)")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")

    model_config = {"frozen": True}

    def require_credentials(self) -> None:
        """Raise ProviderConfigError if either credential is missing."""
        if not self.api_key_id:
            raise ProviderConfigError(f"{ENV_ALPACA_KEY_ID} not set")
        if not self.api_secret_key:
            raise ProviderConfigError(f"{ENV_ALPACA_SECRET_KEY} not set")


class YahooConfig(BaseModel):
    """Yahoo Finance chart API settings."""

    base_url: str = Field(default=YAHOO_CHART_URL, description="Chart endpoint URL")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")

    model_config = {"frozen": True}


class Settings(BaseModel):
    """Top-level marketdata settings."""

    data_dir: Path = Field(default=Path("data"), description="Directory holding symbol folders")
    provider: str = Field(default="alpaca", description="Default provider name")
    max_span: int = Field(default=60, ge=1, description="Max calendar days per fetch request")
    max_workers: int = Field(default=4, ge=1, description="Symbols populated in parallel")
    alpaca: AlpacaConfig = Field(default_factory=AlpacaConfig)
    yahoo: YahooConfig = Field(default_factory=YahooConfig)

    model_config = {"frozen": True}


def _read_config_file(path: Path) -> dict:
    """Load the TOML config file, or an empty dict if it does not exist."""
    if not path.exists():
        return {}
    try:
        return toml.load(path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"failed to read config file: {e}", path=path) from e


def load_settings(
    path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from the config file and environment.

    Args:
        path: Config file path. Defaults to ``~/.config/marketdata/config.toml``.
        env: Environment mapping. Defaults to ``os.environ``.

    Returns:
        Validated settings.

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values.
    """
    path = path or DEFAULT_CONFIG_PATH
    env = os.environ if env is None else env

    raw = _read_config_file(path)
    alpaca = dict(raw.get("alpaca", {}))
    if env.get(ENV_ALPACA_KEY_ID):
        alpaca["api_key_id"] = env[ENV_ALPACA_KEY_ID]
    if env.get(ENV_ALPACA_SECRET_KEY):
        alpaca["api_secret_key"] = env[ENV_ALPACA_SECRET_KEY]
    raw["alpaca"] = alpaca
    if env.get(ENV_DATA_DIR):
        raw["data_dir"] = env[ENV_DATA_DIR]

    try:
        return Settings(**raw)
    except PydanticValidationError as e:
        raise ConfigError(f"invalid configuration: {e}", path=path) from e
