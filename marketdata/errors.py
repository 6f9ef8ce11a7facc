"""Exception hierarchy for marketdata.

Every error raised by the store, codec, providers and configuration layer
inherits from MarketDataError so callers can catch the whole family at
once, or a single kind when they need to react to it.
"""

from typing import Any, Dict, Optional


class MarketDataError(Exception):
    """Base exception for all marketdata errors.

    Extra keyword arguments are kept as context and appended to the
    string form, e.g. ``CodecError("bad file", path="...")``.
    """

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx}]"
        return self.message


# ============================================================================
# Store errors
# ============================================================================


class StorageError(MarketDataError):
    """Raised when a filesystem operation fails (permissions, disk full...)."""


class CodecError(MarketDataError):
    """Raised when a payload cannot be encoded or a day file cannot be decoded."""


class ValidationError(MarketDataError):
    """Raised when a candle batch is rejected at write time.

    Rejected batches are empty, not strictly ascending by timestamp
    (which includes duplicates), or contain a negative volume.
    """


class NotFoundError(MarketDataError):
    """Raised when a requested day file does not exist."""


class ConfigError(MarketDataError):
    """Raised when the configuration file or its values are invalid."""


# ============================================================================
# Provider errors
# ============================================================================


class ProviderError(MarketDataError):
    """Base class for errors raised by candle providers."""


class ProviderConfigError(ProviderError):
    """Raised when a provider is missing credentials or is unknown."""


class RateLimitedError(ProviderError):
    """Raised when the upstream API throttles the caller."""

    def __init__(self, message: str, retry_after: int = 60, **context: Any):
        super().__init__(message, retry_after=retry_after, **context)
        self.retry_after = retry_after


class UnauthorizedError(ProviderError):
    """Raised when the upstream API rejects the credentials."""


class ProviderNotFoundError(ProviderError):
    """Raised when the upstream API does not know the requested symbol."""


class NetworkError(ProviderError):
    """Raised when the HTTP request itself fails (DNS, timeout, reset)."""


class ParseError(ProviderError):
    """Raised when an upstream response body cannot be understood."""


class ApiError(ProviderError):
    """Raised for any other non-success upstream response."""

    def __init__(self, message: str, status: Optional[int] = None, **context: Any):
        super().__init__(message, status=status, **context)
        self.status = status
