"""Whole-store validation pass.

Reads every stored day file and collects problems instead of stopping at
the first one, so a single corrupt file does not hide the rest.
"""

import logging
from datetime import date
from typing import Iterable, Literal, Optional

from pydantic import BaseModel, Field

from marketdata.db.store import CandleStore
from marketdata.errors import CodecError, NotFoundError, StorageError

logger = logging.getLogger(__name__)


class ValidationIssue(BaseModel):
    """One problem found in a day file."""

    symbol: str = Field(..., description="Trading symbol")
    day: date = Field(..., description="Trading date of the file")
    level: Literal["ERROR", "WARN"] = Field(..., description="Severity")
    message: str = Field(..., description="What is wrong")

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.level}: {self.symbol} {self.day}: {self.message}"


def validate_store(
    store: CandleStore,
    symbols: Optional[Iterable[str]] = None,
) -> list[ValidationIssue]:
    """Check every day file for the given symbols (all symbols by default).

    Reported problems:

    - ERROR: the file cannot be read or decoded
    - ERROR: timestamps are not strictly ascending
    - WARN: candles with zero volume

    Returns:
        Issues in symbol then date order.
    """
    symbols = sorted(store.list_symbols()) if symbols is None else list(symbols)
    issues: list[ValidationIssue] = []

    for symbol in symbols:
        for day in store.list_dates(symbol):
            try:
                candles = store.read_day(symbol, day)
            except NotFoundError:
                # Removed since it was listed
                logger.debug("%s %s disappeared before validation", symbol, day)
                continue
            except (CodecError, StorageError) as e:
                issues.append(
                    ValidationIssue(symbol=symbol, day=day, level="ERROR", message=f"failed to read: {e}")
                )
                continue

            for i in range(1, len(candles)):
                if candles[i].timestamp <= candles[i - 1].timestamp:
                    issues.append(
                        ValidationIssue(
                            symbol=symbol,
                            day=day,
                            level="ERROR",
                            message=f"timestamps not strictly ascending at index {i}",
                        )
                    )
                    break

            zero_volume = sum(1 for c in candles if c.volume == 0)
            if zero_volume:
                issues.append(
                    ValidationIssue(
                        symbol=symbol,
                        day=day,
                        level="WARN",
                        message=f"{zero_volume} candle(s) with zero volume",
                    )
                )

    logger.info("Validated %d symbol(s), %d issue(s)", len(symbols), len(issues))
    return issues
