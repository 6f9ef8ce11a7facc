"""Populate the candle store from a provider.

For each symbol: work out which weekdays are missing, merge them into
fetch ranges, fetch each range and write every non-empty day. Symbols run
in parallel threads; each thread owns one symbol, so no two writers ever
target the same day file.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, Field

from marketdata.calendar import weekdays
from marketdata.db.store import CandleStore
from marketdata.errors import ProviderError, ValidationError
from marketdata.models import DateRange
from marketdata.populate.planner import DEFAULT_MAX_SPAN, plan
from marketdata.providers.base import CandleProvider

logger = logging.getLogger(__name__)


class PopulateReport(BaseModel):
    """Outcome of populating one symbol."""

    symbol: str = Field(..., description="Upper-cased trading symbol")
    requested_days: int = Field(default=0, ge=0, description="Weekdays that needed fetching")
    ranges: list[DateRange] = Field(default_factory=list, description="Planned fetch ranges")
    days_written: int = Field(default=0, ge=0, description="Day files written")
    candles_written: int = Field(default=0, ge=0, description="Candles written")
    errors: list[str] = Field(default_factory=list, description="Per-range or per-day failures")

    @property
    def ok(self) -> bool:
        """True when every range was fetched and written."""
        return not self.errors


def populate_symbol(
    store: CandleStore,
    provider: CandleProvider,
    symbol: str,
    start: date,
    end: date,
    force: bool = False,
    max_span: Optional[int] = DEFAULT_MAX_SPAN,
) -> PopulateReport:
    """Fetch and store missing data for one symbol.

    A provider failure for one range is logged and recorded, and the next
    range is still attempted. Storage failures propagate.

    Args:
        store: Destination store.
        provider: Source of candles.
        symbol: Trading symbol (upper-cased before use).
        start: First date to cover.
        end: Last date to cover (inclusive).
        force: Re-fetch every weekday even if a day file exists.
        max_span: Maximum calendar days per fetch request.

    Returns:
        Report of what was fetched and written.
    """
    symbol = symbol.upper()
    report = PopulateReport(symbol=symbol)

    dates = weekdays(start, end) if force else store.missing_dates(symbol, start, end)
    report.requested_days = len(dates)
    if not dates:
        logger.info("%s: all data present, skipping", symbol)
        return report

    report.ranges = plan(dates, max_span)
    logger.info(
        "%s: %d missing date(s) from %s to %s, fetching in %d range(s)",
        symbol,
        len(dates),
        dates[0],
        dates[-1],
        len(report.ranges),
    )

    wanted = set(dates)
    for date_range in report.ranges:
        try:
            day_groups = provider.fetch_candles_range(symbol, date_range.start, date_range.end)
        except ProviderError as e:
            logger.warning("%s: %s: fetch failed: %s", symbol, date_range, e)
            report.errors.append(f"{date_range}: {e}")
            continue

        for day, candles in day_groups:
            # Ranges span weekends and may return days the store already has
            if not candles or day not in wanted:
                continue
            try:
                store.write_day(symbol, day, candles)
            except ValidationError as e:
                logger.warning("%s: %s: rejected batch: %s", symbol, day, e)
                report.errors.append(f"{day}: {e}")
                continue
            report.days_written += 1
            report.candles_written += len(candles)

        logger.info("%s: %s: wrote %d day(s) so far", symbol, date_range, report.days_written)

    return report


def populate(
    store: CandleStore,
    make_provider: Callable[[], CandleProvider],
    symbols: Iterable[str],
    start: date,
    end: date,
    force: bool = False,
    max_span: Optional[int] = DEFAULT_MAX_SPAN,
    max_workers: int = 4,
) -> list[PopulateReport]:
    """Populate several symbols in parallel, one worker per symbol.

    Each worker builds its own provider with ``make_provider``, so no HTTP
    session is shared between threads.

    Returns:
        Reports in the order the symbols were given (duplicates dropped).
    """
    unique = list(dict.fromkeys(s.upper() for s in symbols))
    if not unique:
        return []

    def work(symbol: str) -> PopulateReport:
        return populate_symbol(store, make_provider(), symbol, start, end, force, max_span)

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(unique)))) as executor:
        futures = [executor.submit(work, symbol) for symbol in unique]
        return [future.result() for future in futures]
