"""Filesystem candle store for marketdata.

One Parquet file per symbol per trading date. The store keeps no index in
memory; every query looks at the filesystem, so any number of instances
may share a data directory.
"""

import logging
import os
import tempfile
from datetime import date, time
from pathlib import Path
from typing import Iterable, Optional, Union

from marketdata.calendar import classify, weekdays
from marketdata.db import codec, paths
from marketdata.errors import (
    CodecError,
    MarketDataError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from marketdata.models import Candle, Session

logger = logging.getLogger(__name__)


def validate_batch(symbol: str, day: date, candles: list[Candle]) -> None:
    """Check that a candle batch can be stored as a day file.

    Raises:
        ValidationError: If the batch is empty, not strictly ascending by
            timestamp, or holds a negative volume.
    """
    if not candles:
        raise ValidationError("no candles to write", symbol=symbol, date=day)

    previous = None
    for index, candle in enumerate(candles):
        if candle.volume < 0:
            raise ValidationError(
                "negative volume",
                symbol=symbol,
                date=day,
                index=index,
                volume=candle.volume,
            )
        if previous is not None and candle.timestamp <= previous.timestamp:
            reason = (
                "duplicate timestamp"
                if candle.timestamp == previous.timestamp
                else "timestamps not ascending"
            )
            raise ValidationError(
                reason,
                symbol=symbol,
                date=day,
                index=index,
                timestamp=candle.timestamp.isoformat(),
            )
        previous = candle


class CandleStore:
    """Filesystem-backed store for 5-minute candles.

    Directory layout: ``{data_dir}/{SYMBOL}/{YYYY}/{MM}/{YYYY-MM-DD}.parquet``
    """

    def __init__(self, data_dir: Union[Path, str]):
        """Initialize the store.

        Args:
            data_dir: Directory that holds the symbol directories. It does
                not need to exist yet.
        """
        self.data_dir = Path(data_dir)

    @classmethod
    def from_root(cls, root: Union[Path, str]) -> "CandleStore":
        """Create a store using the ``data/`` directory under ``root``."""
        return cls(Path(root) / "data")

    def file_path(self, symbol: str, day: date) -> Path:
        """Path of the day file for a symbol and trading date."""
        return paths.resolve(self.data_dir, symbol, day)

    def has_data(self, symbol: str, day: date) -> bool:
        """Check whether a day file exists for a symbol and date."""
        return self.file_path(symbol, day).is_file()

    # ==================== Writes ====================

    def write_day(self, symbol: str, day: date, candles: Iterable[Candle]) -> Path:
        """Write the full candle sequence for one symbol and trading date.

        The payload is written to a temporary file in the destination
        directory and renamed into place, so readers see either the old
        file or the new one. An existing file for the key is replaced.

        Args:
            symbol: Trading symbol (used verbatim as a directory name).
            day: Exchange-local trading date.
            candles: Candles in strictly ascending timestamp order.

        Returns:
            Path of the written day file.

        Raises:
            ValidationError: If the batch is empty, unordered, has
                duplicate timestamps or negative volumes.
            CodecError: If the candles cannot be encoded.
            StorageError: If the filesystem write fails.
        """
        candles = list(candles)
        validate_batch(symbol, day, candles)
        payload = codec.encode(candles)

        path = self.file_path(symbol, day)
        try:
            paths.ensure_parent(path)
            self._atomic_write(path, payload)
        except OSError as e:
            raise StorageError(f"failed to write day file: {e}", path=path) from e

        logger.debug("Wrote %d candle(s) to %s", len(candles), path)
        return path

    def _atomic_write(self, path: Path, payload: bytes) -> None:
        """Write to a temp file next to ``path`` then rename it over ``path``."""
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            logger.warning("Write to %s failed, removing %s", path, tmp_path.name)
            tmp_path.unlink(missing_ok=True)
            raise

    # ==================== Reads ====================

    def read_day(self, symbol: str, day: date) -> list[Candle]:
        """Read all candles for a symbol on one trading date.

        Raises:
            NotFoundError: If no day file exists.
            CodecError: If the file exists but cannot be decoded.
            StorageError: If the file cannot be read.
        """
        path = self.file_path(symbol, day)
        try:
            payload = path.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(f"no data for {symbol} on {day}", path=path) from e
        except OSError as e:
            raise StorageError(f"failed to read day file: {e}", path=path) from e

        try:
            candles = codec.decode(payload)
        except CodecError as e:
            raise CodecError(e.message, **{**e.context, "path": path}) from e

        logger.debug("Read %d candle(s) from %s", len(candles), path)
        return candles

    def read_range(
        self,
        symbol: str,
        start: date,
        end: date,
        errors: Optional[list[tuple[date, MarketDataError]]] = None,
    ) -> list[Candle]:
        """Read candles for every trading date in ``[start, end]``.

        Dates without a day file are skipped. Candles are concatenated in
        ascending date order, and each file is already ascending, so the
        result is ascending by timestamp.

        Args:
            symbol: Trading symbol.
            start: First trading date (inclusive).
            end: Last trading date (inclusive).
            errors: When given, a file that exists but cannot be read is
                skipped and ``(date, error)`` is appended here instead of
                the error being raised.

        Returns:
            Candles for the range.

        Raises:
            CodecError: If a file cannot be decoded and ``errors`` is None.
            StorageError: If a file cannot be read and ``errors`` is None.
        """
        result: list[Candle] = []
        for day in weekdays(start, end):
            try:
                result.extend(self.read_day(symbol, day))
            except NotFoundError:
                continue
            except (CodecError, StorageError) as e:
                if errors is None:
                    raise
                logger.warning("Skipping %s %s: %s", symbol, day, e)
                errors.append((day, e))
        return result

    def read_range_session(
        self,
        symbol: str,
        start: date,
        end: date,
        session: Session,
        errors: Optional[list[tuple[date, MarketDataError]]] = None,
    ) -> list[Candle]:
        """Read candles for a date range keeping only one trading session."""
        candles = self.read_range(symbol, start, end, errors=errors)
        return [c for c in candles if classify(c.timestamp) == session]

    def read_time_range(
        self,
        symbol: str,
        day: date,
        start_time: time,
        end_time: time,
    ) -> list[Candle]:
        """Read one day's candles whose UTC time is within ``[start_time, end_time]``."""
        candles = self.read_day(symbol, day)
        return [c for c in candles if start_time <= c.timestamp.time() <= end_time]

    # ==================== Listing ====================

    def list_symbols(self) -> set[str]:
        """List all symbols that have a directory in the store."""
        try:
            entries = list(self.data_dir.iterdir())
        except FileNotFoundError:
            return set()
        except OSError as e:
            raise StorageError(f"failed to list symbols: {e}", path=self.data_dir) from e
        return {p.name for p in entries if p.is_dir() and not p.name.startswith(".")}

    def list_dates(self, symbol: str) -> list[date]:
        """List all dates with a day file for a symbol, ascending."""
        symbol_dir = self.data_dir / symbol
        if not symbol_dir.is_dir():
            return []

        dates = []
        try:
            for year_dir in symbol_dir.iterdir():
                if not year_dir.is_dir():
                    continue
                for month_dir in year_dir.iterdir():
                    if not month_dir.is_dir():
                        continue
                    for file_path in month_dir.iterdir():
                        day = paths.parse_file_date(file_path.name)
                        if day is not None and file_path.is_file():
                            dates.append(day)
        except OSError as e:
            raise StorageError(f"failed to list dates: {e}", path=symbol_dir) from e

        dates.sort()
        return dates

    def date_range(self, symbol: str) -> Optional[tuple[date, date]]:
        """Earliest and latest stored date for a symbol, or None if empty."""
        dates = self.list_dates(symbol)
        if not dates:
            return None
        return dates[0], dates[-1]

    def missing_dates(self, symbol: str, start: date, end: date) -> list[date]:
        """Weekdays in ``[start, end]`` that have no day file."""
        return [d for d in weekdays(start, end) if not self.has_data(symbol, d)]
