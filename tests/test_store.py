"""Property-based tests for the filesystem candle store.

**Feature: candle-store**
"""

import tempfile
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from marketdata.db.store import CandleStore
from marketdata.errors import CodecError, NotFoundError, StorageError, ValidationError
from marketdata.models import Candle, Session


@pytest.fixture
def store():
    """Create a store in a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield CandleStore(Path(tmpdir) / "data")


def make_candles(day: date, count: int = 3, hour: int = 15, close: str = "100.50") -> list[Candle]:
    """Build ``count`` ascending 5-minute candles starting at ``hour`` UTC."""
    start = datetime(day.year, day.month, day.day, hour, 0, tzinfo=timezone.utc)
    return [
        Candle(
            timestamp=start + timedelta(minutes=5 * i),
            open=Decimal("100.00"),
            high=Decimal("101.25"),
            low=Decimal("99.75"),
            close=Decimal(close),
            volume=1000 + i,
        )
        for i in range(count)
    ]


class TestLayout:
    """Day files live at ``SYMBOL/YYYY/MM/YYYY-MM-DD.parquet``."""

    def test_file_path(self, store: CandleStore):
        path = store.file_path("AAPL", date(2025, 1, 2))
        assert path == store.data_dir / "AAPL" / "2025" / "01" / "2025-01-02.parquet"

    def test_from_root(self):
        assert CandleStore.from_root("/srv/md").data_dir == Path("/srv/md/data")

    def test_write_creates_directories(self, store: CandleStore):
        path = store.write_day("AAPL", date(2025, 1, 2), make_candles(date(2025, 1, 2)))
        assert path.is_file()
        assert path == store.file_path("AAPL", date(2025, 1, 2))


class TestWriteReadIdentity:
    """
    **Feature: candle-store, Property 3: Write/Read Identity**

    *For any* accepted batch, reading the same key returns exactly what was
    written.
    """

    @given(count=st.integers(min_value=1, max_value=50))
    @settings(max_examples=20, deadline=None)
    def test_write_then_read(self, count: int):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = CandleStore(tmpdir)
            day = date(2025, 1, 2)
            candles = make_candles(day, count=count)
            store.write_day("AAPL", day, candles)

            assert store.read_day("AAPL", day) == candles

    def test_idempotent_write(self, store: CandleStore):
        """Writing the same batch twice leaves the same readable state."""
        day = date(2025, 1, 2)
        candles = make_candles(day)
        store.write_day("AAPL", day, candles)
        store.write_day("AAPL", day, candles)

        assert store.read_day("AAPL", day) == candles
        assert store.list_dates("AAPL") == [day]

    def test_overwrite_replaces(self, store: CandleStore):
        day = date(2025, 1, 2)
        store.write_day("AAPL", day, make_candles(day, count=5))
        replacement = make_candles(day, count=2, close="42.00")
        store.write_day("AAPL", day, replacement)

        assert store.read_day("AAPL", day) == replacement


class TestWriteValidation:
    """Rejected batches leave the store untouched."""

    def test_empty_batch(self, store: CandleStore):
        with pytest.raises(ValidationError, match="no candles"):
            store.write_day("AAPL", date(2025, 1, 2), [])
        assert not store.has_data("AAPL", date(2025, 1, 2))

    def test_duplicate_timestamp(self, store: CandleStore):
        day = date(2025, 1, 2)
        candles = make_candles(day, count=2)
        with pytest.raises(ValidationError, match="duplicate timestamp"):
            store.write_day("AAPL", day, [candles[0], candles[0], candles[1]])
        assert not store.has_data("AAPL", day)

    def test_descending_timestamps(self, store: CandleStore):
        day = date(2025, 1, 2)
        candles = make_candles(day, count=3)
        with pytest.raises(ValidationError, match="not ascending"):
            store.write_day("AAPL", day, list(reversed(candles)))

    def test_negative_volume(self, store: CandleStore):
        day = date(2025, 1, 2)
        bad = make_candles(day, count=1)[0].model_copy(update={"volume": -1})
        with pytest.raises(ValidationError, match="negative volume"):
            store.write_day("AAPL", day, [bad])

    def test_rejected_batch_keeps_existing_file(self, store: CandleStore):
        day = date(2025, 1, 2)
        original = make_candles(day)
        store.write_day("AAPL", day, original)
        with pytest.raises(ValidationError):
            store.write_day("AAPL", day, [])

        assert store.read_day("AAPL", day) == original


class TestAtomicWrite:
    """
    **Feature: candle-store, Property 4: Atomic Replacement**

    *For any* failure during a write, the previous file stays intact and no
    temporary file is left behind.
    """

    def _leftovers(self, store: CandleStore, day: date) -> list[Path]:
        return [p for p in store.file_path("AAPL", day).parent.iterdir() if p.suffix == ".tmp"]

    def test_rename_failure(self, store: CandleStore):
        day = date(2025, 1, 2)
        original = make_candles(day)
        store.write_day("AAPL", day, original)

        with patch("marketdata.db.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError, match="disk full"):
                store.write_day("AAPL", day, make_candles(day, close="1.00"))

        assert store.read_day("AAPL", day) == original
        assert self._leftovers(store, day) == []

    def test_fsync_failure(self, store: CandleStore):
        day = date(2025, 1, 2)
        original = make_candles(day)
        store.write_day("AAPL", day, original)

        with patch("marketdata.db.store.os.fsync", side_effect=OSError("io error")):
            with pytest.raises(StorageError):
                store.write_day("AAPL", day, make_candles(day, close="1.00"))

        assert store.read_day("AAPL", day) == original
        assert self._leftovers(store, day) == []

    def test_failed_first_write_leaves_nothing(self, store: CandleStore):
        day = date(2025, 1, 2)
        with patch("marketdata.db.store.os.replace", side_effect=OSError("boom")):
            with pytest.raises(StorageError):
                store.write_day("AAPL", day, make_candles(day))

        assert not store.has_data("AAPL", day)
        assert store.list_dates("AAPL") == []


class TestReads:
    """Reads of single days and ranges."""

    def test_read_missing_day(self, store: CandleStore):
        with pytest.raises(NotFoundError):
            store.read_day("AAPL", date(2025, 1, 2))

    def test_read_corrupt_day(self, store: CandleStore):
        day = date(2025, 1, 2)
        path = store.file_path("AAPL", day)
        path.parent.mkdir(parents=True)
        path.write_bytes(b"not parquet at all")

        with pytest.raises(CodecError) as exc_info:
            store.read_day("AAPL", day)
        assert exc_info.value.context["path"] == path

    def test_read_range_concatenates(self, store: CandleStore):
        """2025-01-01 has no file; 01-02 and 01-03 are returned in order."""
        jan2 = make_candles(date(2025, 1, 2), count=2)
        jan3 = make_candles(date(2025, 1, 3), count=3)
        store.write_day("AAPL", date(2025, 1, 2), jan2)
        store.write_day("AAPL", date(2025, 1, 3), jan3)

        result = store.read_range("AAPL", date(2025, 1, 1), date(2025, 1, 3))

        assert result == jan2 + jan3
        assert store.missing_dates("AAPL", date(2025, 1, 1), date(2025, 1, 3)) == [date(2025, 1, 1)]

    def test_read_range_empty(self, store: CandleStore):
        assert store.read_range("AAPL", date(2025, 1, 6), date(2025, 1, 10)) == []
        assert store.read_range("AAPL", date(2025, 1, 10), date(2025, 1, 6)) == []

    def test_read_range_propagates_corruption(self, store: CandleStore):
        store.write_day("AAPL", date(2025, 1, 2), make_candles(date(2025, 1, 2)))
        bad = store.file_path("AAPL", date(2025, 1, 3))
        bad.write_bytes(b"garbage")

        with pytest.raises(CodecError):
            store.read_range("AAPL", date(2025, 1, 2), date(2025, 1, 3))

    def test_read_range_collects_errors(self, store: CandleStore):
        """With an errors list, corrupt days are skipped and reported."""
        good = make_candles(date(2025, 1, 2))
        store.write_day("AAPL", date(2025, 1, 2), good)
        store.file_path("AAPL", date(2025, 1, 3)).write_bytes(b"garbage")

        errors = []
        result = store.read_range("AAPL", date(2025, 1, 2), date(2025, 1, 3), errors=errors)

        assert result == good
        assert [d for d, _ in errors] == [date(2025, 1, 3)]
        assert isinstance(errors[0][1], CodecError)

    def test_read_range_session(self, store: CandleStore):
        day = date(2025, 1, 2)
        # 14:25 UTC is 09:25 EST (premarket); 14:30 onward is regular
        candles = [
            Candle(
                timestamp=datetime(2025, 1, 2, 14, 25, tzinfo=timezone.utc) + timedelta(minutes=5 * i),
                open="1", high="1", low="1", close="1", volume=1,
            )
            for i in range(3)
        ]
        store.write_day("AAPL", day, candles)

        regular = store.read_range_session("AAPL", day, day, Session.REGULAR)
        premarket = store.read_range_session("AAPL", day, day, Session.PRE_MARKET)

        assert regular == candles[1:]
        assert premarket == candles[:1]

    def test_read_time_range(self, store: CandleStore):
        day = date(2025, 1, 2)
        candles = make_candles(day, count=6)  # 15:00 .. 15:25 UTC
        store.write_day("AAPL", day, candles)

        result = store.read_time_range("AAPL", day, time(15, 5), time(15, 15))

        assert result == candles[1:4]


class TestListing:
    """
    **Feature: candle-store, Property 5: Missing Dates Correctness**

    *For any* set of written weekdays, missing_dates returns exactly the
    other weekdays of the range.
    """

    @given(offsets=st.sets(st.integers(min_value=0, max_value=27), max_size=20))
    @settings(max_examples=20, deadline=None)
    def test_missing_dates(self, offsets: set[int]):
        start = date(2025, 1, 6)  # Monday
        end = start + timedelta(days=27)
        with tempfile.TemporaryDirectory() as tmpdir:
            store = CandleStore(tmpdir)
            written = set()
            for offset in offsets:
                day = start + timedelta(days=offset)
                if day.weekday() < 5:
                    store.write_day("AAPL", day, make_candles(day, count=1))
                    written.add(day)

            missing = store.missing_dates("AAPL", start, end)
            expected = [
                start + timedelta(days=i)
                for i in range(28)
                if (start + timedelta(days=i)).weekday() < 5
                and start + timedelta(days=i) not in written
            ]

            assert missing == expected
            assert store.list_dates("AAPL") == sorted(written)

    def test_list_symbols(self, store: CandleStore):
        assert store.list_symbols() == set()

        store.write_day("AAPL", date(2025, 1, 2), make_candles(date(2025, 1, 2)))
        store.write_day("MSFT", date(2025, 1, 2), make_candles(date(2025, 1, 2)))
        (store.data_dir / ".cache").mkdir()
        (store.data_dir / "README").write_text("not a symbol")

        assert store.list_symbols() == {"AAPL", "MSFT"}

    def test_list_dates_ignores_stray_files(self, store: CandleStore):
        day = date(2025, 1, 2)
        store.write_day("AAPL", day, make_candles(day))
        month_dir = store.file_path("AAPL", day).parent
        (month_dir / ".2025-01-03.abc.tmp").write_bytes(b"partial")
        (month_dir / "notes.txt").write_text("x")
        (month_dir / "2025-1-6.parquet").write_bytes(b"x")

        assert store.list_dates("AAPL") == [day]

    def test_list_dates_across_years(self, store: CandleStore):
        days = [date(2025, 1, 2), date(2024, 12, 31), date(2024, 11, 29)]
        for day in days:
            store.write_day("AAPL", day, make_candles(day, count=1))

        assert store.list_dates("AAPL") == sorted(days)
        assert store.date_range("AAPL") == (date(2024, 11, 29), date(2025, 1, 2))

    def test_date_range_empty(self, store: CandleStore):
        assert store.date_range("AAPL") is None
        assert store.list_dates("AAPL") == []
