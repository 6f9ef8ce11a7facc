"""Property-based tests for the Parquet day file codec.

**Feature: candle-store**
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pyarrow as pa
import pyarrow.parquet as pq
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from marketdata.db import codec
from marketdata.db.frames import candles_to_frame
from marketdata.errors import CodecError
from marketdata.models import Candle

PRICE_FIELDS = ("open", "high", "low", "close")

prices = st.one_of(
    st.decimals(
        min_value=Decimal("-1000000"),
        max_value=Decimal("1000000"),
        places=2,
        allow_nan=False,
        allow_infinity=False,
    ),
    st.decimals(
        min_value=Decimal("-1"),
        max_value=Decimal("1"),
        places=12,
        allow_nan=False,
        allow_infinity=False,
    ),
)

timestamps = st.datetimes(
    min_value=datetime(2000, 1, 1),
    max_value=datetime(2099, 12, 31),
    timezones=st.just(timezone.utc),
)


@st.composite
def candle_batches(draw):
    """Strictly ascending candle sequences."""
    stamps = sorted(draw(st.lists(timestamps, min_size=1, max_size=30, unique=True)))
    return [
        Candle(
            timestamp=ts,
            open=draw(prices),
            high=draw(prices),
            low=draw(prices),
            close=draw(prices),
            volume=draw(st.integers(min_value=0, max_value=2**63 - 1)),
        )
        for ts in stamps
    ]


def _payload(table: pa.Table) -> bytes:
    sink = pa.BufferOutputStream()
    pq.write_table(table, sink)
    return sink.getvalue().to_pybytes()


class TestCodecRoundTrip:
    """
    **Feature: candle-store, Property 1: Codec Round Trip**

    *For any* valid candle sequence, decoding the encoded payload yields an
    equal sequence in the same order.
    """

    @given(candles=candle_batches())
    @settings(max_examples=50, deadline=None)
    def test_round_trip(self, candles: list[Candle]):
        """Encode then decode gives the same candles with the same decimal text."""
        decoded = codec.decode(codec.encode(candles))

        assert decoded == candles
        for got, want in zip(decoded, candles):
            for field in PRICE_FIELDS:
                assert str(getattr(got, field)) == str(getattr(want, field))

    def test_decimal_text_preserved(self):
        """Trailing zeros and scale survive a round trip."""
        candle = Candle(
            timestamp=datetime(2025, 1, 2, 14, 30, tzinfo=timezone.utc),
            open=Decimal("150.50"),
            high=Decimal("151.00"),
            low=Decimal("149.7500"),
            close=Decimal("-0.0025"),
            volume=0,
        )
        [decoded] = codec.decode(codec.encode([candle]))

        assert str(decoded.open) == "150.50"
        assert str(decoded.high) == "151.00"
        assert str(decoded.low) == "149.7500"
        assert str(decoded.close) == "-0.0025"

    @pytest.mark.parametrize(
        "text,stored",
        [
            ("0.0000001", "0.0000001"),
            ("0.00000010", "0.00000010"),
            ("100", "100"),
            ("0E-8", "0.00000000"),
            ("1E+2", "100"),
            ("-12.500", "-12.500"),
        ],
    )
    def test_prices_stored_as_positional_text(self, text: str, stored: str):
        """Price columns never hold exponent notation."""
        candle = Candle(
            timestamp=datetime(2025, 1, 2, 14, 30, tzinfo=timezone.utc),
            open=text, high=text, low=text, close=text, volume=1,
        )
        table = pq.read_table(pa.BufferReader(codec.encode([candle])))

        for field in PRICE_FIELDS:
            assert table.column(field).to_pylist() == [stored]

    def test_positional_text_decodes_to_same_scale(self):
        candle = Candle(
            timestamp=datetime(2025, 1, 2, 14, 30, tzinfo=timezone.utc),
            open="0.00000010", high="0.00000010", low="0.00000010", close="0.00000010", volume=1,
        )
        [decoded] = codec.decode(codec.encode([candle]))

        assert codec.price_text(decoded.open) == "0.00000010"
        assert decoded.open.as_tuple().exponent == -8

    def test_microsecond_timestamps(self):
        """Timestamps keep microsecond precision and come back in UTC."""
        ts = datetime(2025, 1, 2, 14, 30, 0, 123456, tzinfo=timezone.utc)
        candle = Candle(timestamp=ts, open="1", high="1", low="1", close="1", volume=1)
        [decoded] = codec.decode(codec.encode([candle]))

        assert decoded.timestamp == ts
        assert decoded.timestamp.utcoffset() == timedelta(0)

    def test_schema(self):
        """Encoded files use the documented column names and types."""
        candle = Candle(
            timestamp=datetime(2025, 1, 2, 14, 30, tzinfo=timezone.utc),
            open="1", high="2", low="0.5", close="1.5", volume=10,
        )
        table = pq.read_table(pa.BufferReader(codec.encode([candle])))

        assert table.schema.names == ["timestamp", "open", "high", "low", "close", "volume"]
        assert table.schema.field("timestamp").type == pa.timestamp("us", tz="UTC")
        assert table.schema.field("close").type == pa.string()
        assert table.schema.field("volume").type == pa.int64()

    def test_encode_empty_rejected(self):
        with pytest.raises(CodecError):
            codec.encode([])


class TestCodecCorruptInput:
    """
    **Feature: candle-store, Property 2: Corrupt Payloads Rejected**

    *For any* payload that is not a well-formed day file, decode raises
    CodecError instead of returning partial data.
    """

    def test_empty_payload(self):
        with pytest.raises(CodecError):
            codec.decode(b"")

    @given(garbage=st.binary(min_size=1, max_size=256))
    @settings(max_examples=30)
    def test_random_bytes(self, garbage: bytes):
        """Arbitrary bytes never decode."""
        with pytest.raises(CodecError):
            codec.decode(garbage)

    def test_truncated_payload(self):
        candle = Candle(
            timestamp=datetime(2025, 1, 2, 14, 30, tzinfo=timezone.utc),
            open="1", high="1", low="1", close="1", volume=1,
        )
        payload = codec.encode([candle])
        with pytest.raises(CodecError):
            codec.decode(payload[: len(payload) // 2])

    def test_missing_column(self):
        table = pa.table(
            {
                "timestamp": pa.array([0], type=pa.timestamp("us", tz="UTC")),
                "open": ["1"],
                "high": ["1"],
                "low": ["1"],
                "close": ["1"],
            }
        )
        with pytest.raises(CodecError, match="unexpected columns"):
            codec.decode(_payload(table))

    def test_float_price_column(self):
        table = pa.table(
            {
                "timestamp": pa.array([0], type=pa.timestamp("us", tz="UTC")),
                "open": [1.0],
                "high": ["1"],
                "low": ["1"],
                "close": ["1"],
                "volume": pa.array([1], type=pa.int64()),
            }
        )
        with pytest.raises(CodecError, match="open column must be string"):
            codec.decode(_payload(table))

    def test_unparsable_price(self):
        table = pa.table(
            {
                "timestamp": pa.array([0], type=pa.timestamp("us", tz="UTC")),
                "open": ["abc"],
                "high": ["1"],
                "low": ["1"],
                "close": ["1"],
                "volume": pa.array([1], type=pa.int64()),
            }
        )
        with pytest.raises(CodecError, match="invalid open value"):
            codec.decode(_payload(table))

    def test_non_finite_price(self):
        table = pa.table(
            {
                "timestamp": pa.array([0], type=pa.timestamp("us", tz="UTC")),
                "open": ["1"],
                "high": ["NaN"],
                "low": ["1"],
                "close": ["1"],
                "volume": pa.array([1], type=pa.int64()),
            }
        )
        with pytest.raises(CodecError, match="non-finite high value"):
            codec.decode(_payload(table))

    def test_zero_rows(self):
        table = pa.Table.from_pydict(
            {name: [] for name in codec.SCHEMA.names}, schema=codec.SCHEMA
        )
        with pytest.raises(CodecError, match="no candles"):
            codec.decode(_payload(table))


class TestFrames:
    def test_frame_prices_are_positional_text(self):
        candle = Candle(
            timestamp=datetime(2025, 1, 2, 14, 30, tzinfo=timezone.utc),
            open="0.00000010", high="1E+2", low="0E-8", close="-1.50", volume=7,
        )
        frame = candles_to_frame([candle])

        assert list(frame.iloc[0][["open", "high", "low", "close"]]) == [
            "0.00000010", "100", "0.00000000", "-1.50",
        ]
        assert frame["volume"].dtype == "int64"
