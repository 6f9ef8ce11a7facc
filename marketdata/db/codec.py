"""Parquet encoding of candle sequences.

Columns (all non-nullable):

- timestamp: timestamp[us, tz=UTC], microseconds since the Unix epoch
- open, high, low, close: UTF-8 positional decimal text (optional sign,
  digits, optional fraction), never exponent notation
- volume: int64

Prices are stored as text rather than floating point so that the digits
written by a provider are the digits read back. Payloads are Snappy
compressed.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable

import pyarrow as pa
import pyarrow.parquet as pq
from pydantic import ValidationError as PydanticValidationError

from marketdata.errors import CodecError
from marketdata.models import Candle

COMPRESSION = "snappy"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
PRICE_COLUMNS = ("open", "high", "low", "close")

SCHEMA = pa.schema(
    [
        pa.field("timestamp", pa.timestamp("us", tz="UTC"), nullable=False),
        pa.field("open", pa.string(), nullable=False),
        pa.field("high", pa.string(), nullable=False),
        pa.field("low", pa.string(), nullable=False),
        pa.field("close", pa.string(), nullable=False),
        pa.field("volume", pa.int64(), nullable=False),
    ]
)


def _to_micros(timestamp: datetime) -> int:
    return (timestamp - EPOCH) // timedelta(microseconds=1)


def _from_micros(micros: int) -> datetime:
    return EPOCH + timedelta(microseconds=micros)


def price_text(value: Decimal) -> str:
    """Positional text for a price, keeping its scale.

    ``Decimal("0.00000010")`` gives ``"0.00000010"`` where ``str`` would
    give ``"1.0E-7"``.
    """
    return format(value, "f")


def encode(candles: Iterable[Candle]) -> bytes:
    """Encode candles into a compressed Parquet payload.

    Args:
        candles: Ordered candles for a single day.

    Returns:
        Parquet file contents.

    Raises:
        CodecError: If there are no candles or Arrow rejects the values.
    """
    candles = list(candles)
    if not candles:
        raise CodecError("cannot encode an empty candle sequence")

    columns = {
        "timestamp": [_to_micros(c.timestamp) for c in candles],
        "open": [price_text(c.open) for c in candles],
        "high": [price_text(c.high) for c in candles],
        "low": [price_text(c.low) for c in candles],
        "close": [price_text(c.close) for c in candles],
        "volume": [c.volume for c in candles],
    }

    try:
        table = pa.Table.from_pydict(columns, schema=SCHEMA)
        sink = pa.BufferOutputStream()
        pq.write_table(table, sink, compression=COMPRESSION)
    except (pa.ArrowException, OverflowError, ValueError) as e:
        raise CodecError(f"failed to encode candles: {e}") from e

    return sink.getvalue().to_pybytes()


def _check_schema(schema: pa.Schema) -> None:
    if schema.names != SCHEMA.names:
        raise CodecError(
            "unexpected columns",
            expected=SCHEMA.names,
            found=schema.names,
        )

    ts_type = schema.field("timestamp").type
    if not (pa.types.is_timestamp(ts_type) and ts_type.unit == "us" and ts_type.tz is not None):
        raise CodecError("timestamp column must be timestamp[us, tz]", found=str(ts_type))

    for name in PRICE_COLUMNS:
        found = schema.field(name).type
        if not pa.types.is_string(found):
            raise CodecError(f"{name} column must be string", found=str(found))

    if not pa.types.is_int64(schema.field("volume").type):
        raise CodecError(
            "volume column must be int64", found=str(schema.field("volume").type)
        )


def _parse_price(text: str, column: str, row: int) -> Decimal:
    try:
        value = Decimal(text)
    except InvalidOperation as e:
        raise CodecError(f"invalid {column} value {text!r}", row=row) from e
    if not value.is_finite():
        raise CodecError(f"non-finite {column} value {text!r}", row=row)
    return value


def decode(payload: bytes) -> list[Candle]:
    """Decode a Parquet payload back into candles.

    The whole payload is validated before anything is returned, so a
    corrupt file never yields a partial list.

    Args:
        payload: Parquet file contents.

    Returns:
        Candles in file order.

    Raises:
        CodecError: If the payload is empty, not Parquet, has the wrong
            schema, has no rows, or holds values that are null or
            unparsable.
    """
    if not payload:
        raise CodecError("empty payload")

    try:
        table = pq.read_table(pa.BufferReader(payload))
    except (pa.ArrowException, OSError, ValueError) as e:
        raise CodecError(f"not a readable parquet payload: {e}") from e

    _check_schema(table.schema)
    if table.num_rows == 0:
        raise CodecError("payload holds no candles")

    for name in table.column_names:
        if table.column(name).null_count:
            raise CodecError(f"null values in {name} column")

    try:
        micros = table.column("timestamp").cast(pa.int64()).to_pylist()
    except pa.ArrowException as e:
        raise CodecError(f"unreadable timestamp column: {e}") from e
    prices = {name: table.column(name).to_pylist() for name in PRICE_COLUMNS}
    volumes = table.column("volume").to_pylist()

    candles = []
    for row, (ts, volume) in enumerate(zip(micros, volumes)):
        try:
            candles.append(
                Candle(
                    timestamp=_from_micros(ts),
                    open=_parse_price(prices["open"][row], "open", row),
                    high=_parse_price(prices["high"][row], "high", row),
                    low=_parse_price(prices["low"][row], "low", row),
                    close=_parse_price(prices["close"][row], "close", row),
                    volume=volume,
                )
            )
        except (OverflowError, PydanticValidationError) as e:
            raise CodecError(f"invalid candle: {e}", row=row) from e

    return candles
