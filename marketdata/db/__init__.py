"""Day file storage: path layout, Parquet codec and the candle store."""

from marketdata.db.store import CandleStore

__all__ = ["CandleStore"]
