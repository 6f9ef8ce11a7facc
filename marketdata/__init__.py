"""marketdata - filesystem store for intraday OHLCV candles.

One Parquet file per symbol per trading day, with range and session
queries and gap planning for refills.
"""

__version__ = "0.1.0"
