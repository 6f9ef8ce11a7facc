"""pandas views of candle sequences."""

import pandas as pd

from marketdata.db.codec import price_text
from marketdata.models import Candle

COLUMNS = ["open", "high", "low", "close", "volume"]


def candles_to_frame(candles: list[Candle]) -> pd.DataFrame:
    """Build a DataFrame indexed by UTC timestamp.

    Price columns hold the exact decimal text (object dtype) so nothing is
    rounded through float; volume is int64.
    """
    frame = pd.DataFrame(
        {
            "timestamp": pd.to_datetime([c.timestamp for c in candles], utc=True),
            "open": [price_text(c.open) for c in candles],
            "high": [price_text(c.high) for c in candles],
            "low": [price_text(c.low) for c in candles],
            "close": [price_text(c.close) for c in candles],
            "volume": [c.volume for c in candles],
        }
    )
    frame["volume"] = frame["volume"].astype("int64")
    return frame.set_index("timestamp")[COLUMNS]
