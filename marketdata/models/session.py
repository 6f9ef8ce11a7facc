"""Trading session model."""

from enum import Enum


class Session(str, Enum):
    """Named sub-interval of the US equity trading day.

    Times are exchange-local (America/New_York):

    - PRE_MARKET: 04:00 - 09:30
    - REGULAR: 09:30 - 16:00
    - AFTER_HOURS: 16:00 - 20:00
    """

    PRE_MARKET = "premarket"
    REGULAR = "regular"
    AFTER_HOURS = "afterhours"

    def __str__(self) -> str:
        return self.value
