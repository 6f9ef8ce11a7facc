"""Gap planning: merge missing trading dates into fetch ranges."""

from datetime import date
from typing import Iterable, Optional

from marketdata.calendar import next_weekday
from marketdata.models import DateRange

# Providers accept at most this many calendar days per request.
DEFAULT_MAX_SPAN = 60


def plan(
    missing_dates: Iterable[date],
    max_span: Optional[int] = DEFAULT_MAX_SPAN,
) -> list[DateRange]:
    """Merge missing weekdays into as few fetch ranges as possible.

    Consecutive dates are merged when the later one is the next weekday
    after the earlier one, so Friday followed by Monday stays in one range.
    A run is split whenever extending it would make it wider than
    ``max_span`` calendar days.

    Args:
        missing_dates: Strictly ascending weekday dates, as returned by
            ``CandleStore.missing_dates``.
        max_span: Maximum calendar-day width of a range, or None for no
            limit.

    Returns:
        Ranges in ascending order; empty for empty input.

    Raises:
        ValueError: If ``max_span`` is below 1 or the dates are not
            strictly ascending.
    """
    if max_span is not None and max_span < 1:
        raise ValueError(f"max_span must be at least 1, got {max_span}")

    dates = list(missing_dates)
    if not dates:
        return []

    ranges = []
    start = previous = dates[0]
    for current in dates[1:]:
        if current <= previous:
            raise ValueError(f"dates must be strictly ascending: {previous} then {current}")

        adjacent = current == next_weekday(previous)
        too_wide = max_span is not None and (current - start).days + 1 > max_span
        if not adjacent or too_wide:
            ranges.append(DateRange(start=start, end=previous))
            start = current
        previous = current

    ranges.append(DateRange(start=start, end=previous))
    return ranges
