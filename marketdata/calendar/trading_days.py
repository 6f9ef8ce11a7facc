"""Weekday-based trading calendar.

Exchange holidays are not modelled; every Monday to Friday is a candidate
trading date.
"""

from datetime import date, timedelta

SATURDAY = 5


def is_weekday(day: date) -> bool:
    """Return True if ``day`` falls on Monday through Friday."""
    return day.weekday() < SATURDAY


def weekdays(start: date, end: date) -> list[date]:
    """Return all weekdays in the inclusive range ``[start, end]``.

    Args:
        start: First date of the range.
        end: Last date of the range (inclusive).

    Returns:
        Ascending list of Monday-Friday dates; empty if ``start > end``.
    """
    days = []
    current = start
    while current <= end:
        if is_weekday(current):
            days.append(current)
        current += timedelta(days=1)
    return days


def next_weekday(day: date) -> date:
    """Return the first weekday strictly after ``day``."""
    current = day + timedelta(days=1)
    while not is_weekday(current):
        current += timedelta(days=1)
    return current
