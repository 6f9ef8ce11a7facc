"""Mapping between (symbol, trading date) keys and day file paths.

Layout: ``{data_dir}/{SYMBOL}/{YYYY}/{MM}/{YYYY-MM-DD}.parquet``
"""

from datetime import date, datetime
from pathlib import Path
from typing import Optional

FILE_EXTENSION = ".parquet"
DATE_FORMAT = "%Y-%m-%d"


def resolve(data_dir: Path, symbol: str, day: date) -> Path:
    """Return the day file path for a symbol and trading date.

    The symbol is used verbatim as the directory name. Nothing is created
    on disk.
    """
    return (
        data_dir
        / symbol
        / f"{day.year:04d}"
        / f"{day.month:02d}"
        / f"{day.strftime(DATE_FORMAT)}{FILE_EXTENSION}"
    )


def ensure_parent(path: Path) -> None:
    """Create the directories above ``path`` if they are missing."""
    path.parent.mkdir(parents=True, exist_ok=True)


def parse_file_date(name: str) -> Optional[date]:
    """Return the trading date encoded in a day file name.

    Args:
        name: File name such as ``"2025-01-15.parquet"``.

    Returns:
        The date, or None if the name is not a day file (temp files,
        stray files, malformed dates).
    """
    if not name.endswith(FILE_EXTENSION):
        return None
    stem = name[: -len(FILE_EXTENSION)]
    try:
        parsed = datetime.strptime(stem, DATE_FORMAT).date()
    except ValueError:
        return None
    # strptime accepts "2025-1-5"; only the canonical spelling is a day file
    if parsed.strftime(DATE_FORMAT) != stem:
        return None
    return parsed
