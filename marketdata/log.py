"""Logging setup for the marketdata CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the command-line entry point.
"""

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ENV_LOG_LEVEL = "MARKETDATA_LOG"
LOG_LEVELS = ["debug", "info", "warning", "error"]


def configure_logging(level: str = "info", console: Optional[Console] = None) -> None:
    """Send ``marketdata`` log records to stderr through rich.

    ``MARKETDATA_LOG`` overrides ``level`` when it is set.

    Raises:
        ValueError: If the level name is not recognised.
    """
    name = os.environ.get(ENV_LOG_LEVEL) or level
    numeric = logging.getLevelName(name.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level: {name}")

    root = logging.getLogger("marketdata")
    root.setLevel(numeric)
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root.addHandler(handler)
