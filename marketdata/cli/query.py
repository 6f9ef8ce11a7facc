"""Query commands for marketdata CLI.

Handles show, gaps and export, which read the store without touching a
provider.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.table import Table

from marketdata.calendar import to_exchange_time
from marketdata.cli.main import DATE_FORMATS, console, get_store, print_error
from marketdata.db.codec import price_text
from marketdata.db.frames import candles_to_frame
from marketdata.db.store import CandleStore
from marketdata.errors import MarketDataError
from marketdata.models import Candle, Session
from marketdata.populate import DEFAULT_MAX_SPAN, plan

SESSION_CHOICES = [s.value for s in Session]


def _query(
    store: CandleStore,
    symbol: str,
    start: datetime,
    end: Optional[datetime],
    session: Optional[str],
) -> list[Candle]:
    start_date = start.date()
    end_date = end.date() if end else start_date
    if end_date < start_date:
        raise click.BadParameter(f"end {end_date} is before start {start_date}", param_hint="--end")

    try:
        if session:
            return store.read_range_session(symbol, start_date, end_date, Session(session))
        return store.read_range(symbol, start_date, end_date)
    except MarketDataError as e:
        print_error(f"Failed to read {symbol}:\n\n{e}")
        raise SystemExit(1)


def _range_options(func):
    func = click.option(
        "--session",
        type=click.Choice(SESSION_CHOICES),
        default=None,
        help="Only candles from this session.",
    )(func)
    func = click.option(
        "--end",
        type=click.DateTime(formats=DATE_FORMATS),
        default=None,
        help="Last date (default: same as --start).",
    )(func)
    func = click.option(
        "--start",
        type=click.DateTime(formats=DATE_FORMATS),
        required=True,
        help="First date (YYYY-MM-DD).",
    )(func)
    return func


@click.command()
@click.argument("symbol")
@_range_options
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Show at most N candles.")
@click.pass_context
def show(
    ctx: click.Context,
    symbol: str,
    start: datetime,
    end: Optional[datetime],
    session: Optional[str],
    limit: Optional[int],
) -> None:
    """Print stored candles for a symbol.

    SYMBOL is the trading symbol (e.g., AAPL, MSFT).

    \b
    Examples:
      market-data show AAPL --start 2025-01-02
      market-data show AAPL --start 2025-01-02 --end 2025-01-10 --session regular
    """
    symbol = symbol.upper()
    candles = _query(get_store(ctx), symbol, start, end, session)

    if not candles:
        console.print(f"[yellow]No candles stored for {symbol} in that range[/yellow]")
        return

    total = len(candles)
    if limit is not None:
        candles = candles[:limit]

    table = Table(
        title=f"{symbol} - 5min ({total} candles)",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Time (ET)", style="dim")
    table.add_column("Open", justify="right")
    table.add_column("High", justify="right", style="green")
    table.add_column("Low", justify="right", style="red")
    table.add_column("Close", justify="right")
    table.add_column("Volume", justify="right")

    for candle in candles:
        table.add_row(
            to_exchange_time(candle.timestamp).strftime("%Y-%m-%d %H:%M"),
            price_text(candle.open),
            price_text(candle.high),
            price_text(candle.low),
            price_text(candle.close),
            f"{candle.volume:,}",
        )
    console.print(table)

    if limit is not None and total > limit:
        console.print(f"[dim]Showing {limit} of {total} candles[/dim]")


@click.command()
@click.argument("symbol")
@click.option("--start", type=click.DateTime(formats=DATE_FORMATS), required=True, help="First date (YYYY-MM-DD).")
@click.option("--end", type=click.DateTime(formats=DATE_FORMATS), required=True, help="Last date (YYYY-MM-DD).")
@click.option(
    "--max-span",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_SPAN,
    show_default=True,
    help="Max calendar days per fetch request.",
)
@click.pass_context
def gaps(ctx: click.Context, symbol: str, start: datetime, end: datetime, max_span: int) -> None:
    """List missing trading days and the fetch ranges that would fill them.

    \b
    Examples:
      market-data gaps AAPL --start 2025-01-01 --end 2025-03-31
    """
    symbol = symbol.upper()
    start_date, end_date = start.date(), end.date()
    if end_date < start_date:
        raise click.BadParameter(f"end {end_date} is before start {start_date}", param_hint="--end")

    missing = get_store(ctx).missing_dates(symbol, start_date, end_date)
    if not missing:
        console.print(f"[green]{symbol}: no missing trading days[/green]")
        return

    ranges = plan(missing, max_span)

    table = Table(
        title=f"{symbol} - {len(missing)} missing day(s)",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Days", justify="right")
    for date_range in ranges:
        table.add_row(str(date_range.start), str(date_range.end), str(date_range.days))
    console.print(table)


@click.command()
@click.argument("symbol")
@_range_options
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    required=True,
    help="CSV file to write.",
)
@click.pass_context
def export(
    ctx: click.Context,
    symbol: str,
    start: datetime,
    end: Optional[datetime],
    session: Optional[str],
    output: Path,
) -> None:
    """Export stored candles to CSV.

    \b
    Examples:
      market-data export AAPL --start 2025-01-02 --end 2025-01-31 -o aapl.csv
    """
    symbol = symbol.upper()
    candles = _query(get_store(ctx), symbol, start, end, session)

    if not candles:
        console.print(f"[yellow]No candles stored for {symbol} in that range[/yellow]")
        return

    frame = candles_to_frame(candles)
    try:
        frame.to_csv(output)
    except OSError as e:
        print_error(f"Failed to write {output}:\n\n{e}")
        raise SystemExit(1)

    console.print(f"[green]Wrote {len(frame)} candles to {output}[/green]")
