"""Populate command for marketdata CLI.

Fetches missing trading days from a provider and writes them to the store.
"""

from datetime import date, datetime, timedelta, timezone
from functools import partial
from typing import Optional

import click
from rich.table import Table

from marketdata.calendar import trading_date
from marketdata.cli.main import DATE_FORMATS, console, get_settings, get_store, parse_symbols, print_error
from marketdata.errors import MarketDataError, ProviderConfigError
from marketdata.populate import populate as run_populate
from marketdata.providers import PROVIDER_NAMES, create_provider


def default_end(now: Optional[datetime] = None) -> date:
    """The trading date before today on the exchange clock."""
    now = now or datetime.now(timezone.utc)
    return trading_date(now) - timedelta(days=1)


@click.command()
@click.option(
    "--symbols", "-s",
    required=True,
    help="Comma separated symbols, e.g. AAPL,MSFT.",
)
@click.option(
    "--start",
    type=click.DateTime(formats=DATE_FORMATS),
    required=True,
    help="First date to fetch (YYYY-MM-DD).",
)
@click.option(
    "--end",
    type=click.DateTime(formats=DATE_FORMATS),
    default=None,
    help="Last date to fetch (default: yesterday, exchange time).",
)
@click.option(
    "--provider",
    type=click.Choice(PROVIDER_NAMES),
    default=None,
    help="Data provider (default: from config).",
)
@click.option("--force", is_flag=True, help="Re-fetch days that are already stored.")
@click.option(
    "--max-span",
    type=click.IntRange(min=1),
    default=None,
    help="Max calendar days per fetch request (default: from config).",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Symbols fetched in parallel (default: from config).",
)
@click.pass_context
def populate(
    ctx: click.Context,
    symbols: str,
    start: datetime,
    end: Optional[datetime],
    provider: Optional[str],
    force: bool,
    max_span: Optional[int],
    workers: Optional[int],
) -> None:
    """Fetch missing 5-minute candles into the store.

    \b
    Examples:
      market-data populate -s AAPL --start 2025-01-02
      market-data populate -s AAPL,MSFT --start 2024-06-01 --end 2024-12-31
      market-data populate -s SPY --start 2025-01-02 --provider yahoo --force
    """
    settings = get_settings(ctx)
    store = get_store(ctx)

    symbol_list = parse_symbols(symbols)
    if not symbol_list:
        raise click.BadParameter("no symbols given", param_hint="--symbols")

    start_date = start.date()
    end_date = end.date() if end else default_end()
    if end_date < start_date:
        raise click.BadParameter(f"end {end_date} is before start {start_date}", param_hint="--end")

    provider_name = provider or settings.provider
    # Fail on bad config before any worker starts
    try:
        source = create_provider(provider_name, settings)
    except ProviderConfigError as e:
        print_error(str(e), title="Provider Error")
        raise SystemExit(1)

    console.print(
        f"[dim]Populating {', '.join(symbol_list)} from {start_date} to {end_date} "
        f"using {source.name}...[/dim]"
    )

    try:
        reports = run_populate(
            store,
            partial(create_provider, provider_name, settings),
            symbol_list,
            start_date,
            end_date,
            force=force,
            max_span=max_span or settings.max_span,
            max_workers=workers or settings.max_workers,
        )
    except MarketDataError as e:
        print_error(f"Populate failed:\n\n{e}")
        raise SystemExit(1)

    table = Table(title="Populate Summary", show_header=True, header_style="bold cyan")
    table.add_column("Symbol", style="bold")
    table.add_column("Missing", justify="right")
    table.add_column("Requests", justify="right")
    table.add_column("Days Written", justify="right", style="green")
    table.add_column("Candles", justify="right")
    table.add_column("Errors", justify="right")

    for report in reports:
        table.add_row(
            report.symbol,
            str(report.requested_days),
            str(len(report.ranges)),
            str(report.days_written),
            str(report.candles_written),
            f"[red]{len(report.errors)}[/red]" if report.errors else "0",
        )
    console.print(table)

    failed = [r for r in reports if not r.ok]
    for report in failed:
        for error in report.errors:
            console.print(f"[red]{report.symbol}:[/red] {error}")
    if failed:
        raise SystemExit(1)
