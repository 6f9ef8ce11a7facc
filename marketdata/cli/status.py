"""Status and validate commands for marketdata CLI."""

from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from marketdata.cli.main import console, get_store, parse_symbols
from marketdata.populate import validate_store


@click.command()
@click.option("--symbol", "-s", default=None, help="Only show this symbol.")
@click.pass_context
def status(ctx: click.Context, symbol: Optional[str]) -> None:
    """Show stored days per symbol.

    \b
    Examples:
      market-data status
      market-data status -s AAPL
    """
    store = get_store(ctx)
    symbols = [symbol.upper()] if symbol else sorted(store.list_symbols())

    if not symbols:
        console.print(f"[yellow]No data in {store.data_dir}[/yellow]")
        return

    table = Table(
        title=f"Data in {store.data_dir}",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Symbol", style="bold")
    table.add_column("Days", justify="right")
    table.add_column("First", style="dim")
    table.add_column("Last", style="dim")

    for sym in symbols:
        dates = store.list_dates(sym)
        if not dates:
            table.add_row(sym, "0", "-", "-")
            continue
        table.add_row(sym, str(len(dates)), str(dates[0]), str(dates[-1]))

    console.print(table)


@click.command()
@click.option("--symbols", "-s", default=None, help="Comma separated symbols (default: all).")
@click.pass_context
def validate(ctx: click.Context, symbols: Optional[str]) -> None:
    """Check every stored day file for problems.

    Exits with status 1 when any file has errors.

    \b
    Examples:
      market-data validate
      market-data validate -s AAPL,MSFT
    """
    store = get_store(ctx)
    issues = validate_store(store, parse_symbols(symbols) if symbols else None)

    if not issues:
        console.print(Panel(
            "[green]All files valid.[/green]",
            title="[bold green]Validate[/bold green]",
            border_style="green",
        ))
        return

    table = Table(title="Validation Issues", show_header=True, header_style="bold cyan")
    table.add_column("Level")
    table.add_column("Symbol", style="bold")
    table.add_column("Date", style="dim")
    table.add_column("Message")

    for issue in issues:
        level = "[red]ERROR[/red]" if issue.level == "ERROR" else "[yellow]WARN[/yellow]"
        table.add_row(level, issue.symbol, str(issue.day), issue.message)
    console.print(table)

    errors = sum(1 for i in issues if i.level == "ERROR")
    warnings = len(issues) - errors
    console.print(f"\n{errors} error(s), {warnings} warning(s)")
    if errors:
        raise SystemExit(1)
