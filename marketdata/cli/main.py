"""Main CLI entry point for marketdata.

This module provides the main click group, the shared context helpers used
by every command and lazy loading of the command modules.
"""

import importlib
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from marketdata.config import Settings, load_settings
from marketdata.db.store import CandleStore
from marketdata.errors import ConfigError
from marketdata.log import LOG_LEVELS, configure_logging

# Console for rich output
console = Console()

DATE_FORMATS = ["%Y-%m-%d"]


class LazyGroup(click.Group):
    """Group whose commands are ``"module:attribute"`` references.

    Command modules pull in pyarrow, pandas and requests, so a module is
    imported only when one of its commands is looked up.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted(set(super().list_commands(ctx)) | set(self.lazy_subcommands))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        ref = self.lazy_subcommands.get(cmd_name)
        if cmd_name in self.commands or ref is None:
            return super().get_command(ctx, cmd_name)

        module_name, _, attr = ref.partition(":")
        command = getattr(importlib.import_module(module_name), attr, None)
        if not isinstance(command, click.Command):
            raise click.ClickException(f"{ref} is not a click command")
        self.add_command(command, cmd_name)
        return command


LAZY_SUBCOMMANDS = {
    "populate": "marketdata.cli.populate:populate",
    "status": "marketdata.cli.status:status",
    "validate": "marketdata.cli.status:validate",
    "show": "marketdata.cli.query:show",
    "gaps": "marketdata.cli.query:gaps",
    "export": "marketdata.cli.query:export",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def print_error(message: str, title: str = "Error") -> None:
    """Print an error panel."""
    console.print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))


def get_settings(ctx: click.Context) -> Settings:
    """Settings loaded by the group callback."""
    return ctx.find_root().obj["settings"]


def get_store(ctx: click.Context) -> CandleStore:
    """Store rooted at the configured data directory."""
    return CandleStore(get_settings(ctx).data_dir)


def parse_symbols(value: str) -> list[str]:
    """Split a comma separated symbol list into upper-cased symbols."""
    return [s.strip().upper() for s in value.split(",") if s.strip()]


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="marketdata")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding symbol folders (overrides config).",
)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/marketdata/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="info",
    show_default=True,
    help="Log verbosity (MARKETDATA_LOG overrides).",
)
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[Path], config_path: Optional[Path], log_level: str) -> None:
    """marketdata - local store of 5-minute OHLCV candles.

    Candles are kept as one Parquet file per symbol per trading day and
    refilled from a market data provider.

    \b
    Quick Start:
      market-data populate -s AAPL,MSFT --start 2025-01-02
      market-data status
      market-data show AAPL --start 2025-01-02 --session regular
    """
    ctx.ensure_object(dict)

    try:
        configure_logging(log_level)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="MARKETDATA_LOG") from e

    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        print_error(str(e), title="Configuration Error")
        raise SystemExit(1)

    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": data_dir})
    ctx.obj["settings"] = settings


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
