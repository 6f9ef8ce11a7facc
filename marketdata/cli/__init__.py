"""Command line interface for marketdata."""

from marketdata.cli.main import cli, main

__all__ = ["cli", "main"]
