"""Main Typer application — imports and registers all CLI commands.

Entry point: ``reprocheck`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from reprocheck.cli.commands.common import console
from reprocheck.cli.commands.compare import compare_cmd
from reprocheck.cli.commands.describe import describe_cmd
from reprocheck.cli.commands.record import record_cmd
from reprocheck.cli.commands.sniff import sniff_cmd
from reprocheck.config import settings

app = typer.Typer(
    name="reprocheck",
    help="reprocheck: record build outputs and verify they reproduce a reference build.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def configure(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (default from REPROCHECK_LOG_LEVEL).",
    ),
) -> None:
    """Install the Rich log handler before any subcommand runs."""
    level = (log_level or settings.log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="record", help="Write the build record of a finished build.")(record_cmd)
app.command(name="compare", help="Check a build against a reference repository.")(compare_cmd)
app.command(name="sniff", help="Guess the JDK and OS that produced an archive.")(sniff_cmd)
app.command(name="describe", help="List build outputs and how they will be recorded.")(describe_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
