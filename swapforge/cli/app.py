"""Main Typer application — configures logging and registers all commands.

Entry point: ``swapforge`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from swapforge.cli.commands.compile_check import compile_check_cmd
from swapforge.cli.commands.deploy import deploy_cmd
from swapforge.cli.commands.history import history_cmd
from swapforge.cli.commands.size_check import size_check_cmd
from swapforge.config import config

app = typer.Typer(
    name="swapforge",
    help="SwapForge: size-gated, dependency-ordered swap pool deployments.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level. Defaults to SWAPFORGE_LOG_LEVEL (INFO).",
    ),
) -> None:
    """Configure logging for every command."""
    level = (log_level or config.log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="size-check", help="Check a contract against the EIP-170 size limit.")(size_check_cmd)
app.command(name="deploy", help="Deploy fee pool, pool logic and factory in order.")(deploy_cmd)
app.command(name="compile-check", help="Verify that contracts compile.")(compile_check_cmd)
app.command(name="history", help="Show deployments recorded in the ledger.")(history_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
