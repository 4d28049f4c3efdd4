"""``swapforge history [RUN_ID]`` — show recorded deployments.

Without a run id, lists every run in the ledger. With one, shows the
contracts that run deployed and verifies its hash chain.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from swapforge.config import ForgeSettings
from swapforge.core.deployment_ledger import DeploymentLedger, LedgerIntegrityError
from swapforge.monitor.renderer import DeployRenderer

console = Console()


def history_cmd(
    run_id: str = typer.Argument(
        None,
        help="Run to show. Lists all runs when omitted.",
    ),
    ledger_db: Path = typer.Option(
        None,
        "--ledger",
        "-l",
        help="Path to the deployment ledger. Defaults to SWAPFORGE_LEDGER_PATH.",
    ),
) -> None:
    """Show deployment history from the ledger."""
    db_path = ledger_db or ForgeSettings().ledger_path
    if not db_path.exists():
        console.print(f"[bold red]Ledger not found:[/bold red] {db_path}")
        raise typer.Exit(code=1)

    ledger = DeploymentLedger(db_path)

    if run_id is None:
        run_ids = ledger.get_all_run_ids()
        if not run_ids:
            console.print("[dim]No deployments recorded.[/dim]")
            return
        table = Table(title="Deployment Runs")
        table.add_column("Run ID", style="cyan")
        table.add_column("Contracts", justify="right")
        table.add_column("Last step")
        for rid in run_ids:
            entries = ledger.get_run_entries(rid)
            table.add_row(rid, str(len(entries)), entries[-1].step_name)
        console.print(table)
        return

    entries = ledger.get_run_entries(run_id)
    if not entries:
        console.print(f"[bold red]No deployments recorded for run {run_id}.[/bold red]")
        raise typer.Exit(code=1)

    try:
        chain_valid = ledger.verify_chain(run_id)
    except LedgerIntegrityError as exc:
        console.print(f"[bold red]Chain verification error:[/bold red] {exc}")
        chain_valid = False

    console.print(DeployRenderer(console=console).render_history(run_id, entries, chain_valid))
    if not chain_valid:
        raise typer.Exit(code=1)
