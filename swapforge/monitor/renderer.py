"""Rich terminal renderer for size reports and deployment manifests.

Color scheme
------------
- green     : within limit / deployed / completed
- red       : over limit / failed
- yellow    : cancelled
- dim       : not attempted
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from swapforge.models.manifest import Manifest, RunStatus

if TYPE_CHECKING:
    from swapforge.config import ForgeSettings
    from swapforge.models.artifacts import SizeReport
    from swapforge.models.ledger import LedgerEntry
    from swapforge.models.plan import Plan


_STATUS_STYLES: dict[RunStatus, str] = {
    RunStatus.COMPLETED: "green",
    RunStatus.FAILED: "red",
    RunStatus.CANCELLED: "yellow",
}


class DeployRenderer:
    """Renders SwapForge results as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Size report
    # ------------------------------------------------------------------

    def render_size_report(
        self, report: SizeReport, settings: ForgeSettings | None = None
    ) -> Panel:
        """Render a SizeReport, with compiler settings when given."""
        lines = [
            f"[bold]Creation bytecode:[/bold]  {report.creation_size_bytes:,} bytes",
            f"[bold]Deployed bytecode:[/bold]  {report.deployed_size_bytes:,} bytes",
            f"[bold]Limit:[/bold]              {report.limit_bytes:,} bytes",
            "",
        ]
        if report.within_limit:
            lines += [
                f"[bold green]Under the limit by {report.margin_bytes:,} bytes[/bold green]",
                f"Remaining headroom: {report.headroom_percent:.1f}%",
            ]
        else:
            lines += [
                f"[bold red]Over the limit by {-report.margin_bytes:,} bytes[/bold red]",
                f"Size reduction needed: {report.reduction_needed_percent:.1f}%",
            ]

        if settings is not None:
            lines += [
                "",
                "[dim]Compiler settings[/dim]",
                f"[dim]  Optimizer runs: {settings.optimizer_runs}[/dim]",
                f"[dim]  Via IR: {str(settings.via_ir).lower()}[/dim]",
                f"[dim]  EVM version: {settings.evm_version}[/dim]",
                f"[dim]  Solidity version: {settings.solc_version}[/dim]",
            ]

        return Panel(
            "\n".join(lines),
            title=f"[bold]Contract Size: {report.contract_name}[/bold]",
            border_style="green" if report.within_limit else "red",
            padding=(1, 2),
        )

    def print_size_report(
        self, report: SizeReport, settings: ForgeSettings | None = None
    ) -> None:
        self.console.print(self.render_size_report(report, settings))

    # ------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------

    def render_manifest(self, manifest: Manifest, plan: Plan | None = None) -> Panel:
        """Render a Manifest as a Panel containing a per-step table.

        With *plan*, steps that were never attempted are listed too.
        """
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=3, justify="right")
        table.add_column("Step", min_width=18)
        table.add_column("Contract", min_width=16)
        table.add_column("Address", min_width=42)
        table.add_column("Tx", overflow="fold")

        for i, record in enumerate(manifest.records):
            table.add_row(
                str(i + 1),
                f"[green]{record.step_name}[/green]",
                record.contract_name,
                record.deployed_address,
                f"[dim]{record.tx_hash}[/dim]",
            )

        failure = manifest.failure
        if failure is not None:
            position = (
                plan.get(failure.step_name).index + 1
                if plan is not None and failure.step_name in plan.step_names
                else len(manifest.records) + 1
            )
            table.add_row(
                str(position),
                f"[bold red]{failure.step_name}[/bold red]",
                failure.contract_name,
                f"[red]{failure.error_type}[/red]",
                "",
            )

        if plan is not None:
            attempted = {r.step_name for r in manifest.records}
            if failure is not None:
                attempted.add(failure.step_name)
            for step in plan.steps:
                if step.name in attempted:
                    continue
                table.add_row(
                    str(step.index + 1),
                    f"[dim]{step.name}[/dim]",
                    f"[dim]{step.contract}[/dim]",
                    "[dim]not attempted[/dim]",
                    "",
                )

        style = _STATUS_STYLES[manifest.status]
        summary = [
            f"[bold]Run:[/bold] {manifest.run_id}",
            f"[bold]Status:[/bold] [{style}]{manifest.status.value}[/{style}]",
            f"[bold]Deployed:[/bold] {len(manifest.records)}",
        ]
        parts: list = [table, Text(""), Text.from_markup("  |  ".join(summary))]

        if failure is not None:
            detail = [f"[red]{failure.message}[/red]"]
            for dep, address in failure.dependencies.items():
                detail.append(f"[dim]  depends on {dep} = {address}[/dim]")
            parts += [Text(""), Text.from_markup("\n".join(detail))]

        return Panel(
            Group(*parts),
            title="[bold]Deployment Manifest[/bold]",
            border_style=style,
            padding=(1, 2),
        )

    def print_manifest(self, manifest: Manifest, plan: Plan | None = None) -> None:
        self.console.print(self.render_manifest(manifest, plan))

    # ------------------------------------------------------------------
    # Ledger history
    # ------------------------------------------------------------------

    def render_history(self, run_id: str, entries: list[LedgerEntry], chain_valid: bool) -> Panel:
        """Render the persisted ledger entries of one run."""
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=3, justify="right")
        table.add_column("Step")
        table.add_column("Contract")
        table.add_column("Address")
        table.add_column("Deployed at", style="dim")

        for entry in entries:
            table.add_row(
                str(entry.step_index + 1),
                entry.step_name,
                entry.contract_name,
                entry.deployed_address,
                entry.timestamp_utc.strftime("%Y-%m-%d %H:%M:%S"),
            )

        chain = "[green]valid[/green]" if chain_valid else "[bold red]BROKEN[/bold red]"
        return Panel(
            Group(table, Text(""), Text.from_markup(f"[bold]Chain:[/bold] {chain}")),
            title=f"[bold]Run {run_id}[/bold]",
            border_style="blue",
            padding=(1, 2),
        )
