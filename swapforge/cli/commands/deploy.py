"""``swapforge deploy`` — deploy the fee pool, pool logic and factory.

Builds the deployment plan (the fixed three-step swap pool plan, or a
JSON plan file), optionally size-gates every artifact before anything is
submitted, executes the plan and prints each deployed address.

Exit codes: 0 on full success, 1 on any failure or size breach, 130 when
cancelled with Ctrl+C between steps.
"""

from __future__ import annotations

import json
import logging
import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer
from pydantic import ValidationError
from rich.console import Console

from swapforge.bridge.submitter import DryRunSubmitter, SubmissionError, TxSubmitter, Web3Submitter
from swapforge.cli.commands._shared import load_artifacts
from swapforge.config import ForgeSettings
from swapforge.core.artifact_store import (
    AmbiguousArtifactError,
    ArtifactNotFoundError,
    ArtifactStore,
    MalformedArtifactError,
)
from swapforge.core.deployment_ledger import DeploymentLedger
from swapforge.core.executor import DeploymentExecutor
from swapforge.core.planner import (
    DuplicateStepNameError,
    InvalidDependencyError,
    build,
    load_step_specs,
    swap_pool_plan,
)
from swapforge.core.size_gate import evaluate
from swapforge.models.manifest import Manifest, RunStatus
from swapforge.models.plan import Plan
from swapforge.monitor.renderer import DeployRenderer

console = Console()
logger = logging.getLogger(__name__)

_EXIT_CANCELLED = 130


@contextmanager
def _cancel_on_interrupt(cancel: threading.Event) -> Iterator[None]:
    """First Ctrl+C requests cancellation after the current step; the
    second one interrupts immediately."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum: int, frame: object) -> None:
        if cancel.is_set():
            raise KeyboardInterrupt
        cancel.set()
        console.print(
            "[bold yellow]Cancelling after the current step "
            "(Ctrl+C again to abort now)...[/bold yellow]"
        )

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _build_plan(plan_file: Path | None, settings: ForgeSettings) -> Plan:
    try:
        if plan_file is not None:
            return build(load_step_specs(plan_file))
        return swap_pool_plan(settings.fee_token, settings.stoner_nft)
    except (DuplicateStepNameError, InvalidDependencyError) as exc:
        console.print(f"[bold red]Invalid plan:[/bold red] {exc}")
    except (ValidationError, ValueError, OSError) as exc:
        console.print(f"[bold red]Cannot load plan {plan_file}:[/bold red] {exc}")
    raise typer.Exit(code=1)


def _gate_sizes(plan: Plan, store: ArtifactStore, limit_bytes: int, renderer: DeployRenderer) -> None:
    """Refuse to start if any artifact in the plan is missing or too big."""
    for contract in dict.fromkeys(step.contract for step in plan.steps):
        try:
            report = evaluate(store.read_artifact(contract), limit_bytes)
        except (ArtifactNotFoundError, AmbiguousArtifactError, MalformedArtifactError) as exc:
            console.print(f"[bold red]Pre-flight check failed:[/bold red] {exc}")
            raise typer.Exit(code=1)
        if not report.within_limit:
            renderer.print_size_report(report)
            console.print(
                f"[bold red]Deployment aborted: {contract} exceeds the size limit.[/bold red]"
            )
            raise typer.Exit(code=1)
        logger.info(
            "%s: %d/%d bytes", contract, report.deployed_size_bytes, limit_bytes
        )


def _write_manifest(manifest: Manifest, settings: ForgeSettings, manifest_dir: Path) -> Path:
    """Write one file per run so a later run never replaces earlier addresses."""
    manifest_dir.mkdir(parents=True, exist_ok=True)
    path = manifest_dir / f"{settings.network_name}-{manifest.run_id}.json"
    payload = {
        "network": settings.network_name,
        "chain_id": settings.chain_id,
        "manifest": manifest.model_dump(mode="json"),
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


def deploy_cmd(
    plan_file: Path = typer.Option(
        None,
        "--plan",
        "-p",
        help="JSON plan file. Defaults to the fee pool -> logic -> factory plan.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Simulate submissions offline and print predicted addresses.",
    ),
    skip_compile: bool = typer.Option(
        False,
        "--skip-compile",
        help="Use existing artifacts instead of compiling first.",
    ),
    artifacts_dir: Path = typer.Option(
        None,
        "--artifacts",
        "-a",
        help="Hardhat artifacts directory.",
    ),
    enforce_size: bool = typer.Option(
        True,
        "--enforce-size/--no-enforce-size",
        help="Refuse to deploy if any artifact exceeds the size limit.",
    ),
    run_id: str = typer.Option(
        None,
        "--run-id",
        help="Run identifier for the ledger. Generated if omitted.",
    ),
) -> None:
    """Deploy the plan and print each deployed address."""
    settings = ForgeSettings()
    renderer = DeployRenderer(console=console)

    plan = _build_plan(plan_file, settings)
    store = load_artifacts(
        console, settings, skip_compile=skip_compile, artifacts_dir=artifacts_dir
    )

    if enforce_size:
        _gate_sizes(plan, store, settings.size_limit_bytes, renderer)

    submitter: TxSubmitter
    if dry_run:
        submitter = DryRunSubmitter()
        ledger = None
        console.print("[bold yellow]Dry run: nothing will be submitted.[/bold yellow]")
    else:
        try:
            submitter = Web3Submitter.from_settings(settings)
        except SubmissionError as exc:
            console.print(f"[bold red]Cannot create submitter:[/bold red] {exc}")
            raise typer.Exit(code=1)
        ledger = DeploymentLedger(settings.ledger_path)
        console.print(
            f"[bold cyan]Deploying to {settings.network_name} "
            f"(chain {settings.chain_id}) as {submitter.deployer}[/bold cyan]"
        )

    executor = DeploymentExecutor(ledger=ledger, run_id=run_id)
    cancel = threading.Event()
    with _cancel_on_interrupt(cancel):
        manifest = executor.run(plan, store, submitter, cancel=cancel)

    console.print()
    renderer.print_manifest(manifest, plan)
    for record in manifest.records:
        console.print(f"{record.contract_name}: {record.deployed_address}")

    if not dry_run:
        path = _write_manifest(manifest, settings, settings.manifest_dir)
        console.print(f"[dim]Manifest written to {path}[/dim]")

    if manifest.status == RunStatus.CANCELLED:
        raise typer.Exit(code=_EXIT_CANCELLED)
    if manifest.status == RunStatus.FAILED:
        raise typer.Exit(code=1)
