"""``swapforge size-check [CONTRACT]`` — enforce the runtime code ceiling.

Compiles the project, loads one artifact, measures its deployed bytecode
against the limit and prints the report. Exits non-zero when the
contract is over budget.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from swapforge.cli.commands._shared import load_artifacts
from swapforge.config import ForgeSettings
from swapforge.core.artifact_store import (
    AmbiguousArtifactError,
    ArtifactNotFoundError,
    MalformedArtifactError,
)
from swapforge.core.size_gate import evaluate
from swapforge.monitor.renderer import DeployRenderer

console = Console()


def size_check_cmd(
    contract: str = typer.Argument(
        None,
        help="Contract to measure. Defaults to SWAPFORGE_SIZE_CHECK_CONTRACT.",
    ),
    limit: int = typer.Option(
        None,
        "--limit",
        min=1,
        help="Size ceiling in bytes. Defaults to the EIP-170 limit (24,576).",
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
) -> None:
    """Check a compiled contract's deployed size against the ceiling."""
    settings = ForgeSettings()
    name = contract or settings.size_check_contract
    limit_bytes = limit or settings.size_limit_bytes

    store = load_artifacts(
        console, settings, skip_compile=skip_compile, artifacts_dir=artifacts_dir
    )

    try:
        report = evaluate(store.read_artifact(name), limit_bytes)
    except (ArtifactNotFoundError, AmbiguousArtifactError, MalformedArtifactError) as exc:
        console.print(f"[bold red]Cannot measure {name}:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print()
    DeployRenderer(console=console).print_size_report(report, settings)

    if not report.within_limit:
        raise typer.Exit(code=1)
