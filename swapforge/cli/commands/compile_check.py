"""``swapforge compile-check [CONTRACT...]`` — confirm contracts compile.

Runs the compiler and checks that an artifact exists for every named
contract.
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

console = Console()


def compile_check_cmd(
    contracts: list[str] = typer.Argument(
        None,
        help="Contracts that must compile. Defaults to SWAPFORGE_COMPILE_CHECK_CONTRACTS.",
    ),
    skip_compile: bool = typer.Option(
        False,
        "--skip-compile",
        help="Only check existing artifacts.",
    ),
    artifacts_dir: Path = typer.Option(
        None,
        "--artifacts",
        "-a",
        help="Hardhat artifacts directory.",
    ),
) -> None:
    """Compile and verify that each named contract produced an artifact."""
    settings = ForgeSettings()
    names = contracts or settings.compile_check_contracts

    store = load_artifacts(
        console, settings, skip_compile=skip_compile, artifacts_dir=artifacts_dir
    )

    missing = 0
    for name in names:
        try:
            artifact = store.read_artifact(name)
        except (ArtifactNotFoundError, AmbiguousArtifactError, MalformedArtifactError) as exc:
            console.print(f"[red]FAIL[/red] {name}: {exc}")
            missing += 1
            continue
        console.print(f"[green]OK[/green]   {name} ({artifact.fully_qualified_name})")

    if missing:
        console.print(f"\n[bold red]{missing} contract(s) did not compile.[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"\n[bold green]All {len(names)} contract(s) compile.[/bold green]")
