"""Helpers shared by the CLI commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from swapforge.config import ForgeSettings
from swapforge.core.artifact_store import HardhatArtifactStore
from swapforge.core.compiler import CompilationError, HardhatCompiler


def load_artifacts(
    console: Console,
    settings: ForgeSettings,
    *,
    skip_compile: bool,
    artifacts_dir: Path | None,
) -> HardhatArtifactStore:
    """Compile the project (unless skipped) and return its artifact store.

    Exits with code 1 when compilation fails.
    """
    target = artifacts_dir or settings.resolved_artifacts_path
    if skip_compile:
        return HardhatArtifactStore(target)

    console.print("[bold cyan]Compiling contracts...[/bold cyan]")
    compiler = HardhatCompiler(
        settings.project_root, settings.compile_command, artifacts_dir=target
    )
    try:
        return compiler.compile()
    except CompilationError as exc:
        console.print(f"[bold red]Compilation failed:[/bold red] {exc}")
        raise typer.Exit(code=1)
