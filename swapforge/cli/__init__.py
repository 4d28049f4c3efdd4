"""SwapForge CLI — Typer-based command-line interface.

Provides the ``swapforge`` command with subcommands for checking contract
size, verifying compilation, deploying the swap pool contracts, and
inspecting deployment history.

All output uses Rich for formatted terminal display.
"""
