"""Hardhat compiler invocation.

The compiler itself is an external collaborator: this module only runs
the configured command inside the project and hands back a store over
the artifacts it produced.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

from swapforge.core.artifact_store import HardhatArtifactStore

logger = logging.getLogger(__name__)

_OUTPUT_TAIL_LINES = 20


class CompilationError(RuntimeError):
    """Raised when the compile command cannot run or exits non-zero."""

    def __init__(self, message: str, output: str = "") -> None:
        self.output = output
        super().__init__(f"{message}\n{output}" if output else message)


def _tail(text: str, lines: int = _OUTPUT_TAIL_LINES) -> str:
    return "\n".join(text.strip().splitlines()[-lines:])


class HardhatCompiler:
    """Runs ``npx hardhat compile`` (or a configured equivalent).

    Parameters
    ----------
    project_root:
        Directory containing ``hardhat.config.js``.
    command:
        The compile command, as an argv sequence or a shell-style string.
    artifacts_dir:
        Where the compiler writes artifacts. Defaults to
        ``{project_root}/artifacts``.
    """

    def __init__(
        self,
        project_root: Path,
        command: Sequence[str] | str = ("npx", "hardhat", "compile"),
        artifacts_dir: Path | None = None,
    ) -> None:
        self.project_root = Path(project_root)
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        self.artifacts_dir = (
            Path(artifacts_dir) if artifacts_dir else self.project_root / "artifacts"
        )

    def compile(self) -> HardhatArtifactStore:
        """Compile the project and return a store over its artifacts."""
        logger.info("Compiling contracts: %s", " ".join(self.command))
        try:
            result = subprocess.run(
                self.command,
                cwd=self.project_root,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise CompilationError(
                f"Compiler executable not found: {self.command[0]}"
            ) from exc

        if result.returncode != 0:
            raise CompilationError(
                f"Compilation failed with exit code {result.returncode}",
                _tail(result.stderr or result.stdout),
            )

        logger.debug("Compiler output:\n%s", _tail(result.stdout))
        return HardhatArtifactStore(self.artifacts_dir)
