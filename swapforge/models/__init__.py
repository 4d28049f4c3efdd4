"""SwapForge data models — all Pydantic v2, all frozen (immutable)."""

from swapforge.models.artifacts import Artifact, SizeReport
from swapforge.models.ledger import LedgerEntry
from swapforge.models.manifest import (
    DeploymentRecord,
    Manifest,
    RunStatus,
    StepFailure,
)
from swapforge.models.plan import (
    ArgSlot,
    DeploymentStep,
    LiteralArg,
    Plan,
    StepReference,
    StepSpec,
    literal,
    ref,
)

__all__ = [
    # artifacts
    "Artifact",
    "SizeReport",
    # plan
    "ArgSlot",
    "LiteralArg",
    "StepReference",
    "StepSpec",
    "DeploymentStep",
    "Plan",
    "literal",
    "ref",
    # manifest
    "RunStatus",
    "DeploymentRecord",
    "StepFailure",
    "Manifest",
    # ledger
    "LedgerEntry",
]
