"""SwapForge: build-and-deploy orchestration for the swap pool contracts.

- Size gate for compiled artifacts (EIP-170 runtime code ceiling)
- Validated deployment plans with step references instead of live objects
- Sequential executor with an injected transaction submitter
- Append-only, hash-chained deployment ledger
"""

__version__ = "0.1.0"
__description__ = "Size-gated, dependency-ordered swap pool deployments"

from swapforge.core.executor import DeploymentExecutor
from swapforge.core.planner import build as build_plan
from swapforge.core.size_gate import evaluate as evaluate_size

__all__ = ["DeploymentExecutor", "build_plan", "evaluate_size", "__version__"]
