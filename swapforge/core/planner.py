"""Deployment planner — validates step specs into an immutable Plan.

The planner enforces, before any network call:
- Step names are unique.
- Every ``ref(step)`` argument names a step strictly earlier in the plan
  (no self, forward, cyclic or unknown references).

It never executes anything.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

from pydantic import TypeAdapter

from swapforge.models.plan import (
    DeploymentStep,
    Plan,
    StepReference,
    StepSpec,
    literal,
    ref,
)

FEE_POOL_STEP = "deploy_fee_pool"
POOL_LOGIC_STEP = "deploy_pool_logic"
FACTORY_STEP = "deploy_factory"

_STEP_SPECS = TypeAdapter(list[StepSpec])


class DuplicateStepNameError(ValueError):
    """Raised when two steps in a plan share a name."""

    def __init__(self, step_name: str) -> None:
        self.step_name = step_name
        super().__init__(f"Duplicate step name: {step_name!r}")


class InvalidDependencyError(ValueError):
    """Raised when a step references a step that does not precede it."""

    def __init__(self, step_name: str, referencing_step: str, reason: str = "") -> None:
        self.step_name = step_name
        self.referencing_step = referencing_step
        message = (
            f"Step {referencing_step!r} references {step_name!r}, "
            f"which is not an earlier step in the plan"
        )
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


def build(specs: Iterable[StepSpec]) -> Plan:
    """Validate *specs* in order and return an immutable ``Plan``."""
    specs = list(specs)
    positions: dict[str, int] = {}
    for index, spec in enumerate(specs):
        if spec.name in positions:
            raise DuplicateStepNameError(spec.name)
        positions[spec.name] = index

    steps: list[DeploymentStep] = []
    for index, spec in enumerate(specs):
        depends_on: list[str] = []
        for slot in spec.args:
            if not isinstance(slot, StepReference):
                continue
            target = positions.get(slot.step)
            if target is None:
                raise InvalidDependencyError(slot.step, spec.name, "unknown step")
            if target == index:
                raise InvalidDependencyError(slot.step, spec.name, "self-reference")
            if target > index:
                raise InvalidDependencyError(slot.step, spec.name, "forward reference")
            if slot.step not in depends_on:
                depends_on.append(slot.step)

        steps.append(
            DeploymentStep(
                index=index,
                name=spec.name,
                contract=spec.contract,
                args=tuple(spec.args),
                depends_on=tuple(depends_on),
            )
        )

    return Plan(steps=tuple(steps))


def load_step_specs(path: Path) -> list[StepSpec]:
    """Parse a JSON plan file into step specs.

    Format::

        [
          {"name": "deploy_pool", "contract": "Pool",
           "args": [{"kind": "literal", "value": "0xabc..."}]},
          {"name": "deploy_factory", "contract": "Factory",
           "args": [{"kind": "ref", "step": "deploy_pool"}]}
        ]
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return _STEP_SPECS.validate_python(data)


def swap_pool_specs(fee_token: str, stoner_nft: str) -> list[StepSpec]:
    """The three-step swap pool deployment, fee pool first."""
    return [
        StepSpec(
            name=FEE_POOL_STEP,
            contract="StonerFeePool",
            args=[literal(stoner_nft), literal(fee_token)],
        ),
        StepSpec(name=POOL_LOGIC_STEP, contract="SwapPool"),
        StepSpec(
            name=FACTORY_STEP,
            contract="SwapPoolFactory",
            args=[ref(POOL_LOGIC_STEP), literal(fee_token), ref(FEE_POOL_STEP)],
        ),
    ]


def swap_pool_plan(fee_token: str, stoner_nft: str) -> Plan:
    """Build the validated fee pool -> pool logic -> factory plan."""
    return build(swap_pool_specs(fee_token, stoner_nft))
