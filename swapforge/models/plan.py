"""Deployment plan models — tagged constructor-argument slots.

A constructor argument is either a literal value known up front or a
reference to the address an earlier step will produce. References are
resolved by the executor through its address table, never by attribute
lookup on live contract objects.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from swapforge.core.hasher import canonical_json_bytes, sha256_hex


class LiteralArg(BaseModel):
    """A constructor argument passed through unchanged."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    value: Any


class StepReference(BaseModel):
    """A placeholder for the deployed address of an earlier step."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ref"] = "ref"
    step: str


ArgSlot = Annotated[Union[LiteralArg, StepReference], Field(discriminator="kind")]


def literal(value: Any) -> LiteralArg:
    """Shorthand for ``LiteralArg(value=value)``."""
    return LiteralArg(value=value)


def ref(step_name: str) -> StepReference:
    """Shorthand for ``StepReference(step=step_name)``."""
    return StepReference(step=step_name)


class StepSpec(BaseModel):
    """Static description of one deployment step, before validation."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    contract: str = Field(min_length=1)  # artifact name in the ArtifactStore
    args: list[ArgSlot] = []


class DeploymentStep(BaseModel):
    """A validated step: every reference points at an earlier index."""

    model_config = ConfigDict(frozen=True)

    index: int
    name: str
    contract: str
    args: tuple[ArgSlot, ...] = ()
    depends_on: tuple[str, ...] = ()


class Plan(BaseModel):
    """An ordered, validated, immutable list of deployment steps.

    Built by ``swapforge.core.planner.build``; never mutated during a run.
    """

    model_config = ConfigDict(frozen=True)

    steps: tuple[DeploymentStep, ...]

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self.steps]

    def get(self, name: str) -> DeploymentStep:
        """Return the step called *name* (``KeyError`` if absent)."""
        for step in self.steps:
            if step.name == name:
                return step
        raise KeyError(name)

    @property
    def fingerprint(self) -> str:
        """SHA-256 of the canonical plan JSON, recorded in every manifest."""
        return sha256_hex(canonical_json_bytes(self.model_dump(mode="json")))

    def __len__(self) -> int:
        return len(self.steps)
