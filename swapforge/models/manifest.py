"""Deployment manifest models — what went on-chain, in plan order."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RunStatus(str, Enum):
    """Terminal outcome of one executor run."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DeploymentRecord(BaseModel):
    """One confirmed contract creation."""

    model_config = ConfigDict(frozen=True)

    step_name: str
    contract_name: str
    deployed_address: str
    tx_hash: str
    constructor_args: list[Any] = []  # resolved values, slot order
    bytecode_digest: str = ""


class StepFailure(BaseModel):
    """The first failure of a run, with enough context to resume by hand.

    ``exception`` keeps the triggering error for callers that want to
    re-raise it; it is never serialized.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    step_name: str
    contract_name: str
    error_type: str
    message: str
    dependencies: dict[str, str] = {}  # referenced step -> resolved address
    exception: BaseException | None = Field(default=None, exclude=True, repr=False)


class Manifest(BaseModel):
    """Append-only record of a run, finalized when the run ends.

    ``records`` always follows plan order. A failed or cancelled run keeps
    every record of the steps that did complete: those contracts exist
    on-chain and must be accounted for.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str
    plan_fingerprint: str = ""
    status: RunStatus
    records: tuple[DeploymentRecord, ...] = ()
    failure: StepFailure | None = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def addresses(self) -> dict[str, str]:
        """Map of step name -> deployed address for completed steps."""
        return {r.step_name: r.deployed_address for r in self.records}

    def address_of(self, step_name: str) -> str | None:
        return self.addresses.get(step_name)

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.COMPLETED
