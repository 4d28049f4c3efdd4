"""Deployment executor — runs a Plan step by step against a TxSubmitter.

Lifecycle per step, strictly in plan order:

    resolve args -> fetch artifact -> submit + confirm -> record

Step N+1 never starts before step N's address is known. The first
failure aborts the run; the manifest returned still carries every step
that completed, since those contracts now exist on-chain. Nothing is
retried here: a partially applied chain cannot be rewound, so retry
policy belongs to whoever calls ``run()``.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any

from swapforge.bridge.submitter import SubmissionError, TxSubmitter
from swapforge.core.artifact_store import (
    AmbiguousArtifactError,
    ArtifactNotFoundError,
    ArtifactStore,
    MalformedArtifactError,
)
from swapforge.core.deployment_ledger import DeploymentLedger, LedgerWriteError
from swapforge.core.hasher import bytecode_digest
from swapforge.models.ledger import LedgerEntry
from swapforge.models.manifest import (
    DeploymentRecord,
    Manifest,
    RunStatus,
    StepFailure,
)
from swapforge.models.plan import ArgSlot, DeploymentStep, Plan, StepReference

logger = logging.getLogger(__name__)


class UnresolvedReferenceError(RuntimeError):
    """A step referenced an address that no completed step produced.

    The planner rules this out, so seeing it means a bug in the planner or
    executor. It is never folded into a manifest.
    """

    def __init__(self, step_name: str, referencing_step: str) -> None:
        self.step_name = step_name
        self.referencing_step = referencing_step
        super().__init__(
            f"Step {referencing_step!r} needs the address of {step_name!r}, "
            f"which has not been deployed in this run"
        )


class AddressTable:
    """Addresses of completed steps, keyed by step name. Grows only."""

    def __init__(self) -> None:
        self._addresses: dict[str, str] = {}

    def record(self, step_name: str, address: str) -> None:
        if step_name in self._addresses:
            raise RuntimeError(f"Address for {step_name!r} already recorded")
        self._addresses[step_name] = address

    def lookup(self, step_name: str, referencing_step: str) -> str:
        try:
            return self._addresses[step_name]
        except KeyError:
            raise UnresolvedReferenceError(step_name, referencing_step) from None

    def resolve(self, slot: ArgSlot, referencing_step: str) -> Any:
        """Return the concrete value for one constructor-argument slot."""
        if isinstance(slot, StepReference):
            return self.lookup(slot.step, referencing_step)
        return slot.value

    def __contains__(self, step_name: object) -> bool:
        return step_name in self._addresses

    def as_dict(self) -> dict[str, str]:
        return dict(self._addresses)


class DeploymentExecutor:
    """Sequential executor for deployment plans.

    Parameters
    ----------
    ledger:
        Optional ledger; each confirmed step is appended as it completes.
    run_id:
        Identifier recorded in the manifest and ledger. When None, every
        call to ``run()`` generates a fresh one.
    """

    def __init__(
        self,
        ledger: DeploymentLedger | None = None,
        run_id: str | None = None,
    ) -> None:
        self.ledger = ledger
        self.run_id = run_id

    @staticmethod
    def new_run_id() -> str:
        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        return f"sf-{ts}-{uuid.uuid4().hex[:4]}"

    def run(
        self,
        plan: Plan,
        artifacts: ArtifactStore,
        submitter: TxSubmitter,
        *,
        cancel: threading.Event | None = None,
    ) -> Manifest:
        """Execute *plan* and return the finalized manifest.

        ``cancel`` is checked between steps only. Setting it while a step
        is in flight lets that step finish and stops before the next one.
        """
        run_id = self.run_id or self.new_run_id()
        started_at = datetime.now(timezone.utc)
        fingerprint = plan.fingerprint
        table = AddressTable()
        records: list[DeploymentRecord] = []

        def finish(status: RunStatus, failure: StepFailure | None = None) -> Manifest:
            return Manifest(
                run_id=run_id,
                plan_fingerprint=fingerprint,
                status=status,
                records=tuple(records),
                failure=failure,
                started_at=started_at,
                finished_at=datetime.now(timezone.utc),
            )

        logger.info("Run %s: executing %d step(s)", run_id, len(plan))

        for step in plan.steps:
            if cancel is not None and cancel.is_set():
                logger.warning(
                    "Run %s cancelled before %s (%d/%d steps done)",
                    run_id, step.name, len(records), len(plan),
                )
                return finish(RunStatus.CANCELLED)

            # 1. Resolve constructor arguments (raises on planner bugs)
            args = [table.resolve(slot, step.name) for slot in step.args]

            try:
                # 2. Fetch the artifact
                artifact = artifacts.read_artifact(step.contract)

                # 3. Submit and wait for confirmation
                logger.info(
                    "Step %d/%d %s: deploying %s",
                    step.index + 1, len(plan), step.name, step.contract,
                )
                receipt = submitter.deploy(
                    artifact.creation_bytecode, args, abi=artifact.abi
                )
            except (
                ArtifactNotFoundError,
                AmbiguousArtifactError,
                MalformedArtifactError,
                SubmissionError,
            ) as exc:
                logger.error("Run %s aborted at %s: %s", run_id, step.name, exc)
                return finish(RunStatus.FAILED, self._failure(step, exc, table))

            # 4. Record; the contract exists from here on
            record = DeploymentRecord(
                step_name=step.name,
                contract_name=step.contract,
                deployed_address=receipt.address,
                tx_hash=receipt.tx_hash,
                constructor_args=args,
                bytecode_digest=bytecode_digest(artifact.creation_bytecode),
            )
            records.append(record)
            table.record(step.name, receipt.address)
            logger.info(
                "Step %s: %s deployed at %s (tx %s)",
                step.name, step.contract, receipt.address, receipt.tx_hash,
            )

            try:
                self._persist(run_id, step, record, fingerprint)
            except LedgerWriteError as exc:
                logger.error(
                    "Run %s stopped after %s: %s deployed at %s but not recorded: %s",
                    run_id, step.name, step.contract, receipt.address, exc,
                )
                return finish(RunStatus.FAILED, self._failure(step, exc, table))

        logger.info("Run %s completed: %d contract(s) deployed", run_id, len(records))
        return finish(RunStatus.COMPLETED)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _failure(
        step: DeploymentStep, exc: Exception, table: AddressTable
    ) -> StepFailure:
        return StepFailure(
            step_name=step.name,
            contract_name=step.contract,
            error_type=type(exc).__name__,
            message=str(exc),
            dependencies={
                name: table.lookup(name, step.name) for name in step.depends_on
            },
            exception=exc,
        )

    def _persist(
        self,
        run_id: str,
        step: DeploymentStep,
        record: DeploymentRecord,
        fingerprint: str,
    ) -> None:
        if self.ledger is None:
            return
        self.ledger.append(
            LedgerEntry(
                run_id=run_id,
                step_index=step.index,
                step_name=record.step_name,
                contract_name=record.contract_name,
                deployed_address=record.deployed_address,
                tx_hash=record.tx_hash,
                constructor_args=record.constructor_args,
                bytecode_digest=record.bytecode_digest,
                plan_fingerprint=fingerprint,
            )
        )
