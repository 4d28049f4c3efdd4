"""End-to-end integration tests — artifacts on disk through to the ledger.

These tests exercise the HardhatArtifactStore, size gate, planner,
DeploymentExecutor, DryRunSubmitter and DeploymentLedger working together.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FEE_TOKEN, STONER_NFT
from swapforge.bridge.submitter import DryRunSubmitter
from swapforge.core.artifact_store import HardhatArtifactStore
from swapforge.core.deployment_ledger import DeploymentLedger
from swapforge.core.executor import DeploymentExecutor
from swapforge.core.planner import FACTORY_STEP, FEE_POOL_STEP, POOL_LOGIC_STEP, swap_pool_plan
from swapforge.core.size_gate import evaluate
from swapforge.models.manifest import RunStatus


class TestFullDeploy:
    """Hardhat artifacts -> size gate -> plan -> executor -> ledger."""

    @pytest.fixture
    def store(self, write_hardhat_artifacts) -> HardhatArtifactStore:
        root = write_hardhat_artifacts({
            "contracts/StonerFeePool.sol": {"StonerFeePool": (20_300, 20_000)},
            "contracts/SwapPool.sol": {"SwapPool": (5_200, 5_000), "SwapPoolNative": (25_100, 25_000)},
            "contracts/SwapPoolFactory.sol": {"SwapPoolFactory": (3_300, 3_000)},
        })
        return HardhatArtifactStore(root)

    @pytest.fixture
    def deployment_ledger(self, tmp_path: Path) -> DeploymentLedger:
        return DeploymentLedger(tmp_path / "ledger.db")

    def test_native_pool_over_the_limit(self, store: HardhatArtifactStore):
        report = evaluate(store.read_artifact("SwapPoolNative"))
        assert report.within_limit is False
        assert report.margin_bytes == -424
        assert report.creation_size_bytes == 25_100

    def test_plan_contracts_fit(self, store: HardhatArtifactStore):
        plan = swap_pool_plan(FEE_TOKEN, STONER_NFT)
        for step in plan.steps:
            assert evaluate(store.read_artifact(step.contract)).within_limit

    def test_dry_run_deploys_in_order_with_predicted_addresses(
        self, store: HardhatArtifactStore, deployment_ledger: DeploymentLedger
    ):
        plan = swap_pool_plan(FEE_TOKEN, STONER_NFT)
        submitter = DryRunSubmitter()
        executor = DeploymentExecutor(ledger=deployment_ledger, run_id="it-run")

        manifest = executor.run(plan, store, submitter)

        assert manifest.status == RunStatus.COMPLETED
        fee_pool = submitter.predict_address(0)
        logic = submitter.predict_address(1)
        assert manifest.address_of(FEE_POOL_STEP) == fee_pool
        assert manifest.address_of(POOL_LOGIC_STEP) == logic

        # Constructor args as they reached the submitter
        assert submitter.calls[0][1] == (STONER_NFT, FEE_TOKEN)
        assert submitter.calls[1][1] == ()
        assert submitter.calls[2][1] == (logic, FEE_TOKEN, fee_pool)

        # Creation code, not runtime code, is what gets submitted
        assert submitter.calls[0][0] == store.read_artifact("StonerFeePool").creation_bytecode

        entries = deployment_ledger.get_run_entries("it-run")
        assert [e.step_name for e in entries] == [FEE_POOL_STEP, POOL_LOGIC_STEP, FACTORY_STEP]
        assert entries[2].constructor_args == [logic, FEE_TOKEN, fee_pool]
        assert deployment_ledger.verify_chain("it-run") is True

    def test_manifest_serializes(self, store: HardhatArtifactStore):
        manifest = DeploymentExecutor(run_id="json").run(
            swap_pool_plan(FEE_TOKEN, STONER_NFT), store, DryRunSubmitter()
        )
        dumped = manifest.model_dump(mode="json")
        assert dumped["status"] == "completed"
        assert [r["contract_name"] for r in dumped["records"]] == [
            "StonerFeePool", "SwapPool", "SwapPoolFactory",
        ]
