"""Shared test fixtures for SwapForge."""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from swapforge.bridge.submitter import DeployReceipt
from swapforge.core.artifact_store import InMemoryArtifactStore
from swapforge.core.deployment_ledger import DeploymentLedger
from swapforge.models.artifacts import Artifact

FEE_TOKEN = "0xC046dCb16592FBb3F9fA0C629b8D93090dD4cB76"
STONER_NFT = "0x9b567e03d891F537b2B7874aA4A3308Cfe2F4FBb"


def hex_code(n_bytes: int, *, prefix: bool = True) -> str:
    """A syntactically valid bytecode string of exactly *n_bytes* bytes."""
    body = "60" * n_bytes
    return f"0x{body}" if prefix else body


class FakeSubmitter:
    """Scripted TxSubmitter: hands out addresses in order, or raises.

    ``failures`` maps a 0-based call index to the exception to raise on
    that call.
    """

    def __init__(
        self,
        addresses: Sequence[str] | None = None,
        failures: dict[int, Exception] | None = None,
    ) -> None:
        self.addresses = list(addresses or [f"0x{i:040x}" for i in range(1, 11)])
        self.failures = failures or {}
        self.calls: list[dict[str, Any]] = []

    def deploy(
        self,
        bytecode: str,
        constructor_args: Sequence[Any],
        *,
        abi: list[dict[str, Any]] | None = None,
    ) -> DeployReceipt:
        index = len(self.calls)
        self.calls.append(
            {"bytecode": bytecode, "args": list(constructor_args), "abi": abi}
        )
        if index in self.failures:
            raise self.failures[index]
        return DeployReceipt(address=self.addresses[index], tx_hash=f"0x{index + 1:064x}")


@pytest.fixture
def make_artifact() -> Callable[..., Artifact]:
    """Factory fixture: build an Artifact with sized bytecode."""

    def _factory(
        name: str = "Pool",
        deployed_size: int = 100,
        creation_size: int | None = None,
        **overrides: Any,
    ) -> Artifact:
        defaults: dict[str, Any] = {
            "contract_name": name,
            "source_name": f"contracts/{name}.sol",
            "creation_bytecode": hex_code(
                creation_size if creation_size is not None else deployed_size + 32
            ),
            "deployed_bytecode": hex_code(deployed_size),
        }
        defaults.update(overrides)
        return Artifact(**defaults)

    return _factory


@pytest.fixture
def swap_artifacts(make_artifact: Callable[..., Artifact]) -> InMemoryArtifactStore:
    """The three swap pool contracts, all within the size limit."""
    return InMemoryArtifactStore([
        make_artifact("StonerFeePool", 20_000),
        make_artifact("SwapPool", 5_000),
        make_artifact("SwapPoolFactory", 3_000),
    ])


@pytest.fixture
def make_submitter() -> Callable[..., FakeSubmitter]:
    """Factory fixture: build a scripted FakeSubmitter."""
    return FakeSubmitter


@pytest.fixture
def ledger(tmp_path: Path) -> DeploymentLedger:
    """Provide a fresh DeploymentLedger backed by a temp SQLite database."""
    return DeploymentLedger(tmp_path / "deployments.db")


@pytest.fixture
def write_hardhat_artifacts(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture: lay out a Hardhat artifacts directory.

    Takes ``{source_path: {contract_name: (creation_size, deployed_size)}}``
    and returns the artifacts root.
    """

    def _factory(sources: dict[str, dict[str, tuple[int, int]]]) -> Path:
        root = tmp_path / "artifacts"
        for source, contracts in sources.items():
            folder = root / source
            folder.mkdir(parents=True, exist_ok=True)
            for name, (creation, deployed) in contracts.items():
                artifact = {
                    "_format": "hh-sol-artifact-1",
                    "contractName": name,
                    "sourceName": source,
                    "abi": [],
                    "bytecode": hex_code(creation),
                    "deployedBytecode": hex_code(deployed),
                    "linkReferences": {},
                    "deployedLinkReferences": {},
                }
                (folder / f"{name}.json").write_text(json.dumps(artifact))
                (folder / f"{name}.dbg.json").write_text(
                    json.dumps({"_format": "hh-sol-dbg-1", "buildInfo": "x"})
                )
        (root / "build-info").mkdir(parents=True, exist_ok=True)
        (root / "build-info" / "abc123.json").write_text("{}")
        return root

    return _factory
