"""Compiled artifact and size report models (immutable per build)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class Artifact(BaseModel):
    """A compiled contract as produced by the Hardhat toolchain.

    Both bytecode fields are hex strings with an optional ``0x`` prefix.
    Artifacts are read once per build and never modified afterwards.
    """

    model_config = ConfigDict(frozen=True)

    contract_name: str
    source_name: str = ""  # e.g. "contracts/SwapPool.sol"
    creation_bytecode: str = "0x"
    deployed_bytecode: str = "0x"
    abi: list[dict[str, Any]] = []

    @property
    def fully_qualified_name(self) -> str:
        """``source:Name`` when the source is known, else the bare name."""
        if self.source_name:
            return f"{self.source_name}:{self.contract_name}"
        return self.contract_name


class SizeReport(BaseModel):
    """Deployable-size verdict for one artifact against a byte ceiling.

    ``margin_bytes`` is ``limit_bytes - deployed_size_bytes``; a negative
    margin means the runtime code is over budget.
    """

    model_config = ConfigDict(frozen=True)

    contract_name: str
    creation_size_bytes: int
    deployed_size_bytes: int
    limit_bytes: int
    within_limit: bool
    margin_bytes: int

    @property
    def headroom_percent(self) -> float:
        """Unused share of the limit, as a percentage of the limit."""
        if not self.within_limit:
            return 0.0
        return self.margin_bytes / self.limit_bytes * 100

    @property
    def reduction_needed_percent(self) -> float:
        """Share of the deployed code that must go to fit the limit."""
        if self.within_limit:
            return 0.0
        return -self.margin_bytes / self.deployed_size_bytes * 100
