"""Deployment ledger entry model (append-only, hash-chained).

One entry is written per confirmed deployment step, as soon as the
receipt arrives, so that partial progress survives an aborted run.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LedgerEntry(BaseModel):
    """A single persisted deployment record."""

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    run_id: str
    step_index: int
    step_name: str
    contract_name: str
    deployed_address: str
    tx_hash: str
    constructor_args: list[Any] = []
    bytecode_digest: str = ""  # "sha256:<hex>" of the creation bytecode
    plan_fingerprint: str = ""
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    previous_entry_hash: str = ""  # SHA-256 of previous entry's canonical bytes
    entry_hash: str = ""  # computed on append, seals this entry
