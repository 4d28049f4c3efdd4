"""Tests for the DeploymentLedger — append-only, hash-chained, tamper-evident."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from unittest.mock import patch

import pytest

from swapforge.core.deployment_ledger import (
    DeploymentLedger,
    LedgerIntegrityError,
    LedgerWriteError,
)
from swapforge.models.ledger import LedgerEntry


def _entry(run_id: str = "run-1", index: int = 0, **overrides) -> LedgerEntry:
    fields = dict(
        run_id=run_id,
        step_index=index,
        step_name=f"step{index}",
        contract_name="SwapPool",
        deployed_address=f"0x{index + 1:040x}",
        tx_hash=f"0x{index + 1:064x}",
    )
    fields.update(overrides)
    return LedgerEntry(**fields)


class TestDeploymentLedger:
    def test_append_sets_entry_hash(self, ledger: DeploymentLedger):
        sealed = ledger.append(_entry())
        assert sealed.entry_hash != ""
        assert sealed.previous_entry_hash == ""  # first entry

    def test_hash_chain_links(self, ledger: DeploymentLedger):
        e1 = ledger.append(_entry(index=0))
        e2 = ledger.append(_entry(index=1))
        assert e2.previous_entry_hash == e1.entry_hash

    def test_chains_are_per_run(self, ledger: DeploymentLedger):
        ledger.append(_entry("run-1"))
        first_of_run_2 = ledger.append(_entry("run-2"))
        assert first_of_run_2.previous_entry_hash == ""

    def test_round_trips_constructor_args(self, ledger: DeploymentLedger):
        args = ["0x00000000000000000000000000000000000000a2", 3, True]
        ledger.append(_entry(constructor_args=args, bytecode_digest="sha256:ab"))
        stored = ledger.get_run_entries("run-1")[0]
        assert stored.constructor_args == args
        assert stored.bytecode_digest == "sha256:ab"

    def test_verify_chain_valid(self, ledger: DeploymentLedger):
        ledger.append(_entry(index=0))
        ledger.append(_entry(index=1))
        ledger.append(_entry(index=2))
        assert ledger.verify_chain("run-1") is True

    def test_verify_chain_empty(self, ledger: DeploymentLedger):
        assert ledger.verify_chain("nonexistent") is True

    def test_tampered_address_detected(self, ledger: DeploymentLedger, tmp_path: Path):
        ledger.append(_entry(index=0))
        ledger.append(_entry(index=1))
        with sqlite3.connect(tmp_path / "deployments.db") as conn:
            conn.execute(
                "UPDATE deployments SET deployed_address = ? WHERE step_index = 0",
                ("0x" + "ee" * 20,),
            )
        with pytest.raises(LedgerIntegrityError, match="Tampered"):
            ledger.verify_chain("run-1")

    def test_get_latest(self, ledger: DeploymentLedger):
        ledger.append(_entry(index=0))
        e2 = ledger.append(_entry(index=1))
        latest = ledger.get_latest("run-1")
        assert latest is not None
        assert latest.entry_id == e2.entry_id
        assert ledger.get_latest("missing") is None

    def test_get_run_entries_in_deploy_order(self, ledger: DeploymentLedger):
        ledger.append(_entry("run-1", 0))
        ledger.append(_entry("run-2", 0))
        ledger.append(_entry("run-1", 1))
        entries = ledger.get_run_entries("run-1")
        assert [e.step_name for e in entries] == ["step0", "step1"]

    def test_get_all_run_ids_most_recent_first(self, ledger: DeploymentLedger):
        ledger.append(_entry("run-1"))
        ledger.append(_entry("run-2"))
        ledger.append(_entry("run-1", 1))
        assert ledger.get_all_run_ids() == ["run-1", "run-2"]

    def test_entry_id_unique(self, ledger: DeploymentLedger):
        e1 = ledger.append(_entry(index=0))
        e2 = ledger.append(_entry(index=1))
        assert e1.entry_id != e2.entry_id

    def test_creates_parent_directory(self, tmp_path: Path):
        db_path = tmp_path / "nested" / "dir" / "ledger.db"
        DeploymentLedger(db_path).append(_entry())
        assert db_path.exists()

    def test_rejected_write_raises_ledger_write_error(self, ledger: DeploymentLedger):
        first = ledger.append(_entry(index=0))
        duplicate = _entry(index=1, entry_id=first.entry_id)
        with pytest.raises(LedgerWriteError, match="step1"):
            ledger.append(duplicate)
        # The failed write leaves the chain as it was
        assert [e.step_name for e in ledger.get_run_entries("run-1")] == ["step0"]
        assert ledger.verify_chain("run-1") is True

    def test_connections_are_closed(self, tmp_path: Path):
        opened: list[sqlite3.Connection] = []
        real_connect = sqlite3.connect

        def _tracking_connect(*args, **kwargs):
            conn = real_connect(*args, **kwargs)
            opened.append(conn)
            return conn

        with patch("swapforge.core.deployment_ledger.sqlite3.connect", _tracking_connect):
            ledger = DeploymentLedger(tmp_path / "ledger.db")
            ledger.append(_entry())
            ledger.get_run_entries("run-1")
            ledger.verify_chain("run-1")

        assert opened
        for conn in opened:
            with pytest.raises(sqlite3.ProgrammingError):
                conn.execute("SELECT 1")
