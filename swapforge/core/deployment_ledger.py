"""Append-only, hash-chained deployment ledger backed by SQLite.

Every confirmed deployment step is written here as soon as its receipt
arrives. A run that aborts halfway therefore still leaves a durable,
tamper-evident trace of the contracts it did create.

Design:
- Append-only: only `append()` writes; no update, no delete.
- Hash-chained per run: each entry includes the SHA-256 of the previous one.
- One short-lived connection per call, always closed; WAL journal mode.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any

from swapforge.core.hasher import compute_entry_hash
from swapforge.models.ledger import LedgerEntry

# Column order shared by INSERT and SELECT; names match LedgerEntry fields.
_FIELDS = (
    "entry_id",
    "run_id",
    "step_index",
    "step_name",
    "contract_name",
    "deployed_address",
    "tx_hash",
    "constructor_args",
    "bytecode_digest",
    "plan_fingerprint",
    "timestamp_utc",
    "previous_entry_hash",
    "entry_hash",
)
_COLUMNS = ", ".join(_FIELDS)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS deployments (
        id                  INTEGER PRIMARY KEY AUTOINCREMENT,
        entry_id            TEXT NOT NULL UNIQUE,
        run_id              TEXT NOT NULL,
        step_index          INTEGER NOT NULL,
        step_name           TEXT NOT NULL,
        contract_name       TEXT NOT NULL,
        deployed_address    TEXT NOT NULL,
        tx_hash             TEXT NOT NULL,
        constructor_args    TEXT NOT NULL DEFAULT '[]',  -- JSON array
        bytecode_digest     TEXT NOT NULL DEFAULT '',
        plan_fingerprint    TEXT NOT NULL DEFAULT '',
        timestamp_utc       TEXT NOT NULL,
        previous_entry_hash TEXT NOT NULL DEFAULT '',
        entry_hash          TEXT NOT NULL UNIQUE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_deployments_run ON deployments(run_id, id)",
)


class LedgerIntegrityError(RuntimeError):
    """Raised when a run's hash chain does not verify."""


class LedgerWriteError(RuntimeError):
    """Raised when an entry cannot be written to the ledger database."""


class DeploymentLedger:
    """Durable record of deployed contracts, one hash chain per run.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Parent directories are created.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._transaction() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    @property
    def db_path(self) -> Path:
        return self._db_path

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, and always close it."""
        with closing(sqlite3.connect(str(self._db_path))) as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            with conn:
                yield conn

    def _fetch(self, sql: str, params: tuple[Any, ...] = ()) -> list[tuple]:
        with self._transaction() as conn:
            return conn.execute(sql, params).fetchall()

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def append(self, entry: LedgerEntry) -> LedgerEntry:
        """Seal *entry* onto the end of its run's chain and store it.

        Returns the sealed copy. Raises LedgerWriteError if the database
        rejects the write; nothing is stored in that case.
        """
        try:
            with self._transaction() as conn:
                row = conn.execute(
                    "SELECT entry_hash FROM deployments "
                    "WHERE run_id = ? ORDER BY id DESC LIMIT 1",
                    (entry.run_id,),
                ).fetchone()
                previous_hash = row[0] if row else ""

                unsealed = entry.model_copy(
                    update={"previous_entry_hash": previous_hash, "entry_hash": ""}
                )
                sealed = unsealed.model_copy(
                    update={"entry_hash": compute_entry_hash(unsealed.model_dump(mode="json"))}
                )
                placeholders = ", ".join("?" for _ in _FIELDS)
                conn.execute(
                    f"INSERT INTO deployments ({_COLUMNS}) VALUES ({placeholders})",
                    self._entry_to_row(sealed),
                )
        except sqlite3.Error as exc:
            raise LedgerWriteError(
                f"Cannot record {entry.step_name} of run {entry.run_id} "
                f"in {self._db_path}: {exc}"
            ) from exc
        return sealed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_latest(self, run_id: str) -> LedgerEntry | None:
        """Return the most recent entry for a run, or None."""
        rows = self._fetch(
            f"SELECT {_COLUMNS} FROM deployments WHERE run_id = ? ORDER BY id DESC LIMIT 1",
            (run_id,),
        )
        return self._row_to_entry(rows[0]) if rows else None

    def get_run_entries(self, run_id: str) -> list[LedgerEntry]:
        """Return all entries for a run, in the order they were deployed."""
        rows = self._fetch(
            f"SELECT {_COLUMNS} FROM deployments WHERE run_id = ? ORDER BY id ASC",
            (run_id,),
        )
        return [self._row_to_entry(row) for row in rows]

    def get_all_run_ids(self) -> list[str]:
        """Return all distinct run ids, most recently written first."""
        rows = self._fetch(
            "SELECT run_id FROM deployments GROUP BY run_id ORDER BY MAX(id) DESC"
        )
        return [row[0] for row in rows]

    def verify_chain(self, run_id: str) -> bool:
        """Check every link and seal of a run's chain.

        Returns True for an intact (or empty) chain; raises
        LedgerIntegrityError at the first bad entry.
        """
        expected_previous = ""
        for entry in self.get_run_entries(run_id):
            if entry.previous_entry_hash != expected_previous:
                raise LedgerIntegrityError(
                    f"Chain broken at {entry.step_name} ({entry.entry_id}): "
                    f"links to {entry.previous_entry_hash!r}, "
                    f"expected {expected_previous!r}"
                )
            seal = compute_entry_hash(entry.model_dump(mode="json"))
            if entry.entry_hash != seal:
                raise LedgerIntegrityError(
                    f"Tampered entry {entry.step_name} ({entry.entry_id}): "
                    f"stored hash {entry.entry_hash!r} does not match {seal!r}"
                )
            expected_previous = entry.entry_hash
        return True

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _entry_to_row(entry: LedgerEntry) -> tuple[Any, ...]:
        data = entry.model_dump(mode="json")
        data["constructor_args"] = json.dumps(data["constructor_args"])
        return tuple(data[field] for field in _FIELDS)

    @staticmethod
    def _row_to_entry(row: tuple) -> LedgerEntry:
        data = dict(zip(_FIELDS, row))
        data["constructor_args"] = json.loads(data["constructor_args"])
        return LedgerEntry(**data)
