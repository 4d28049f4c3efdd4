"""Contract-creation submitters — the blockchain RPC boundary.

Defines the ``TxSubmitter`` Protocol the executor depends on, the errors
a submitter may report, and two implementations:

1. **Web3Submitter** — signs locally with eth-account and submits through
   a web3.py provider, waiting for the receipt.
2. **DryRunSubmitter** — no network; returns the CREATE address the
   deployer would get at each nonce.

A submitter owns a nonce sequence. Do not share one between concurrent
runs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import rlp
from eth_account import Account
from pydantic import BaseModel, ConfigDict
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

if TYPE_CHECKING:
    from swapforge.config import ForgeSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class SubmissionError(RuntimeError):
    """Raised when a contract-creation transaction is rejected or fails."""


class ConfirmationTimeoutError(SubmissionError):
    """Raised when no receipt arrives within the submitter's timeout."""

    def __init__(self, tx_hash: str, timeout_seconds: float) -> None:
        self.tx_hash = tx_hash
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Transaction {tx_hash} not confirmed within {timeout_seconds:g}s"
        )


class RevertedError(SubmissionError):
    """Raised when the creation transaction is mined but reverted."""

    def __init__(self, tx_hash: str) -> None:
        self.tx_hash = tx_hash
        super().__init__(f"Contract creation reverted in transaction {tx_hash}")


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class DeployReceipt(BaseModel):
    """Address and transaction hash of a confirmed contract creation."""

    model_config = ConfigDict(frozen=True)

    address: str
    tx_hash: str


@runtime_checkable
class TxSubmitter(Protocol):
    """Protocol for contract-creation backends.

    ``deploy`` blocks until the creation is confirmed and returns its
    receipt, or raises a ``SubmissionError`` subclass. Implementations own
    their own submission and confirmation timeouts.
    """

    def deploy(
        self,
        bytecode: str,
        constructor_args: Sequence[Any],
        *,
        abi: list[dict[str, Any]] | None = None,
    ) -> DeployReceipt:
        ...


# ---------------------------------------------------------------------------
# Implementations
# ---------------------------------------------------------------------------


class Web3Submitter:
    """Submit contract creations through a web3.py provider.

    Parameters
    ----------
    w3:
        A connected ``Web3`` instance.
    private_key:
        Hex private key of the deployer. Signing happens locally.
    chain_id:
        Expected chain id. Checked against the node before the first
        submission and embedded in every transaction.
    timeout_seconds:
        Maximum wait for a receipt.
    poll_latency:
        Seconds between receipt polls.
    """

    def __init__(
        self,
        w3: Web3,
        private_key: str,
        *,
        chain_id: int | None = None,
        timeout_seconds: float = 120.0,
        poll_latency: float = 2.0,
    ) -> None:
        self.w3 = w3
        self._account = Account.from_key(private_key)
        self.chain_id = chain_id
        self.timeout_seconds = timeout_seconds
        self.poll_latency = poll_latency
        self._nonce: int | None = None

    @classmethod
    def from_settings(cls, settings: ForgeSettings) -> Web3Submitter:
        """Build a submitter for the network configured in *settings*."""
        key = settings.private_key.get_secret_value()
        if not key:
            raise SubmissionError(
                "No deployer key configured; set SWAPFORGE_PRIVATE_KEY"
            )
        w3 = Web3(Web3.HTTPProvider(settings.rpc_url))
        try:
            return cls(
                w3,
                key,
                chain_id=settings.chain_id,
                timeout_seconds=settings.confirmation_timeout_seconds,
                poll_latency=settings.poll_latency_seconds,
            )
        except ValueError as exc:
            raise SubmissionError(f"Invalid deployer key: {exc}") from exc

    @property
    def deployer(self) -> str:
        return self._account.address

    def _next_nonce(self) -> int:
        """Nonce for the next creation. Only a successful send consumes it."""
        if self._nonce is None:
            if self.chain_id is not None:
                node_chain_id = self.w3.eth.chain_id
                if node_chain_id != self.chain_id:
                    raise SubmissionError(
                        f"RPC endpoint is on chain {node_chain_id}, "
                        f"expected {self.chain_id}"
                    )
            self._nonce = self.w3.eth.get_transaction_count(self.deployer, "pending")
        return self._nonce

    def deploy(
        self,
        bytecode: str,
        constructor_args: Sequence[Any],
        *,
        abi: list[dict[str, Any]] | None = None,
    ) -> DeployReceipt:
        """Build, sign, send and confirm one contract creation."""
        try:
            nonce = self._next_nonce()
            contract = self.w3.eth.contract(abi=abi or [], bytecode=bytecode)
            tx_params: dict[str, Any] = {"from": self.deployer, "nonce": nonce}
            if self.chain_id is not None:
                tx_params["chainId"] = self.chain_id
            tx = contract.constructor(*constructor_args).build_transaction(tx_params)
            signed = self._account.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
            self._nonce = nonce + 1
        except SubmissionError:
            raise
        except ContractLogicError as exc:
            # estimate_gas runs the constructor; a revert surfaces here
            raise SubmissionError(f"Constructor reverted during gas estimation: {exc}") from exc
        except (Web3Exception, ValueError, OSError) as exc:
            raise SubmissionError(f"Submission rejected: {exc}") from exc

        tx_hex = Web3.to_hex(tx_hash)
        logger.info("Sent creation tx %s (nonce %d)", tx_hex, nonce)

        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.timeout_seconds, poll_latency=self.poll_latency
            )
        except TimeExhausted as exc:
            raise ConfirmationTimeoutError(tx_hex, self.timeout_seconds) from exc
        except (Web3Exception, ValueError, OSError) as exc:
            raise SubmissionError(f"Lost track of {tx_hex}: {exc}") from exc

        if receipt["status"] != 1:
            raise RevertedError(tx_hex)

        address = receipt["contractAddress"]
        if not address:
            raise SubmissionError(f"Receipt for {tx_hex} carries no contract address")
        return DeployReceipt(address=Web3.to_checksum_address(address), tx_hash=tx_hex)


class DryRunSubmitter:
    """Offline submitter that predicts CREATE addresses.

    Addresses are ``keccak(rlp([deployer, nonce]))[12:]``, exactly what the
    deployer would get on-chain at those nonces. Every call is kept in
    ``calls`` for inspection.
    """

    def __init__(
        self,
        deployer: str = "0x0000000000000000000000000000000000000001",
        *,
        start_nonce: int = 0,
    ) -> None:
        self.deployer = Web3.to_checksum_address(deployer)
        self._nonce = start_nonce
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def predict_address(self, nonce: int) -> str:
        encoded = rlp.encode([bytes.fromhex(self.deployer[2:]), nonce])
        return Web3.to_checksum_address(Web3.keccak(encoded)[12:])

    def deploy(
        self,
        bytecode: str,
        constructor_args: Sequence[Any],
        *,
        abi: list[dict[str, Any]] | None = None,
    ) -> DeployReceipt:
        nonce = self._nonce
        self._nonce += 1
        self.calls.append((bytecode, tuple(constructor_args)))
        tx_hash = Web3.to_hex(Web3.keccak(text=f"{self.deployer}:{nonce}:{bytecode}"))
        return DeployReceipt(address=self.predict_address(nonce), tx_hash=tx_hash)
