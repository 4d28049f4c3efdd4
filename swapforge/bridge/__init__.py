"""Bridges to external collaborators (blockchain RPC)."""

from swapforge.bridge.submitter import (
    ConfirmationTimeoutError,
    DeployReceipt,
    DryRunSubmitter,
    RevertedError,
    SubmissionError,
    TxSubmitter,
    Web3Submitter,
)

__all__ = [
    "TxSubmitter",
    "DeployReceipt",
    "SubmissionError",
    "ConfirmationTimeoutError",
    "RevertedError",
    "Web3Submitter",
    "DryRunSubmitter",
]
