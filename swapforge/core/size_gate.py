"""Deployable-size gate for compiled artifacts.

Size is measured on the hex encoding: byte length is the number of hex
digits after an optional ``0x`` prefix, divided by two. The ceiling is a
parameter; ``EIP170_LIMIT_BYTES`` is the runtime-code limit enforced by
EVM chains since Spurious Dragon.

The gate only reports. Whether a failing report blocks a deployment is
the caller's decision.
"""

from __future__ import annotations

import re

from swapforge.core.artifact_store import MalformedArtifactError
from swapforge.models.artifacts import Artifact, SizeReport

EIP170_LIMIT_BYTES = 24_576

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")
_LINK_PLACEHOLDER = re.compile(r"__\$[0-9a-fA-F]{34}\$__")


def hex_byte_length(value: str, *, field: str, contract_name: str = "") -> int:
    """Return the byte length encoded by a hex string.

    Raises ``MalformedArtifactError`` naming *field* if the value is not
    an even-length hex string (after stripping an optional prefix).
    """
    digits = value[2:] if value[:2] in ("0x", "0X") else value

    if not _HEX_DIGITS.fullmatch(digits):
        if _LINK_PLACEHOLDER.search(digits):
            reason = "contains unlinked library placeholders; link libraries first"
        else:
            reason = "not a hex string"
        raise MalformedArtifactError(contract_name, field, reason)

    if len(digits) % 2:
        raise MalformedArtifactError(
            contract_name, field, f"odd number of hex digits ({len(digits)})"
        )

    return len(digits) // 2


def evaluate(artifact: Artifact, limit_bytes: int = EIP170_LIMIT_BYTES) -> SizeReport:
    """Measure *artifact* against *limit_bytes* (inclusive).

    Pure function of its inputs. An empty deployed bytecode (abstract or
    interface contract) is within any limit.
    """
    if limit_bytes <= 0:
        raise ValueError(f"limit_bytes must be positive, got {limit_bytes}")

    name = artifact.contract_name
    creation_size = hex_byte_length(
        artifact.creation_bytecode, field="creation_bytecode", contract_name=name
    )
    deployed_size = hex_byte_length(
        artifact.deployed_bytecode, field="deployed_bytecode", contract_name=name
    )

    return SizeReport(
        contract_name=name,
        creation_size_bytes=creation_size,
        deployed_size_bytes=deployed_size,
        limit_bytes=limit_bytes,
        within_limit=deployed_size <= limit_bytes,
        margin_bytes=limit_bytes - deployed_size,
    )
