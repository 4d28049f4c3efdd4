"""Read-only access to compiled contract artifacts, keyed by contract name.

Hardhat layout: {artifacts}/contracts/<path>/<File>.sol/<Name>.json, with a
``<Name>.dbg.json`` sibling and a ``build-info/`` directory that are not
artifacts. There is no write method — artifacts are produced by the
compiler and immutable for the rest of the build.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from swapforge.models.artifacts import Artifact

logger = logging.getLogger(__name__)


class ArtifactNotFoundError(LookupError):
    """Raised when no compiled artifact exists for a contract name."""

    def __init__(self, contract_name: str, hint: str = "") -> None:
        self.contract_name = contract_name
        message = f"Artifact not found: {contract_name}"
        if hint:
            message = f"{message} ({hint})"
        super().__init__(message)


class AmbiguousArtifactError(LookupError):
    """Raised when a bare contract name matches several source files."""

    def __init__(self, contract_name: str, candidates: list[str]) -> None:
        self.contract_name = contract_name
        self.candidates = candidates
        super().__init__(
            f"Contract name {contract_name!r} is ambiguous; use one of: "
            + ", ".join(candidates)
        )


class MalformedArtifactError(ValueError):
    """Raised when an artifact file or one of its fields cannot be used."""

    def __init__(self, contract_name: str, field: str, reason: str) -> None:
        self.contract_name = contract_name
        self.field = field
        self.reason = reason
        super().__init__(f"{contract_name}.{field}: {reason}")


@runtime_checkable
class ArtifactStore(Protocol):
    """Anything that can hand out compiled artifacts by contract name."""

    def read_artifact(self, name: str) -> Artifact:
        """Return the artifact for *name* or raise ``ArtifactNotFoundError``."""
        ...

    def list_names(self) -> list[str]:
        """Return the contract names available in this store."""
        ...


class InMemoryArtifactStore:
    """Dict-backed store, for tests and dry runs.

    Parameters
    ----------
    artifacts:
        Either a mapping of name -> Artifact, or an iterable of Artifacts
        keyed by their ``contract_name``.
    """

    def __init__(self, artifacts: Mapping[str, Artifact] | list[Artifact]) -> None:
        if isinstance(artifacts, Mapping):
            self._artifacts = dict(artifacts)
        else:
            self._artifacts = {a.contract_name: a for a in artifacts}

    def read_artifact(self, name: str) -> Artifact:
        try:
            return self._artifacts[name]
        except KeyError:
            raise ArtifactNotFoundError(name) from None

    def list_names(self) -> list[str]:
        return sorted(self._artifacts)


class HardhatArtifactStore:
    """Artifact store over a Hardhat ``artifacts/`` directory.

    The directory is indexed lazily on first lookup; each artifact file is
    parsed at most once.

    Parameters
    ----------
    artifacts_dir:
        The Hardhat artifacts root (the directory containing ``contracts/``
        and ``build-info/``).
    """

    def __init__(self, artifacts_dir: Path) -> None:
        self._base = Path(artifacts_dir)
        self._index: dict[str, list[Path]] | None = None
        self._cache: dict[Path, Artifact] = {}

    @property
    def base_path(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    def _build_index(self) -> dict[str, list[Path]]:
        index: dict[str, list[Path]] = {}
        if not self._base.is_dir():
            return index
        for path in sorted(self._base.rglob("*.json")):
            relative = path.relative_to(self._base)
            if relative.parts[0] == "build-info" or path.name.endswith(".dbg.json"):
                continue
            # only <source>.sol/<Name>.json files are artifacts
            if len(relative.parts) < 2 or not relative.parts[-2].endswith(".sol"):
                continue
            index.setdefault(path.stem, []).append(path)
        logger.debug("Indexed %d contract names under %s", len(index), self._base)
        return index

    def _get_index(self) -> dict[str, list[Path]]:
        if self._index is None:
            self._index = self._build_index()
        return self._index

    def _source_name(self, path: Path) -> str:
        # artifacts/contracts/pools/SwapPool.sol/SwapPool.json -> contracts/pools/SwapPool.sol
        return path.parent.relative_to(self._base).as_posix()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _resolve_path(self, name: str) -> Path:
        if not self._base.is_dir():
            raise ArtifactNotFoundError(
                name, f"no artifacts directory at {self._base}; compile first"
            )

        if ":" in name:
            source, _, contract = name.rpartition(":")
            path = self._base / source / f"{contract}.json"
            if not path.is_file():
                raise ArtifactNotFoundError(name)
            return path

        candidates = self._get_index().get(name, [])
        if not candidates:
            raise ArtifactNotFoundError(name)
        if len(candidates) > 1:
            raise AmbiguousArtifactError(
                name, [f"{self._source_name(p)}:{name}" for p in candidates]
            )
        return candidates[0]

    def read_artifact(self, name: str) -> Artifact:
        """Load the artifact for a bare or fully qualified contract name."""
        path = self._resolve_path(name)
        if path not in self._cache:
            self._cache[path] = self._load(path)
        return self._cache[path]

    def list_names(self) -> list[str]:
        return sorted(self._get_index())

    def _load(self, path: Path) -> Artifact:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise MalformedArtifactError(path.stem, path.name, f"invalid JSON ({exc})") from exc
        if not isinstance(data, dict):
            raise MalformedArtifactError(path.stem, path.name, "not a JSON object")

        try:
            artifact = Artifact(
                contract_name=data.get("contractName") or path.stem,
                source_name=data.get("sourceName") or self._source_name(path),
                creation_bytecode=data.get("bytecode") or "0x",
                deployed_bytecode=data.get("deployedBytecode") or "0x",
                abi=data.get("abi") or [],
            )
        except ValidationError as exc:
            raise MalformedArtifactError(
                path.stem, path.name, f"unexpected field types ({exc.error_count()} error(s))"
            ) from exc
        logger.debug("Loaded artifact %s from %s", artifact.contract_name, path)
        return artifact
