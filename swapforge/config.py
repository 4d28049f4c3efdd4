"""Deployment configuration — env-driven.

Centralized settings using pydantic-settings. Reads from a .env file and
SWAPFORGE_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ForgeSettings(BaseSettings):
    """Build and deploy settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SWAPFORGE_RPC_URL=http://127.0.0.1:8545
        export SWAPFORGE_CHAIN_ID=31337
        export SWAPFORGE_PRIVATE_KEY=0x...

    Or via .env file::

        SWAPFORGE_NETWORK_NAME=sonic
        SWAPFORGE_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SWAPFORGE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Hardhat project
    project_root: Path = Path(".")
    artifacts_path: Path = Path("artifacts")  # relative to project_root
    compile_command: str = "npx hardhat compile"

    # Size gate
    size_limit_bytes: int = 24_576  # EIP-170 runtime code ceiling
    size_check_contract: str = "SwapPoolNative"
    compile_check_contracts: list[str] = ["SwapPoolNative", "StonerFeePool"]

    # Compiler settings, as configured in hardhat.config.js (reported only)
    solc_version: str = "0.8.19"
    optimizer_runs: int = 1
    via_ir: bool = True
    evm_version: str = "london"

    # Network
    network_name: str = "sonic"
    rpc_url: str = "https://rpc.soniclabs.com/"
    chain_id: int = 146
    private_key: SecretStr = SecretStr("")
    confirmation_timeout_seconds: float = 120.0
    poll_latency_seconds: float = 2.0

    # Deployment constants
    fee_token: str = "0xC046dCb16592FBb3F9fA0C629b8D93090dD4cB76"  # $JOINT
    stoner_nft: str = "0x9b567e03d891F537b2B7874aA4A3308Cfe2F4FBb"  # $STONER

    # Persistence
    ledger_path: Path = Path(".swapforge/deployments.db")
    manifest_dir: Path = Path("deployments")

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    @property
    def resolved_artifacts_path(self) -> Path:
        """Artifacts directory, anchored at the project root if relative."""
        if self.artifacts_path.is_absolute():
            return self.artifacts_path
        return self.project_root / self.artifacts_path


# Module-level singleton: import as `from swapforge.config import config`
config = ForgeSettings()
