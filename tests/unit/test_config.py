"""Tests for deployment config — env-driven settings."""

from __future__ import annotations

from pathlib import Path

from swapforge.config import ForgeSettings


class TestForgeSettings:
    def test_defaults(self):
        settings = ForgeSettings()
        assert settings.environment == "development"
        assert settings.size_limit_bytes == 24_576
        assert settings.size_check_contract == "SwapPoolNative"
        assert settings.compile_check_contracts == ["SwapPoolNative", "StonerFeePool"]

    def test_network_defaults(self):
        settings = ForgeSettings()
        assert settings.network_name == "sonic"
        assert settings.chain_id == 146
        assert settings.rpc_url == "https://rpc.soniclabs.com/"

    def test_compiler_defaults(self):
        settings = ForgeSettings()
        assert settings.solc_version == "0.8.19"
        assert settings.optimizer_runs == 1
        assert settings.via_ir is True
        assert settings.evm_version == "london"

    def test_private_key_is_secret(self):
        settings = ForgeSettings(private_key="0xabc")
        assert "0xabc" not in repr(settings)
        assert settings.private_key.get_secret_value() == "0xabc"

    def test_is_production_when_set(self):
        assert ForgeSettings().is_production is False
        assert ForgeSettings(environment="production").is_production is True

    def test_default_paths(self):
        settings = ForgeSettings()
        assert settings.ledger_path == Path(".swapforge/deployments.db")
        assert settings.manifest_dir == Path("deployments")

    def test_resolved_artifacts_path_relative(self, tmp_path: Path):
        settings = ForgeSettings(project_root=tmp_path)
        assert settings.resolved_artifacts_path == tmp_path / "artifacts"

    def test_resolved_artifacts_path_absolute(self, tmp_path: Path):
        settings = ForgeSettings(project_root=Path("elsewhere"), artifacts_path=tmp_path)
        assert settings.resolved_artifacts_path == tmp_path

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SWAPFORGE_CHAIN_ID", "31337")
        monkeypatch.setenv("SWAPFORGE_SIZE_LIMIT_BYTES", "49152")
        settings = ForgeSettings()
        assert settings.chain_id == 31337
        assert settings.size_limit_bytes == 49_152
