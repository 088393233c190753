"""Unit tests for config loading, env interpolation, and validation."""
from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from eth2x.config import (
    AccessConfig,
    AppConfig,
    AssetConfig,
    AssetsConfig,
    KeeperConfig,
    LendingMarketConfig,
    PriceOracleConfig,
    SwapVenueConfig,
    VaultConfig,
    _interpolate_env,
    load_config,
    validate,
)
from eth2x.fixed_point import WAD


class TestInterpolateEnv:
    def test_simple_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VAR", "hello")
        assert _interpolate_env("${MY_VAR}") == "hello"

    def test_missing_var_becomes_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR_XYZ", raising=False)
        assert _interpolate_env("${NONEXISTENT_VAR_XYZ}") == ""

    def test_nested_dict(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOK", "secret")
        result = _interpolate_env({"key": "${TOK}", "plain": "text"})
        assert result == {"key": "secret", "plain": "text"}

    def test_nested_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("A", "x")
        assert _interpolate_env(["${A}", "y"]) == ["x", "y"]

    def test_non_string_passthrough(self) -> None:
        assert _interpolate_env(42) == 42
        assert _interpolate_env(True) is True


class TestLoadConfig:
    def test_loads_valid_yaml(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.vault.target_ratio == 2 * WAD
        assert cfg.vault.rebalance_tolerance == WAD // 100
        assert cfg.assets.quote == AssetConfig("USDC", 6)
        assert cfg.swap_venue.fee_tier == 3000
        assert cfg.vault.withdraw_health_buffer_bps == 100
        assert cfg.price_oracle.static.prices == {"WETH": 2500 * WAD + WAD // 2}
        assert cfg.access.allowlist == ("0xALICE",)
        assert cfg.keeper.lower_bound == 19 * WAD // 10
        assert cfg.simulation.initial_deposit == 25 * WAD // 10
        assert cfg.notifications.telegram.chat_id == "999"

    def test_simulation_liquidity_defaults_use_asset_decimals(
        self, sample_yaml_path: Path
    ) -> None:
        cfg = load_config(sample_yaml_path)
        assert cfg.simulation.market_liquidity == 100_000_000 * 10**6
        assert cfg.simulation.swap_reference_liquidity == 100_000 * WAD

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")

    def test_minimal_yaml_uses_defaults(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text('price_oracle:\n  static:\n    prices: {WETH: "2000"}\n')
        cfg = load_config(cfg_file)
        assert cfg.vault == VaultConfig()
        assert cfg.lending_market == LendingMarketConfig()
        assert cfg.access.mode == "open"

    def test_env_interpolation_in_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TEST_VAULT", "0xABCDEF")
        monkeypatch.setenv("TEST_FEED", "ff61491a")
        yaml_content = """\
vault:
  address: "${TEST_VAULT}"
price_oracle:
  provider: pyth
  pyth:
    feeds: {WETH: "${TEST_FEED}"}
"""
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text(yaml_content)
        cfg = load_config(cfg_file)
        assert cfg.vault.address == "0xABCDEF"
        assert cfg.price_oracle.pyth.feeds == {"WETH": "ff61491a"}


@pytest.fixture()
def valid_config() -> AppConfig:
    return AppConfig(
        price_oracle=PriceOracleConfig(
            static=replace(PriceOracleConfig().static, prices={"WETH": 2000 * WAD})
        )
    )


class TestValidation:
    def test_valid_config_passes(self, valid_config: AppConfig) -> None:
        validate(valid_config)

    def test_target_ratio_must_exceed_one(self, valid_config: AppConfig) -> None:
        cfg = replace(valid_config, vault=VaultConfig(target_ratio=WAD))
        with pytest.raises(ValueError, match="Target ratio"):
            validate(cfg)

    def test_empty_vault_address(self, valid_config: AppConfig) -> None:
        cfg = replace(valid_config, vault=VaultConfig(address=""))
        with pytest.raises(ValueError, match="Vault address"):
            validate(cfg)

    @pytest.mark.parametrize(
        "field_name", ["redeem_haircut_bps", "swap_slippage_bps", "withdraw_health_buffer_bps"]
    )
    def test_bps_out_of_range(self, valid_config: AppConfig, field_name: str) -> None:
        cfg = replace(valid_config, vault=replace(VaultConfig(), **{field_name: 10_000}))
        with pytest.raises(ValueError, match=field_name):
            validate(cfg)

    def test_fee_tier_out_of_range(self, valid_config: AppConfig) -> None:
        cfg = replace(valid_config, swap_venue=SwapVenueConfig(fee_tier=1_000_000))
        with pytest.raises(ValueError, match="fee_tier"):
            validate(cfg)

    def test_zero_iterations(self, valid_config: AppConfig) -> None:
        cfg = replace(valid_config, vault=VaultConfig(max_rebalance_iterations=0))
        with pytest.raises(ValueError, match="max_rebalance_iterations"):
            validate(cfg)

    def test_same_assets(self, valid_config: AppConfig) -> None:
        cfg = replace(
            valid_config,
            assets=AssetsConfig(reference=AssetConfig("WETH", 18), quote=AssetConfig("WETH", 18)),
        )
        with pytest.raises(ValueError, match="must differ"):
            validate(cfg)

    def test_ltv_above_liquidation_threshold(self, valid_config: AppConfig) -> None:
        cfg = replace(
            valid_config,
            lending_market=LendingMarketConfig(ltv_bps=9000, liquidation_threshold_bps=8300),
        )
        with pytest.raises(ValueError, match="ltv_bps"):
            validate(cfg)

    def test_unknown_oracle_provider(self, valid_config: AppConfig) -> None:
        cfg = replace(
            valid_config, price_oracle=replace(valid_config.price_oracle, provider="chainlink")
        )
        with pytest.raises(ValueError, match="Unknown price oracle provider"):
            validate(cfg)

    def test_pyth_without_reference_feed(self, valid_config: AppConfig) -> None:
        cfg = replace(valid_config, price_oracle=PriceOracleConfig(provider="pyth"))
        with pytest.raises(ValueError, match="No Pyth feed configured for 'WETH'"):
            validate(cfg)

    def test_static_without_reference_price(self) -> None:
        with pytest.raises(ValueError, match="No static price configured for 'WETH'"):
            validate(AppConfig())

    def test_unknown_access_mode(self, valid_config: AppConfig) -> None:
        cfg = replace(valid_config, access=AccessConfig(mode="owner"))
        with pytest.raises(ValueError, match="Unknown access mode"):
            validate(cfg)

    def test_empty_allowlist(self, valid_config: AppConfig) -> None:
        cfg = replace(valid_config, access=AccessConfig(mode="allowlist"))
        with pytest.raises(ValueError, match="at least one address"):
            validate(cfg)

    def test_keeper_band_must_bracket_target(self, valid_config: AppConfig) -> None:
        cfg = replace(
            valid_config, keeper=KeeperConfig(lower_bound=21 * WAD // 10, upper_bound=3 * WAD)
        )
        with pytest.raises(ValueError, match="bracket the target"):
            validate(cfg)


class TestFrozenConfigs:
    def test_vault_config_immutable(self) -> None:
        v = VaultConfig()
        with pytest.raises(AttributeError):
            v.target_ratio = 3 * WAD  # type: ignore[misc]

    def test_keeper_config_immutable(self) -> None:
        k = KeeperConfig()
        with pytest.raises(AttributeError):
            k.caller = "0xOTHER"  # type: ignore[misc]
