"""
Configuration & Result Types Unit Tests
=======================================
"""

import pytest

from pumpfleet.config.infrastructure import AppConfig, DistributionConfig, TradeConfig
from pumpfleet.config.settings import Settings
from pumpfleet.shared.errors import (
    HoldingAccountMissing,
    InvalidInput,
    MarketDataUnavailable,
    RetriesExhausted,
    TransactionFailed,
)
from pumpfleet.shared.execution.execution_result import (
    ErrorCode,
    ExecutionStatus,
    SimulationOutcome,
    TransactionMode,
    error_code_for,
    failure_result,
    simulated_result,
    summarize,
)


@pytest.mark.unit
class TestAppConfig:
    def test_from_settings(self, monkeypatch):
        monkeypatch.setattr(Settings, "TX_MODE", "Simulation")
        monkeypatch.setattr(Settings, "SLIPPAGE", 0.1)
        monkeypatch.setattr(Settings, "RETRY_MAX_ATTEMPTS", 5)
        monkeypatch.setattr(Settings, "RETRY_DELAY_MS", 100)
        monkeypatch.setattr(Settings, "WALLET_COUNT", 4)

        config = AppConfig.from_settings()

        assert config.trade.mode == TransactionMode.SIMULATION
        assert config.distribution.mode == TransactionMode.SIMULATION
        assert config.trade.slippage == 0.1
        assert config.retry.max_attempts == 5
        assert config.retry.delay_ms == 100
        assert config.infrastructure.wallet_count == 4

    def test_mode_override_wins(self, monkeypatch):
        monkeypatch.setattr(Settings, "TX_MODE", "simulation")

        config = AppConfig.from_settings(mode_override=TransactionMode.EXECUTION)

        assert config.trade.mode == TransactionMode.EXECUTION

    def test_bad_mode_is_rejected(self, monkeypatch):
        monkeypatch.setattr(Settings, "TX_MODE", "yolo")

        with pytest.raises(InvalidInput):
            AppConfig.from_settings()

    def test_zero_wallets_rejected(self, monkeypatch):
        monkeypatch.setattr(Settings, "WALLET_COUNT", 0)

        with pytest.raises(InvalidInput):
            AppConfig.from_settings()

    @pytest.mark.parametrize(
        "kwargs",
        [{"slippage": 1.0}, {"slippage": -0.1}, {"priority_fee_sol": -1}, {"compute_unit_limit": 0}],
    )
    def test_trade_config_validation(self, kwargs):
        with pytest.raises(InvalidInput):
            TradeConfig(**kwargs)

    def test_distribution_defaults(self):
        config = DistributionConfig()
        assert config.tx_fee_lamports == 5000
        assert config.rent_exempt_lamports == 2_039_280


@pytest.mark.unit
class TestResults:
    @pytest.mark.parametrize(
        "error, code",
        [
            (InvalidInput("bad"), ErrorCode.INVALID_INPUT),
            (MarketDataUnavailable("m", "timeout"), ErrorCode.MARKET_DATA_UNAVAILABLE),
            (HoldingAccountMissing("o", "a"), ErrorCode.HOLDING_ACCOUNT_MISSING),
            (TransactionFailed("send", "boom"), ErrorCode.TRANSACTION_FAILED),
            (RetriesExhausted("buy", 3, TransactionFailed("send", "boom")), ErrorCode.RETRIES_EXHAUSTED),
            (RuntimeError("?"), ErrorCode.UNKNOWN),
        ],
    )
    def test_error_codes(self, error, code):
        assert error_code_for(error) == code

    def test_failed_simulation_is_a_failure(self):
        result = simulated_result("sweep_sol", "acct", 10, SimulationOutcome(err="InsufficientFunds"))

        assert result.status == ExecutionStatus.FAILED
        assert result.error_code == ErrorCode.TRANSACTION_FAILED
        assert "InsufficientFunds" in result.error_message

    def test_clean_simulation(self):
        result = simulated_result("sweep_sol", "acct", 10, SimulationOutcome(units_consumed=150))

        assert result.status == ExecutionStatus.SIMULATED
        assert not result.failed

    def test_summarize(self):
        results = [
            simulated_result("x", "a", 1, SimulationOutcome()),
            failure_result("x", "b", 1, TransactionFailed("send", "boom")),
        ]

        summary = summarize(results)

        assert summary["total"] == 2
        assert summary["counts"]["SIMULATED"] == 1
        assert summary["counts"]["FAILED"] == 1
        assert summary["failed_accounts"] == ["b"]
        assert results[1].error_code == ErrorCode.TRANSACTION_FAILED
