"""
Explicit configuration objects.

`Settings` holds raw .env values; these frozen dataclasses are what
components actually receive through their constructors.
"""

from dataclasses import dataclass, field
from pathlib import Path

from pumpfleet.config.settings import Settings
from pumpfleet.core.constants import (
    DEFAULT_RENT_EXEMPT_LAMPORTS,
    DEFAULT_TX_FEE_LAMPORTS,
)
from pumpfleet.shared.errors import InvalidInput
from pumpfleet.shared.execution.execution_result import TransactionMode
from pumpfleet.shared.system.retry import RetryPolicy


@dataclass(frozen=True)
class InfrastructureConfig:
    rpc_url: str = "https://api.mainnet-beta.solana.com"
    rpc_timeout_s: float = 30.0
    pump_api_url: str = "https://frontend-api.pump.fun"
    market_data_timeout_s: float = 10.0
    wallets_file: Path = Path("wallets.json")
    wallet_count: int = 10


@dataclass(frozen=True)
class TradeConfig:
    mode: TransactionMode = TransactionMode.EXECUTION
    slippage: float = 0.25
    priority_fee_sol: float = 0.0
    compute_unit_limit: int = 1_000_000

    def __post_init__(self):
        if not 0 <= self.slippage < 1:
            raise InvalidInput(f"slippage must be in [0, 1), got {self.slippage}")
        if self.priority_fee_sol < 0:
            raise InvalidInput(f"priority_fee_sol must be >= 0, got {self.priority_fee_sol}")
        if self.compute_unit_limit <= 0:
            raise InvalidInput(f"compute_unit_limit must be > 0, got {self.compute_unit_limit}")


@dataclass(frozen=True)
class DistributionConfig:
    mode: TransactionMode = TransactionMode.EXECUTION
    tx_fee_lamports: int = DEFAULT_TX_FEE_LAMPORTS
    rent_exempt_lamports: int = DEFAULT_RENT_EXEMPT_LAMPORTS

    def __post_init__(self):
        if self.tx_fee_lamports < 0 or self.rent_exempt_lamports < 0:
            raise InvalidInput("fee and rent floor must be >= 0")


@dataclass(frozen=True)
class AppConfig:
    infrastructure: InfrastructureConfig = field(default_factory=InfrastructureConfig)
    trade: TradeConfig = field(default_factory=TradeConfig)
    distribution: DistributionConfig = field(default_factory=DistributionConfig)
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    @classmethod
    def from_settings(cls, mode_override: TransactionMode = None) -> "AppConfig":
        mode = mode_override or TransactionMode.parse(Settings.TX_MODE)
        if Settings.WALLET_COUNT < 1:
            raise InvalidInput(f"WALLET_COUNT must be >= 1, got {Settings.WALLET_COUNT}")
        return cls(
            infrastructure=InfrastructureConfig(
                rpc_url=Settings.RPC_URL,
                rpc_timeout_s=Settings.RPC_TIMEOUT_S,
                pump_api_url=Settings.PUMP_API_URL,
                market_data_timeout_s=Settings.MARKET_DATA_TIMEOUT_S,
                wallets_file=Path(Settings.WALLETS_FILE),
                wallet_count=Settings.WALLET_COUNT,
            ),
            trade=TradeConfig(
                mode=mode,
                slippage=Settings.SLIPPAGE,
                priority_fee_sol=Settings.PRIORITY_FEE_SOL,
                compute_unit_limit=Settings.COMPUTE_UNIT_LIMIT,
            ),
            distribution=DistributionConfig(
                mode=mode,
                tx_fee_lamports=Settings.TX_FEE_LAMPORTS,
                rent_exempt_lamports=Settings.RENT_EXEMPT_LAMPORTS,
            ),
            retry=RetryPolicy(
                max_attempts=Settings.RETRY_MAX_ATTEMPTS,
                delay_ms=Settings.RETRY_DELAY_MS,
            ),
        )
