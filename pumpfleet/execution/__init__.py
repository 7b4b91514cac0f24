"""
Execution Layer
===============
- quote_calculator.py: constant-product quotes with slippage bounds
- instruction_factory.py: pump.fun buy/sell + compute budget instructions
- trade_executor.py: one buy or sell, end to end
- distributor.py: token/SOL fan-out, sweep and sub-account sells
- balance_reporter.py: read-only balance tables
"""

from pumpfleet.execution.balance_reporter import BalanceReporter, WalletBalance
from pumpfleet.execution.distributor import DistributionOrchestrator
from pumpfleet.execution.instruction_factory import CurveAccounts, InstructionFactory
from pumpfleet.execution.quote_calculator import BuyQuote, SellQuote, quote_buy, quote_sell
from pumpfleet.execution.trade_executor import TradeExecutor

__all__ = [
    "BalanceReporter",
    "BuyQuote",
    "CurveAccounts",
    "DistributionOrchestrator",
    "InstructionFactory",
    "SellQuote",
    "TradeExecutor",
    "WalletBalance",
    "quote_buy",
    "quote_sell",
]
