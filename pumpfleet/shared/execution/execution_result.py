"""
Unified Execution Result
========================
Standardized return types for trades and per-account distribution steps.

Distribution loops never raise per account: each account gets an
`AccountResult` and callers branch on `status`.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pumpfleet.shared.errors import (
    EncodingOverflow,
    HoldingAccountMissing,
    InsufficientBalance,
    InvalidInput,
    MarketDataUnavailable,
    RetriesExhausted,
    TransactionFailed,
)


class TransactionMode(Enum):
    """Terminal mode of a trade or transfer. Fixed for a whole call."""

    EXECUTION = "execution"
    SIMULATION = "simulation"

    @classmethod
    def parse(cls, value: str) -> "TransactionMode":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidInput(
                f"unknown transaction mode {value!r} (expected execution|simulation)"
            ) from None


class ExecutionStatus(Enum):
    """Status codes for execution results."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    SIMULATED = "SIMULATED"
    SKIPPED = "SKIPPED"


class ErrorCode(Enum):
    """Standardized error codes for execution failures."""

    INVALID_INPUT = "INVALID_INPUT"
    MARKET_DATA_UNAVAILABLE = "MARKET_DATA_UNAVAILABLE"
    HOLDING_ACCOUNT_MISSING = "HOLDING_ACCOUNT_MISSING"
    ENCODING_OVERFLOW = "ENCODING_OVERFLOW"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    TRANSACTION_FAILED = "TRANSACTION_FAILED"
    RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"

    # Not failures: reasons for SKIPPED
    BELOW_THRESHOLD = "BELOW_THRESHOLD"
    ZERO_BALANCE = "ZERO_BALANCE"

    UNKNOWN = "UNKNOWN"


_ERROR_CODES = (
    (RetriesExhausted, ErrorCode.RETRIES_EXHAUSTED),
    (InvalidInput, ErrorCode.INVALID_INPUT),
    (MarketDataUnavailable, ErrorCode.MARKET_DATA_UNAVAILABLE),
    (HoldingAccountMissing, ErrorCode.HOLDING_ACCOUNT_MISSING),
    (EncodingOverflow, ErrorCode.ENCODING_OVERFLOW),
    (InsufficientBalance, ErrorCode.INSUFFICIENT_BALANCE),
    (TransactionFailed, ErrorCode.TRANSACTION_FAILED),
)


def error_code_for(error: BaseException) -> ErrorCode:
    for error_type, code in _ERROR_CODES:
        if isinstance(error, error_type):
            return code
    return ErrorCode.UNKNOWN


@dataclass
class SimulationOutcome:
    """What a dry-run against current ledger state reported."""

    err: Optional[str] = None
    logs: List[str] = field(default_factory=list)
    units_consumed: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.err is None


@dataclass
class AccountResult:
    """
    Outcome of one step of a multi-account operation.

    Usage:
        results = await distributor.distribute_tokens(...)
        retry_subset = [r.account for r in results if r.failed]
    """

    operation: str
    account: str
    status: ExecutionStatus
    amount: int = 0
    signature: Optional[str] = None
    simulation: Optional[SimulationOutcome] = None
    error_code: Optional[ErrorCode] = None
    error_message: Optional[str] = None
    exception: Optional[BaseException] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def failed(self) -> bool:
        return self.status == ExecutionStatus.FAILED

    def __repr__(self) -> str:
        if self.failed:
            return f"AccountResult({self.operation} {self.account}: FAILED {self.error_code}, {self.error_message})"
        return f"AccountResult({self.operation} {self.account}: {self.status.value} {self.amount})"


@dataclass
class TradeResult:
    """Outcome of one buy or sell against the bonding curve."""

    side: str  # "BUY" | "SELL"
    mode: TransactionMode
    mint: str
    owner: str
    amount: int  # token_out for buys, token_in for sells
    bound: int  # max_sol_cost for buys, min_sol_out for sells
    signature: Optional[str] = None
    simulation: Optional[SimulationOutcome] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def simulated(self) -> bool:
        return self.mode == TransactionMode.SIMULATION


# ═══════════════════════════════════════════════════════════════════════════════
# FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def success_result(operation: str, account: str, amount: int, signature: str) -> AccountResult:
    """Create a successful per-account result."""
    return AccountResult(
        operation=operation,
        account=account,
        status=ExecutionStatus.SUCCESS,
        amount=amount,
        signature=signature,
    )


def simulated_result(
    operation: str, account: str, amount: int, simulation: SimulationOutcome
) -> AccountResult:
    """Create a dry-run result. A failed simulation is still a FAILED result."""
    if not simulation.ok:
        return AccountResult(
            operation=operation,
            account=account,
            status=ExecutionStatus.FAILED,
            amount=amount,
            simulation=simulation,
            error_code=ErrorCode.TRANSACTION_FAILED,
            error_message=f"simulation error: {simulation.err}",
        )
    return AccountResult(
        operation=operation,
        account=account,
        status=ExecutionStatus.SIMULATED,
        amount=amount,
        simulation=simulation,
    )


def failure_result(operation: str, account: str, amount: int, error: BaseException) -> AccountResult:
    """Create a failed per-account result carrying the original exception."""
    return AccountResult(
        operation=operation,
        account=account,
        status=ExecutionStatus.FAILED,
        amount=amount,
        error_code=error_code_for(error),
        error_message=str(error),
        exception=error,
    )


def skipped_result(operation: str, account: str, reason: ErrorCode, message: str) -> AccountResult:
    """Create a deliberate no-op result (not an error)."""
    return AccountResult(
        operation=operation,
        account=account,
        status=ExecutionStatus.SKIPPED,
        error_code=reason,
        error_message=message,
    )


def summarize(results: List[AccountResult]) -> Dict[str, Any]:
    """Counts per status plus the failed subset, ready for a targeted re-run."""
    counts = {status.value: 0 for status in ExecutionStatus}
    for result in results:
        counts[result.status.value] += 1
    return {
        "total": len(results),
        "counts": counts,
        "failed_accounts": [r.account for r in results if r.failed],
    }
