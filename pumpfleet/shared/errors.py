"""
PumpFleet Error Taxonomy
========================
Every failure the trade engine raises on purpose.

`retryable` tells the retry loop whether another attempt can help.
Pure-computation and precondition errors are never retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional


class PumpFleetError(Exception):
    """Base class for all PumpFleet errors."""

    retryable: ClassVar[bool] = False


@dataclass(eq=False)
class InvalidInput(PumpFleetError):
    """Bad quote or configuration parameters (caller bug)."""

    message: str

    def __str__(self) -> str:
        return f"Invalid input: {self.message}"


@dataclass(eq=False)
class MarketDataUnavailable(PumpFleetError):
    """Market data missing, unreachable or malformed."""

    retryable: ClassVar[bool] = True

    mint: str
    reason: str

    def __str__(self) -> str:
        return f"Market data unavailable for {self.mint}: {self.reason}"


@dataclass(eq=False)
class HoldingAccountMissing(PumpFleetError):
    """The trader's associated token account does not exist."""

    owner: str
    token_account: str

    def __str__(self) -> str:
        return (
            f"Token account {self.token_account} for owner {self.owner} does not exist"
        )


@dataclass(eq=False)
class EncodingOverflow(PumpFleetError):
    """Operand does not fit an unsigned 64-bit integer."""

    name: str
    value: int

    def __str__(self) -> str:
        return f"{self.name}={self.value} does not fit in u64"


@dataclass(eq=False)
class InsufficientBalance(PumpFleetError):
    """Pre-flight balance check failed; nothing was submitted."""

    account: str
    required: int
    available: int
    unit: str = "lamports"

    def __str__(self) -> str:
        return (
            f"Insufficient balance in {self.account}: "
            f"required {self.required} {self.unit}, available {self.available} {self.unit}"
        )


@dataclass(eq=False)
class TransactionFailed(PumpFleetError):
    """The ledger rejected or failed to confirm a transaction."""

    retryable: ClassVar[bool] = True

    operation: str
    reason: str
    signature: Optional[str] = None

    def __str__(self) -> str:
        sig = f" (sig={self.signature})" if self.signature else ""
        return f"{self.operation} failed: {self.reason}{sig}"


@dataclass(eq=False)
class RetriesExhausted(PumpFleetError):
    """Terminal wrapper once the retry budget is spent."""

    operation: str
    attempts: int
    last_error: BaseException

    def __str__(self) -> str:
        return (
            f"{self.operation} failed after {self.attempts} attempts. "
            f"Last error: {self.last_error}"
        )
