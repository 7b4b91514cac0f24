"""
Retry Executor
==============
Bounded retry with a fixed delay between attempts.

Every mutating ledger/market-data call goes through here. The delay never
grows and carries no jitter: trade operations are low-frequency, one signer
at a time.

Usage:
    policy = RetryPolicy(max_attempts=3, delay_ms=2000)
    sig = await policy.run(lambda: executor.buy(...), name="buy")
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TypeVar

from pumpfleet.shared.errors import InvalidInput, PumpFleetError, RetriesExhausted, TransactionFailed
from pumpfleet.shared.system.logging import Logger

T = TypeVar("T")

FailureSink = Callable[[int, BaseException], None]


def is_retryable(error: BaseException) -> bool:
    """PumpFleet errors declare it; anything else (RPC, transport) is transient."""
    if isinstance(error, PumpFleetError):
        return error.retryable
    return True


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    delay_ms: int = 2000,
    *,
    name: str = "operation",
    on_failure: Optional[FailureSink] = None,
) -> T:
    """
    Run `operation` up to `max_attempts` times.

    Args:
        operation: zero-argument coroutine factory, called once per attempt
        max_attempts: attempt budget (>= 1)
        delay_ms: fixed wait between a failed attempt and the next one
        name: label used in failure reports
        on_failure: optional sink called with (attempt, error) per failed attempt

    Returns:
        The first successful result.

    Raises:
        RetriesExhausted: after the last attempt failed
        Non-retryable errors propagate unchanged on first occurrence.
    """
    if max_attempts < 1:
        raise InvalidInput(f"max_attempts must be >= 1, got {max_attempts}")
    if delay_ms < 0:
        raise InvalidInput(f"delay_ms must be >= 0, got {delay_ms}")

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                raise

            Logger.warning(f"[RETRY] {name}: attempt {attempt}/{max_attempts} failed: {e}")
            if on_failure is not None:
                on_failure(attempt, e)

            if attempt >= max_attempts:
                raise RetriesExhausted(name, attempt, e) from e

            Logger.debug(f"[RETRY] {name}: retrying after {delay_ms}ms")
            await asyncio.sleep(delay_ms / 1000)
            attempt += 1


async def send_with_retry(
    ledger,
    instructions,
    payer,
    label: str,
    max_attempts: int = 3,
    delay_ms: int = 2000,
) -> str:
    """
    Submit one value-moving transaction through `with_retry` so it lands at
    most once.

    A submit that fails after broadcast (confirmation timeout) still carries
    its signature. Before every later attempt those signatures are looked up;
    one that landed is returned instead of sending again.
    """
    broadcast: List[str] = []

    async def _attempt() -> str:
        for signature in broadcast:
            if await ledger.signature_landed(signature):
                Logger.warning(f"[RETRY] {label}: earlier attempt {signature} landed, not resending")
                return signature
        try:
            return await ledger.send_and_confirm(instructions, payer, label=label)
        except TransactionFailed as e:
            if e.signature:
                broadcast.append(e.signature)
            raise

    return await with_retry(_attempt, max_attempts, delay_ms, name=label)


@dataclass(frozen=True)
class RetryPolicy:
    """The single retry configuration threaded through every component."""

    max_attempts: int = 3
    delay_ms: int = 2000

    def __post_init__(self):
        if self.max_attempts < 1:
            raise InvalidInput(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.delay_ms < 0:
            raise InvalidInput(f"delay_ms must be >= 0, got {self.delay_ms}")

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str = "operation",
        on_failure: Optional[FailureSink] = None,
    ) -> T:
        return await with_retry(
            operation,
            self.max_attempts,
            self.delay_ms,
            name=name,
            on_failure=on_failure,
        )

    async def send(self, ledger, instructions, payer, label: str) -> str:
        return await send_with_retry(
            ledger, instructions, payer, label, self.max_attempts, self.delay_ms
        )
