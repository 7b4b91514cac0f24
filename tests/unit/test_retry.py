"""
Retry Executor Unit Tests
=========================
Bounded attempts, fixed delay, failure reporting and non-retryable errors.
"""

from unittest.mock import AsyncMock, patch

import pytest

from pumpfleet.shared.errors import (
    HoldingAccountMissing,
    InvalidInput,
    MarketDataUnavailable,
    RetriesExhausted,
    TransactionFailed,
)
from pumpfleet.shared.system.retry import RetryPolicy, is_retryable, with_retry


def _flaky(failures, value="ok", error=None):
    """Coroutine factory failing `failures` times, then returning `value`."""
    calls = {"n": 0}

    async def operation():
        calls["n"] += 1
        if calls["n"] <= failures:
            raise error or TransactionFailed("op", f"transient #{calls['n']}")
        return value

    return operation, calls


@pytest.mark.unit
class TestWithRetry:
    @pytest.mark.asyncio
    async def test_fail_twice_then_succeed(self):
        operation, calls = _flaky(2, value=42)
        reports = []

        with patch("pumpfleet.shared.system.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await with_retry(
                operation, 3, 2000, on_failure=lambda attempt, e: reports.append((attempt, e))
            )

        assert result == 42
        assert calls["n"] == 3
        assert [attempt for attempt, _ in reports] == [1, 2]
        assert sleep.await_count == 2
        sleep.assert_awaited_with(2.0)

    @pytest.mark.asyncio
    async def test_always_failing_exhausts_budget(self):
        operation, calls = _flaky(99)
        reports = []

        with patch("pumpfleet.shared.system.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(RetriesExhausted) as exc_info:
                await with_retry(operation, 3, 500, name="buy", on_failure=lambda a, e: reports.append(a))

        err = exc_info.value
        assert err.attempts == 3
        assert err.operation == "buy"
        assert isinstance(err.last_error, TransactionFailed)
        assert err.__cause__ is err.last_error
        assert calls["n"] == 3
        assert reports == [1, 2, 3]
        # No wait after the final attempt
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_first_success_does_not_sleep(self):
        operation, calls = _flaky(0)

        with patch("pumpfleet.shared.system.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await with_retry(operation, 3, 2000) == "ok"

        assert calls["n"] == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_retryable_propagates_immediately(self):
        operation, calls = _flaky(5, error=HoldingAccountMissing("owner", "ata"))

        with pytest.raises(HoldingAccountMissing):
            await with_retry(operation, 3, 0)

        assert calls["n"] == 1

    @pytest.mark.asyncio
    async def test_foreign_exceptions_are_retried(self):
        operation, calls = _flaky(1, error=ConnectionError("reset by peer"))

        assert await with_retry(operation, 2, 0) == "ok"
        assert calls["n"] == 2

    @pytest.mark.asyncio
    async def test_single_attempt_budget(self):
        operation, calls = _flaky(1)

        with pytest.raises(RetriesExhausted) as exc_info:
            await with_retry(operation, 1, 0)

        assert exc_info.value.attempts == 1
        assert calls["n"] == 1

    @pytest.mark.asyncio
    async def test_zero_attempts_rejected(self):
        operation, calls = _flaky(0)

        with pytest.raises(InvalidInput):
            await with_retry(operation, 0, 0)
        assert calls["n"] == 0


@pytest.mark.unit
class TestRetryPolicy:
    def test_rejects_bad_configuration(self):
        with pytest.raises(InvalidInput):
            RetryPolicy(max_attempts=0)
        with pytest.raises(InvalidInput):
            RetryPolicy(delay_ms=-1)

    @pytest.mark.asyncio
    async def test_run_uses_policy_values(self):
        operation, calls = _flaky(10)
        policy = RetryPolicy(max_attempts=4, delay_ms=0)

        with pytest.raises(RetriesExhausted) as exc_info:
            await policy.run(operation, name="transfer")

        assert exc_info.value.attempts == 4
        assert calls["n"] == 4

    def test_retryable_classification(self):
        assert is_retryable(TransactionFailed("send", "timeout"))
        assert is_retryable(MarketDataUnavailable("mint", "HTTP 503"))
        assert is_retryable(TimeoutError())
        assert not is_retryable(InvalidInput("bad"))
        assert not is_retryable(RetriesExhausted("op", 3, TimeoutError()))


@pytest.mark.unit
class TestSendWithRetry:
    @pytest.mark.asyncio
    async def test_landed_broadcast_is_returned(self):
        ledger = AsyncMock()
        ledger.send_and_confirm.side_effect = TransactionFailed("fund", "confirmation timed out", "SIG_A")
        ledger.signature_landed.return_value = True

        sig = await RetryPolicy(max_attempts=3, delay_ms=0).send(ledger, ["ix"], "payer", "fund")

        assert sig == "SIG_A"
        ledger.send_and_confirm.assert_awaited_once()
        ledger.signature_landed.assert_awaited_once_with("SIG_A")

    @pytest.mark.asyncio
    async def test_rejected_before_broadcast_is_resent_without_lookup(self):
        ledger = AsyncMock()
        ledger.send_and_confirm.side_effect = [TransactionFailed("fund", "Blockhash not found"), "SIG_B"]

        sig = await RetryPolicy(max_attempts=3, delay_ms=0).send(ledger, ["ix"], "payer", "fund")

        assert sig == "SIG_B"
        assert ledger.send_and_confirm.await_count == 2
        ledger.signature_landed.assert_not_awaited()
