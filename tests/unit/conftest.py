"""
Unit Test Configuration
=======================
Fixtures for pure logic tests - NO I/O ALLOWED.

All unit tests should be completely isolated from:
- Network (RPC, HTTP)
- File system (except tmp_path)
"""

import pytest


# ============================================================================
# AUTOUSE: ENFORCE I/O ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_unit_tests(monkeypatch):
    """
    Automatically disable real network I/O for unit tests.

    Blocked at the transport so `httpx.MockTransport` still works, and so
    the Solana AsyncClient (httpx underneath) cannot reach an RPC either.
    """
    async def block_network(*args, **kwargs):
        raise RuntimeError(
            "Network I/O detected in unit test! "
            "Unit tests must be pure logic with no external dependencies. "
            "Use the mocks in tests/mocks instead."
        )

    monkeypatch.setattr("httpx.AsyncHTTPTransport.handle_async_request", block_network)


# ============================================================================
# LEDGER / MARKET FIXTURES
# ============================================================================


@pytest.fixture
def ledger():
    from tests.mocks.mock_ledger import MockLedgerClient

    return MockLedgerClient()


@pytest.fixture
def snapshot(mint):
    from tests.mocks.mock_market_data import make_snapshot

    return make_snapshot(mint)


@pytest.fixture
def market(snapshot):
    from tests.mocks.mock_market_data import MockMarketData

    return MockMarketData(snapshot)
