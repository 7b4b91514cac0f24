"""
PumpFleet Test Mocks
====================
Reusable in-memory collaborators for isolated testing.
"""

from tests.mocks.mock_ledger import MockLedgerClient, SentTransaction
from tests.mocks.mock_market_data import MockMarketData, make_snapshot

__all__ = [
    "MockLedgerClient",
    "MockMarketData",
    "SentTransaction",
    "make_snapshot",
]
