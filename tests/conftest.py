"""
PumpFleet Test Configuration
============================
Shared fixtures and pytest markers for the test suite.
"""

import os
import sys
import tempfile

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep per-run log files out of the working tree
os.environ.setdefault("PUMPFLEET_LOG_DIR", tempfile.mkdtemp(prefix="pumpfleet_logs_"))


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def quiet_logger():
    """Console output off; the file log still records everything."""
    from pumpfleet.shared.system.logging import Logger

    Logger.set_silent(True)
    yield
    Logger.set_silent(False)


@pytest.fixture
def mint():
    """A real-format pump.fun mint address."""
    return "98NrBJsuU14gDjrXaoSmcUWkJGMpX2SCHXjsZrocpump"


@pytest.fixture
def parent():
    from solders.keypair import Keypair

    return Keypair()


@pytest.fixture
def children():
    from solders.keypair import Keypair

    return [Keypair() for _ in range(5)]


@pytest.fixture
def fast_retry():
    """Three attempts, no waiting."""
    from pumpfleet.shared.system.retry import RetryPolicy

    return RetryPolicy(max_attempts=3, delay_ms=0)
