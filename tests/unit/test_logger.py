"""
Library Log Routing Unit Tests
==============================
"""

import logging
import sys

import pytest
from loguru import logger

from pumpfleet.core.logger import setup_logging
from pumpfleet.shared.errors import InvalidInput


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    logger.remove()
    logger.add(sys.stderr)
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestSetupLogging:
    def test_library_logs_reach_the_file(self, tmp_path, restore_logging):
        log_file = tmp_path / "logs" / "libraries.log"

        setup_logging("warning", log_file)
        logging.getLogger("solana.rpc").info("getBalance ok")
        logging.getLogger("httpx").info("GET /coins/mint 200")
        logger.remove()  # closes and flushes the file sink

        text = log_file.read_text()
        assert "getBalance ok" in text
        assert "GET /coins" not in text

    def test_unknown_level_rejected(self, restore_logging):
        with pytest.raises(InvalidInput):
            setup_logging("LOUD")
