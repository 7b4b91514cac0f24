"""
Library log routing.

httpx, httpcore and solana-py log through stdlib `logging`. Everything is
sent into Loguru: Rich on the console and, when `LOG_FILE` / `--log-file`
is set, a rotating plain-text file. PumpFleet's own `Logger` keeps its
separate per-run file.
"""

import logging
from pathlib import Path

from loguru import logger
from rich.logging import RichHandler

from pumpfleet.shared.errors import InvalidInput

LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

# Floor per library; httpx logs every request at INFO
LIBRARY_LEVELS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "solana": logging.INFO,
}

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name} - {message}"


class InterceptHandler(logging.Handler):
    """Hands stdlib records to Loguru, keeping the original caller."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level="WARNING", log_file=None):
    """
    Args:
        level: console threshold for library logs
        log_file: optional path; receives DEBUG and up, rotated at 10 MB, 5 kept

    Raises:
        InvalidInput: unknown level name
    """
    level = str(level).strip().upper()
    if level not in LEVELS:
        raise InvalidInput(f"unknown log level {level!r} (expected one of {', '.join(LEVELS)})")

    logger.remove()
    logger.add(
        RichHandler(rich_tracebacks=True, markup=False, show_path=False),
        level=level,
        format="{message}",
    )

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(path, rotation="10 MB", retention=5, level="DEBUG", format=FILE_FORMAT)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name, floor in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(floor)

    return logger
