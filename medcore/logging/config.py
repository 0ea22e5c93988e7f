# =============================================================================
# medcore/logging/config.py
# Logging Configuration for MedCore
# =============================================================================

import logging
import os
import sys
import time
from pathlib import Path
from datetime import datetime
from typing import Optional, Union


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_DIR = Path("logs")

# Queue, drain and connectivity events also go to a separate audit file
SYNC_LOGGER = "medcore.offline"
SYNC_LOG_FILENAME = "medcore_sync.log"

# HTTP and SDK chatter from the Supabase and OpenAI clients
QUIET_LOGGERS = ("urllib3", "httpx", "httpcore", "hpack", "supabase", "postgrest", "openai")


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        level = os.getenv("MEDCORE_LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    # getLevelName maps known names to their number
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: Optional[Union[int, str]] = None,
    log_to_file: bool = True,
    log_filename: Optional[str] = None,
) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Level or level name; MEDCORE_LOG_LEVEL (default INFO) if None
        log_to_file: Also write the daily log and the sync audit log under logs/
        log_filename: Custom log filename (default: medcore_YYYY-MM-DD.log)
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if log_to_file:
        LOG_DIR.mkdir(exist_ok=True)
        if log_filename is None:
            log_filename = f"medcore_{datetime.now().strftime('%Y-%m-%d')}.log"
        handlers.append(logging.FileHandler(LOG_DIR / log_filename))

    logging.basicConfig(
        level=_resolve_level(level),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    sync_logger = logging.getLogger(SYNC_LOGGER)
    for handler in list(sync_logger.handlers):
        sync_logger.removeHandler(handler)
        handler.close()
    if log_to_file:
        audit = logging.FileHandler(LOG_DIR / SYNC_LOG_FILENAME)
        audit.setFormatter(formatter)
        sync_logger.addHandler(audit)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("medcore").info("Logging initialized")


def get_logger(name: str) -> logging.Logger:
    """
    Usage:
        from medcore.logging import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


class LogContext:
    """
    Times an operation and logs its start and outcome.

    Usage:
        with LogContext(logger, "Draining 3 queued operations") as ctx:
            ...
        ctx.elapsed   # seconds
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = None
        self.elapsed = 0.0

    def __enter__(self):
        self.start_time = time.monotonic()
        self.logger.info(f"{self.operation}... started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.monotonic() - self.start_time

        if exc_type is None:
            self.logger.info(f"{self.operation}... completed ({self.elapsed:.2f}s)")
        else:
            self.logger.error(
                f"{self.operation}... failed ({self.elapsed:.2f}s): {exc_val}",
                exc_info=True
            )

        return False
