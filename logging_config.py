"""
Logging setup for Quote Desk.

Request threads and the ProductRefresh thread log concurrently, so every
record is tagged with the name of the thread that emitted it:

    2026-10-19 10:15:31 [INFO    ] [ProductRefresh] quote_desk.services.product_cache - Product cache updated: 812 products

Console output is always on. Production adds rotating files under ./logs:
quote_desk.log for everything and quote_desk_error.log for ERROR and up.

Modules get their logger with get_logger(__name__); app.create_app calls
setup_logging once.
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


APP_LOGGER_NAME = "quote_desk"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class ThreadContextFilter(logging.Filter):
    """Stamps each record with thread_name for the formatter."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        return True


def _rotating_handler(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_logging(
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure the quote_desk logger tree.

    Calling it again replaces the previous handlers, so each create_app()
    leaves exactly one set attached.

    Args:
        log_level: Minimum level for the console and main log file
        log_dir: Where log files go (default: ./logs next to this file)
        enable_file_logging: Add the rotating file handlers

    Returns:
        The configured "quote_desk" logger
    """
    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = [logging.StreamHandler(sys.stdout)]
    handlers[0].setLevel(log_level)

    if enable_file_logging:
        log_dir = log_dir or Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_handler(log_dir / f"{APP_LOGGER_NAME}.log", log_level))
        handlers.append(_rotating_handler(log_dir / f"{APP_LOGGER_NAME}_error.log", logging.ERROR))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    thread_filter = ThreadContextFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(thread_filter)
        logger.addHandler(handler)

    logger.info(
        f"Logging configured at level {logging.getLevelName(log_level)}"
        + (f", files in {log_dir}" if enable_file_logging else "")
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger under the quote_desk namespace ("services.x" -> "quote_desk.services.x")."""
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_thread_name(name: str) -> None:
    """Rename the current thread; the name shows up in every log line."""
    threading.current_thread().name = name
