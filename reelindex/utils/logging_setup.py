"""Root logger configuration: stdout plus an optional rotating log file"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from reelindex.config import LoggingConfig

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Chatty third-party loggers, capped at WARNING unless the root is stricter
_NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    return handler


def _file_handler(
    path: Path, level: int, max_bytes: int, backup_count: int, fmt: str
) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file_name: str | None = None,
    log_to_console: bool = True,
    log_to_file: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    log_format: str | None = None,
) -> logging.Logger:
    """
    Configure the root logger for ReelIndex.

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file_name: Log file path; defaults to logs/reelindex.log
        log_to_console: Attach a stdout handler
        log_to_file: Attach a rotating file handler
        max_bytes: Rotate the file at this size
        backup_count: Rotated files to keep
        log_format: Format for the file handler

    Returns:
        The root logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if log_to_console:
        root_logger.addHandler(_console_handler(level))

    log_file_path: Optional[Path] = None
    if log_to_file:
        log_file_path = Path(log_file_name or "logs/reelindex.log")
        root_logger.addHandler(
            _file_handler(
                log_file_path, level, max_bytes, backup_count, log_format or DEFAULT_FORMAT
            )
        )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    root_logger.info(
        f"ReelIndex logging at {log_level.upper()}"
        + (f", writing to {log_file_path}" if log_file_path else "")
    )
    return root_logger


def setup_logging_from_config(logging_config: LoggingConfig) -> logging.Logger:
    """Configure logging from the ``logging`` section of the config file."""
    return setup_logging(
        log_level=logging_config.level,
        log_file_name=logging_config.file,
        log_to_console=logging_config.to_console,
        log_to_file=logging_config.to_file,
        max_bytes=logging_config.max_bytes,
        backup_count=logging_config.backup_count,
        log_format=logging_config.format,
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; same as logging.getLogger(name)."""
    return logging.getLogger(name)
