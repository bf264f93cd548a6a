"""Releases Notifier — Logging Setup.

Centralized logging configuration: colored console output plus a
rotating log file. Every module obtains its logger through get_logger().
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

# ── Constants ─────────────────────────────────────────────
LOG_DIR = Path(__file__).resolve().parent.parent.parent / "logs"
LOG_FILE = LOG_DIR / "releases_notifier.log"
MAX_BYTES = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

# ── ANSI Color Codes ─────────────────────────────────────
COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[41m",
}
RESET = "\033[0m"

_initialized = False


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name and timestamp."""

    def format(self, record: logging.LogRecord) -> str:
        # Color a copy; the file handler formats the same record afterwards
        colored = logging.makeLogRecord(record.__dict__)
        color = COLORS.get(colored.levelname, "")
        colored.levelname = f"{color}{colored.levelname:<8}{RESET}"
        colored.asctime = f"{color}{self.formatTime(colored, self.datefmt)}{RESET}"
        return super().format(colored)


def _setup_logging() -> None:
    """Attach the console and file handlers to the root logger once.

    Console: INFO and above, colored.
    File: DEBUG and above, rotated at 10 MB with 5 backups.
    """
    global _initialized
    if _initialized:
        return

    LOG_DIR.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(ColoredFormatter(
        fmt="%(asctime)s │ %(levelname)s │ %(name)s │ %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root_logger.addHandler(console_handler)

    file_handler = RotatingFileHandler(
        filename=str(LOG_FILE),
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root_logger.addHandler(file_handler)

    # python-telegram-bot and httpx are chatty at INFO (one line per poll)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    _initialized = True


def set_level(level: str) -> None:
    """Apply the configured level to the console handler.

    Args:
        level: Level name from settings.yaml (e.g. "INFO", "DEBUG").
    """
    _setup_logging()
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    for handler in logging.getLogger().handlers:
        if not isinstance(handler, RotatingFileHandler):
            handler.setLevel(numeric)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger with the global configuration applied.

    Args:
        name: Logger name, normally the caller's __name__.

    Returns:
        A configured logging.Logger instance.
    """
    _setup_logging()
    return logging.getLogger(name)
