"""
Logging setup
Console output is colored; app and error logs are written to one file per day
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from pathlab.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Noisy third-party loggers, capped at WARNING
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "apscheduler")


class ColoredFormatter(logging.Formatter):
    """Level name in color, for terminals"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        # Work on a copy so the file handlers see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(colored.levelname, self.RESET)
        colored.levelname = f"{color}{colored.levelname}{self.RESET}"
        return super().format(colored)


def _daily_file_handler(log_path: Path, prefix: str, level: int) -> logging.FileHandler:
    today = datetime.now().strftime("%Y-%m-%d")
    handler = logging.FileHandler(log_path / f"{prefix}_{today}.log", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = None):
    """
    Configure the root logger

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_dir: directory for the log files, defaults to settings.LOG_DIR
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(console_handler)

    log_path = Path(log_dir or settings.LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)
    root_logger.addHandler(_daily_file_handler(log_path, "app", logging.INFO))
    root_logger.addHandler(_daily_file_handler(log_path, "error", logging.ERROR))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"📋 Logging initialised (level {log_level.upper()}, files in {log_path})")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
