# src/config/logging_config.py

"""Logging sink for crawler runs.

Every CLI invocation and every daemon start writes its own log file, so
a single nightly crawl (all groups plus each main group) can be read
back in isolation.  The file takes everything from ``DEBUG`` up; the
terminal only shows warnings and errors so JSON on stdout stays clean.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

ROOT_LOGGER_NAME = "ime_crawler"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_STDERR_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _file_handler(log_file: Path) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def _stderr_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(
        logging.Formatter(_STDERR_FORMAT, datefmt=_DATE_FORMAT)
    )
    return handler


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach the run-file and stderr handlers to ``ime_crawler``.

    Args:
        logs_dir: Where ``run_<YYYYmmdd_HHMMSS>.log`` is created.
            Falls back to ``Settings.LOGS_DIR``.

    Returns:
        Path of this run's log file.  If the logger is already wired
        (a second call in the same process), the existing handlers are
        kept and no file is opened.
    """
    directory = logs_dir or Settings.LOGS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    crawler_logger = logging.getLogger(ROOT_LOGGER_NAME)
    crawler_logger.setLevel(logging.DEBUG)
    if crawler_logger.handlers:
        return log_file

    crawler_logger.addHandler(_file_handler(log_file))
    crawler_logger.addHandler(_stderr_handler())
    crawler_logger.debug("Run log opened at %s", log_file)
    return log_file
