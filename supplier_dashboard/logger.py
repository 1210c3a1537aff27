import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from . import settings

PACKAGE_LOGGER = "supplier_dashboard"


def setup_logger(name: str = PACKAGE_LOGGER, log_level: Optional[str] = None, log_dir=None) -> logging.Logger:
    """
    Configures the package logger once per process: plain messages on stdout,
    timestamped records in `<LOG_DIR>/<REPORT_FILENAME_BASE>.log`.

    Module loggers (`supplier_dashboard.*`) reach these handlers through
    propagation. The package logger itself does not propagate, so records are
    not printed a second time by handlers on the root logger.
    """
    logger = logging.getLogger(name)
    level = logging.getLevelName((log_level or settings.LOG_LEVEL).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level or settings.LOG_LEVEL!r}")
    logger.setLevel(level)
    logger.propagate = False

    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    log_dir = log_dir or settings.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / f"{settings.REPORT_FILENAME_BASE}.log",
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(file_handler)

    return logger
