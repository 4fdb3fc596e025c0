"""
Logging Setup
=============

Console output plus a size-limited log file. Once the file passes
``LOG_MAX_BYTES`` it is truncated and restarted; no backups are kept.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config import DATA_DIR, LOG_FILE, LOG_MAX_BYTES, LOG_LEVEL

LOG_FORMAT = '[%(asctime)s] %(levelname)s %(name)s %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class TruncatingFileHandler(RotatingFileHandler):
    """File handler that starts the file over instead of rotating it."""

    def __init__(self, filename: str, max_bytes: int = LOG_MAX_BYTES, encoding: str = 'utf-8'):
        super().__init__(filename, mode='a', maxBytes=max_bytes, backupCount=0,
                         encoding=encoding, delay=True)

    def doRollover(self):
        if self.stream:
            self.stream.close()
            self.stream = None
        self.stream = open(self.baseFilename, 'w', encoding=self.encoding)


def configure_logging(log_dir: Optional[str] = None, *, max_bytes: int = LOG_MAX_BYTES,
                      level: Optional[str] = None) -> str:
    """
    Install console and file handlers on the package logger.

    Args:
        log_dir: Directory for the log file (default DATA_DIR)
        max_bytes: Size past which the file is truncated
        level: Log level name (default LOG_LEVEL)

    Returns:
        Path of the log file
    """
    log_dir = log_dir or DATA_DIR
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, LOG_FILE)

    logger = logging.getLogger('pos_print_service')
    logger.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if not any(isinstance(h, TruncatingFileHandler) for h in logger.handlers):
        file_handler = TruncatingFileHandler(log_path, max_bytes=max_bytes)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    return log_path
