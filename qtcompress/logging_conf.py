# qtcompress/logging_conf.py
"""
Logging setup for host applications embedding qtcompress. The library itself
only logs through module loggers and never configures handlers.
Console output plus an optional rotating log file.
"""

import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None,
                  rotate_bytes: int = 5 * 1024 * 1024, rotate_keep: int = 3) -> None:
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=lvl, format=LOG_FORMAT)
    logging.getLogger().setLevel(lvl)

    if log_file:
        handler = RotatingFileHandler(
            log_file,
            maxBytes=int(rotate_bytes),
            backupCount=int(rotate_keep),
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)
