#!/usr/bin/env python3
"""
logging_setup.py
================
Configures the root logger with a console handler and a rotating file
handler (``greenwave.log``, 1 MB, 2 backups).

Call :func:`setup_logging` once at startup, before the agents are built.
"""

import logging
from logging.handlers import RotatingFileHandler

from config import LOG_FILE, SCAN_DEBUG_LOG_FILE


def setup_logging(
    level: int = logging.INFO,
    log_file: str = LOG_FILE,
    scan_log_file: str = SCAN_DEBUG_LOG_FILE,
) -> None:
    """Apply a unified log format to both console and file output.

    Parameters
    ----------
    level : int
        Minimum severity level (e.g. ``logging.DEBUG``, ``logging.INFO``).
    log_file : str
        Path of the main rotating log file.
    scan_log_file : str
        Path of the DEBUG log dedicated to the signal agent's route scans.
    """
    root = logging.getLogger()
    root.setLevel(level)

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(fmt)

    fh = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=2)
    fh.setLevel(level)
    fh.setFormatter(fmt)

    root.handlers.clear()
    root.addHandler(ch)
    root.addHandler(fh)

    # ── Dedicated debug file for chunk scans and epoch supersession ──────
    scan_logger = logging.getLogger("signal_agent")
    scan_logger.setLevel(logging.DEBUG)
    scan_logger.handlers.clear()
    dfh = RotatingFileHandler(
        scan_log_file, maxBytes=5_000_000, backupCount=2
    )
    dfh.setLevel(logging.DEBUG)
    dfh.setFormatter(fmt)
    scan_logger.addHandler(dfh)
