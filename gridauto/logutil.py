# gridauto/logutil.py
"""
Console and file logging for the command-line entry point.
Library modules only create loggers under the 'gridauto' hierarchy;
handlers are installed here, once, by the application.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

_initialized: bool = False


class GridLogFormatter(logging.Formatter):
    """Formatter with millisecond timestamps and optional thread name."""

    def __init__(self, include_thread: bool = False):
        self.include_thread = include_thread
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        level = record.levelname.ljust(8)

        if self.include_thread:
            thread = record.threadName[:12].ljust(12)
            prefix = f"[{timestamp}] [{level}] [{thread}] {record.name}: "
        else:
            prefix = f"[{timestamp}] [{level}] {record.name}: "

        message = record.getMessage()
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return prefix + message


def setup_logging(console_level: int = logging.INFO, log_file: Optional[Path] = None) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the 'gridauto' logger.

    Args:
        console_level: Logging level for console output
        log_file: Optional path of a debug-level log file

    Returns:
        The configured 'gridauto' logger
    """
    global _initialized

    root_logger = logging.getLogger("gridauto")
    if _initialized:
        return root_logger
    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(GridLogFormatter())
    root_logger.addHandler(console_handler)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(GridLogFormatter(include_thread=True))
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning("Could not create log file: %s", e)

    _initialized = True
    return root_logger
