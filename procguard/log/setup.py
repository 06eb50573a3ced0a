import logging
import sys
from typing import Optional

from procguard import settings


class MaxLevelFilter(logging.Filter):
    """
    Passes only records below the given level, so the stdout handler
    leaves warnings and errors to the stderr handler.
    """
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record):
        return record.levelno < self.max_level


class MainFormatter(logging.Formatter):
    """The formatter shared by every handler the daemon installs."""

    def __init__(self):
        super().__init__(fmt=settings.LOG_FORMAT)


def setup_logging(console_level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configures the root logger for the application.
    Sets up stdout/stderr console handlers and, optionally, a log file,
    clearing any previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    :param log_file: Optional path of a file that receives all DEBUG+ records.
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handlers ---
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(console_level)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(MainFormatter())
    root_logger.addHandler(stdout_handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(max(console_level, logging.WARNING))
    stderr_handler.setFormatter(MainFormatter())
    root_logger.addHandler(stderr_handler)

    # --- File Handler (conditional) ---
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(MainFormatter())
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.error(f"Failed to open log file '{log_file}': {e}. File logging will be disabled.")
