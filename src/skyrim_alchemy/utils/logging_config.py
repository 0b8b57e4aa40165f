"""
Logging configuration for skyrim_alchemy.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from ..settings import AppSettings

CONSOLE_FORMAT = "%(asctime)s : %(levelname)-8s : %(message)s"
CONSOLE_DATE_FORMAT = "%H:%M:%S"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours the level name."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset = self.COLORS["RESET"]
        formatted = super().format(record)

        # Only the first occurrence, which is the level column
        if record.levelname in formatted:
            formatted = formatted.replace(
                record.levelname, f"{color}{record.levelname}{reset}", 1
            )
        return formatted


class CSVFormatter(logging.Formatter):
    """Semicolon-separated, quoted output for the log file."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, self.datefmt)
        level = record.levelname.ljust(8)
        duration = f"{int(record.relativeCreated)} ms"
        module = record.name
        line_no = str(record.lineno)
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        # Standard CSV quote escaping
        message = message.replace('"', '""')

        return f'"{timestamp}";{level};"{duration}";"{module}";"{line_no}";"{message}"'


def _console_level(settings: AppSettings, verbosity: int) -> int:
    if verbosity >= 1:
        return logging.DEBUG
    return getattr(logging, settings.logging.console_log_level.upper(), logging.INFO)


def setup_logging(
    settings: AppSettings,
    verbosity: int = 0,
    log_file: Optional[Path] = None,
) -> None:
    """
    Setup application logging with console and optional file handlers.

    Args:
        settings: AppSettings instance for all logging configuration
        verbosity: Number of -v flags; 1 or more forces DEBUG on the console
        log_file: Overrides the configured log file location
    """
    console_level = _console_level(settings, verbosity)
    use_colors = settings.logging.console_use_colors
    file_enabled = settings.logging.file_logging
    log_path = Path(log_file) if log_file is not None else Path(settings.logging.log_file_path)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    if use_colors:
        console_formatter: logging.Formatter = ColoredFormatter(
            fmt=CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT
        )
    else:
        console_formatter = logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # File handler with rotation - only if enabled
    file_handler_ok = False
    if file_enabled:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=LOG_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setLevel(logging.DEBUG)  # File always captures DEBUG
            file_handler.setFormatter(CSVFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
            root_logger.addHandler(file_handler)
            file_handler_ok = True
        except OSError as e:
            # If file logging fails, just continue with console logging
            root_logger.warning(f"Could not setup file logging: {e}")

    logger = logging.getLogger(__name__)
    logger.debug(
        f"Console logging: {logging.getLevelName(console_level)} (colors: {use_colors})"
    )
    if file_handler_ok:
        logger.debug(f"File logging: DEBUG at {log_path.absolute()}")
