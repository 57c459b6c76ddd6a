"""
Logging Configuration Module.

Centralized logging for the delivery-note scanner. Every module logs
under the ``note_scanner`` namespace so the host application can route
or silence the pipeline as a unit.

Usage:
    from note_scanner.utils.logger import setup_logger, get_logger

    # Initialize logging (call once at startup)
    setup_logger()

    # Get logger in any module
    logger = get_logger(__name__)
    logger.info("Processing delivery note...")

    # Per-note messages carry the note id and file name
    note_logger = get_note_logger(logger, note.id, note.file_name)
    note_logger.info("OCR finished")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

import colorama
from colorama import Fore, Style

colorama.init()

# Root of the package's logger hierarchy
LOGGER_NAMESPACE = "note_scanner"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# urllib3 logs full request URLs at DEBUG; the Vision API key is in the query string
QUIET_LIBRARIES = ("urllib3", "PIL")


class ColoredFormatter(logging.Formatter):
    """
    Formatter that colours console output by level.

    Colors:
        - DEBUG: Cyan
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Red (bold)
    """

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }
    RESET = Style.RESET_ALL

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, '')
        return f"{color}{super().format(record)}{self.RESET}"


class NoteLogAdapter(logging.LoggerAdapter):
    """Prefixes every message with ``[<note id> <file name>]``."""

    def process(self, msg, kwargs):
        return f"[{self.extra['note_id']} {self.extra['file_name']}] {msg}", kwargs


def _console_handler(level: int, log_format: str, date_format: str, colorize: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    formatter_cls = ColoredFormatter if colorize else logging.Formatter
    handler.setFormatter(formatter_cls(log_format, datefmt=date_format))
    return handler


def _file_handler(
    log_file: str,
    level: int,
    log_format: str,
    date_format: str,
    max_bytes: int,
    backup_count: int
) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    return handler


def setup_logger(
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,  # 10 MB
    backup_count: int = 5,
    colorize: bool = True
) -> logging.Logger:
    """
    Configure the ``note_scanner`` logger.

    Call once when the host application starts. Loggers obtained through
    get_logger() inherit this configuration. Calling it again replaces
    the handlers rather than adding to them.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Custom log format string.
        date_format: Custom date format string.
        log_file: Path to log file. If None, file logging is disabled.
        max_bytes: Maximum log file size before rotation.
        backup_count: Number of backup files to keep.
        colorize: Whether to colorize console output.

    Returns:
        Configured package logger.

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/note_scanner.log")
    """
    log_format = log_format or DEFAULT_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT
    numeric_level = getattr(logging, level.upper())

    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    package_logger.setLevel(numeric_level)

    for handler in list(package_logger.handlers):
        handler.close()
        package_logger.removeHandler(handler)

    package_logger.addHandler(_console_handler(numeric_level, log_format, date_format, colorize))
    if log_file:
        package_logger.addHandler(_file_handler(
            log_file, numeric_level, log_format, date_format, max_bytes, backup_count
        ))

    package_logger.propagate = False

    for library in QUIET_LIBRARIES:
        logging.getLogger(library).setLevel(logging.WARNING)

    package_logger.info(f"Logging initialized (level={level.upper()}, file={log_file or 'off'})")
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package namespace.

    Example:
        >>> get_logger("note_scanner.batch.processor").name
        'note_scanner.batch.processor'
        >>> get_logger("host_app").name
        'note_scanner.host_app'
    """
    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def get_note_logger(logger: logging.Logger, note_id: str, file_name: str) -> NoteLogAdapter:
    """Wrap a module logger so its messages identify one scanned note."""
    return NoteLogAdapter(logger, {'note_id': note_id, 'file_name': file_name})


def setup_logger_from_config() -> logging.Logger:
    """
    Initialize logging using the ``logging`` section of settings.yaml.

    Returns:
        Configured package logger.
    """
    from config import get_config

    log_file = None
    if get_config("logging.file.enabled", False):
        log_file = get_config("logging.file.path")

    return setup_logger(
        level=get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=log_file,
        max_bytes=get_config("logging.file.max_bytes", 10485760),
        backup_count=get_config("logging.file.backup_count", 5),
        colorize=get_config("logging.console.colorize", True)
    )
