"""
Logging setup for the forensic QR system.

Every module logs through a child of the "forensic_qr" logger:

    from forensic_qr.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Sealing evidence package...")

The CLI calls setup_logger_from_config() once at startup. Console output
is colorized per level; an optional rotating file keeps a plain copy for
the case record.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import IO, Optional

import colorama
from colorama import Fore, Style

colorama.init()

LOGGER_NAMESPACE = "forensic_qr"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024


class ColoredFormatter(logging.Formatter):
    """Console formatter that tints each line by severity."""

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        tint = self.LEVEL_COLORS.get(record.levelno, '')
        return f"{tint}{super().format(record)}{Style.RESET_ALL}"


class ConsoleHandler(logging.StreamHandler):
    """Console handler; a distinct type so it can be found and redirected."""


def _to_level(level: str) -> int:
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level}")
    return resolved


def setup_logger(
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = 5,
    colorize: bool = True,
    stream: Optional[IO[str]] = None
) -> logging.Logger:
    """
    Configure the "forensic_qr" logger.

    Calling it again replaces the previous handlers.

    Args:
        level: Level name for the logger and its handlers.
        log_format: Record format; DEFAULT_FORMAT when None.
        date_format: asctime format; DEFAULT_DATE_FORMAT when None.
        log_file: Rotating log file path. None disables file logging.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files kept.
        colorize: Tint console lines by level.
        stream: Console stream, stdout by default.

    Returns:
        The configured application logger.
    """
    numeric_level = _to_level(level)
    log_format = log_format or DEFAULT_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT

    app_logger = logging.getLogger(LOGGER_NAMESPACE)
    app_logger.setLevel(numeric_level)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    formatter_class = ColoredFormatter if colorize else logging.Formatter
    console = ConsoleHandler(stream or sys.stdout)
    console.setLevel(numeric_level)
    console.setFormatter(formatter_class(log_format, datefmt=date_format))
    app_logger.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
        )
        rotating.setLevel(numeric_level)
        rotating.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        app_logger.addHandler(rotating)

    app_logger.propagate = False
    app_logger.debug(f"Logging initialized at {logging.getLevelName(numeric_level)}")
    return app_logger


def set_level(level: int) -> None:
    """Apply a level to the application logger and every handler."""
    app_logger = logging.getLogger(LOGGER_NAMESPACE)
    app_logger.setLevel(level)
    for handler in app_logger.handlers:
        handler.setLevel(level)


def redirect_console(stream: IO[str]) -> None:
    """Point the console handler at another stream (file handlers untouched)."""
    for handler in logging.getLogger(LOGGER_NAMESPACE).handlers:
        if isinstance(handler, ConsoleHandler):
            handler.setStream(stream)


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the application namespace.

    Args:
        name: Usually __name__. Names already inside the namespace are
            used as they are.
    """
    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def setup_logger_from_config() -> logging.Logger:
    """
    Configure logging from the 'logging' section of settings.yaml.

    Returns:
        The configured application logger.
    """
    from config import ConfigurationManager

    settings = ConfigurationManager().section("logging")
    console = settings.get('console') or {}
    file_settings = settings.get('file') or {}

    try:
        return setup_logger(
            level=settings.get('level', "INFO"),
            log_format=settings.get('format'),
            date_format=settings.get('date_format'),
            log_file=file_settings.get('path') if file_settings.get('enabled') else None,
            max_bytes=file_settings.get('max_bytes', DEFAULT_MAX_BYTES),
            backup_count=file_settings.get('backup_count', 5),
            colorize=console.get('colorize', True)
        )
    except (OSError, ValueError) as e:
        print(f"Warning: Could not apply logging config, using defaults: {e}", file=sys.stderr)
        return setup_logger()
