"""
rtlink Logging Configuration

Centralized logging setup for consistent formatting across the library.
Console output is coloured when stdout is a capable terminal; a log file is
added only when RTLINK_LOG_FILE names one.

Usage:
    from rtlink.shared.log import get_logger

    logger = get_logger(__name__)
    logger.info("Connecting...")
    logger.error("Protocol error", extra={"connection_id": "a1b2", "msg_type": "result"})
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional
import os


# ========================================
#           LOGGING FORMATTERS
# ========================================

class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output"""

    # ANSI Color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class GenericFormatter(logging.Formatter):
    """Prefixes the message with connection context passed through ``extra=``."""

    def format(self, record: logging.LogRecord) -> str:
        context = []

        if hasattr(record, 'connection_id'):
            context.append(f"conn={record.connection_id}")
        if hasattr(record, 'msg_type'):
            context.append(f"msg={record.msg_type}")
        if hasattr(record, 'call_id'):
            context.append(f"id={record.call_id}")
        if hasattr(record, 'method'):
            context.append(f"method={record.method}")

        formatted = super().format(record)
        if context:
            return f"[{' '.join(context)}] {formatted}"
        return formatted


# ========================================
#           LOGGING CONFIGURATION
# ========================================

_loggers_configured = set()

def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger for the given module.

    Args:
        name: Usually __name__ from the calling module
        level: Override log level ("DEBUG", "INFO", "WARNING", "ERROR")

    Returns:
        Configured logger instance

    Examples:
        logger = get_logger(__name__)
        logger.debug("Sent method", extra={"call_id": "7", "method": "getMetadata"})
    """
    logger = logging.getLogger(name)

    # Only configure each logger once
    if name not in _loggers_configured:
        _configure_logger(logger, level)
        _loggers_configured.add(name)

    return logger


def _configure_logger(logger: logging.Logger, level: Optional[str] = None) -> None:
    """Configure a logger with appropriate handlers and formatters"""

    logger.setLevel(_get_log_level(level))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    _add_console_handler(logger, colored=_is_development())
    log_file = os.getenv('RTLINK_LOG_FILE')
    if log_file:
        _add_file_handler(logger, Path(log_file))

    # Prevent duplicate messages from parent loggers
    logger.propagate = False


def _get_log_level(level: Optional[str] = None) -> int:
    """Determine appropriate log level"""

    level = level or os.getenv('RTLINK_LOG_LEVEL')
    if level:
        return getattr(logging, level.upper(), logging.INFO)

    return logging.DEBUG if _is_development() else logging.WARNING


def _is_development() -> bool:
    """Detect if we're in development mode"""
    return os.getenv('PYTHON_ENV', '').lower() in ['dev', 'development']


def _add_console_handler(logger: logging.Logger, colored: bool = True) -> None:
    """Add console handler with appropriate formatter"""

    fmt = '[%(levelname)-8s][%(asctime)s][%(name)-5s]: %(message)s'
    handler = logging.StreamHandler(sys.stderr)

    if colored and _supports_color():
        formatter: logging.Formatter = ColoredFormatter(
            fmt=fmt,
            datefmt='%H:%M:%S'
        )
    else:
        formatter = GenericFormatter(
            fmt=fmt,
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _add_file_handler(logger: logging.Logger, log_file: Path) -> None:
    """Add file handler writing to log_file"""

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)

    formatter = GenericFormatter(
        fmt='%(asctime)s | %(name)-30s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _supports_color() -> bool:
    """Check if terminal supports color output"""

    # stderr must be a terminal
    if not (hasattr(sys.stderr, "isatty") and sys.stderr.isatty()):
        return False

    # TERM should not be dumb
    if os.getenv("TERM", "") == "dumb":
        return False

    # Windows-specific check
    if sys.platform == "win32":
        # On modern Windows terminals, ANSI colors are supported
        return os.getenv("ANSICON") is not None or os.getenv("WT_SESSION") is not None or os.getenv("TERM_PROGRAM") == "vscode" or "WindowsTerminal" in os.getenv("TERM", "")

    return True
# ========================================
#           CONVENIENCE FUNCTIONS
# ========================================

def configure_root_logging(level: str = "INFO") -> None:
    """
    Configure root logging for the entire application.
    Call this once at application startup (the CLI does).

    Args:
        level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
    """
    root_logger = logging.getLogger()
    _configure_logger(root_logger, level)
    # Library loggers stop propagating once configured; bring them in line.
    for name in _loggers_configured:
        logging.getLogger(name).setLevel(root_logger.level)
