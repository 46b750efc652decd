#!/usr/bin/env python3
"""
Document Store Client Logging Configuration

Centralized logging setup for consistent formatting across the project.
Supports both development (console + file) and production (console) modes.

Usage:
    from shared.log import get_logger

    logger = get_logger(__name__)
    logger.info("Socket connected.")
    logger.error("Connect failed", extra={"endpoint": "https://example.com", "event": "connect_error"})
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional, Any
import os


# ========================================
#           LOGGING FORMATTERS
# ========================================

class ContextFormatter(logging.Formatter):
    """Prefixes the message with connection context passed through ``extra``."""

    def formatMessage(self, record: logging.LogRecord) -> str:
        context = []

        if hasattr(record, 'endpoint'):
            context.append(f"endpoint={record.endpoint}")
        if getattr(record, 'sid', None):
            context.append(f"sid={record.sid[:8]}...")
        if hasattr(record, 'event'):
            context.append(f"event={record.event}")
        if hasattr(record, 'document'):
            context.append(f"doc={record.document}")

        if not context:
            return super().formatMessage(record)

        message = record.message
        record.message = f"[{' '.join(context)}] {message}"
        try:
            return super().formatMessage(record)
        finally:
            record.message = message


class ColoredFormatter(ContextFormatter):
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
        logger.info("Socket connected.")

        # With context
        logger.info("Document received", extra={
            "endpoint": "https://docstore.example.com",
            "event": "document_received",
        })
    """
    logger = logging.getLogger(name)

    # Only configure each logger once
    if name not in _loggers_configured:
        _configure_logger(logger, level)
        _loggers_configured.add(name)

    return logger


def _configure_logger(logger: logging.Logger, level: Optional[str] = None) -> None:
    """Configure a logger with appropriate handlers and formatters"""

    log_level = _get_log_level(level)
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    if _is_development():
        _add_file_handler(logger)
        _add_console_handler(logger, colored=True)
    else:
        _add_console_handler(logger, colored=False)

    # Prevent duplicate messages from parent loggers
    logger.propagate = False


def _get_log_level(level: Optional[str] = None) -> int:
    """Determine appropriate log level"""

    if level:
        return getattr(logging, level.upper(), logging.INFO)

    env_level = os.getenv('DOCSTORE_LOG_LEVEL')
    if env_level:
        return getattr(logging, env_level.upper(), logging.INFO)

    return logging.INFO


def _is_development() -> bool:
    """Detect if we're in development mode"""
    return (
        os.getenv('DOCSTORE_ENV', '').lower() in ['dev', 'development'] or
        'pytest' in sys.modules
    )


def _add_console_handler(logger: logging.Logger, colored: bool = True) -> None:
    """Add console handler with appropriate formatter"""

    fmt = '[%(levelname)-8s][%(asctime)s][%(name)-5s]: %(message)s'
    handler = logging.StreamHandler(sys.stdout)

    if colored and _supports_color():
        formatter = ColoredFormatter(
            fmt=fmt,
            datefmt='%H:%M:%S'
        )
    else:
        formatter = ContextFormatter(
            fmt=fmt,
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _add_file_handler(logger: logging.Logger) -> None:
    """Add file handler for development logging"""

    log_dir = Path(os.getenv('DOCSTORE_LOG_DIR', 'logs'))
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / "docstore.log"
    handler = logging.FileHandler(log_file)

    formatter = ContextFormatter(
        fmt='%(asctime)s | %(name)-30s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _supports_color() -> bool:
    """Check if terminal supports color output"""

    # stdout must be a terminal
    if not (hasattr(sys.stdout, "isatty") and sys.stdout.isatty()):
        return False

    if os.getenv("NO_COLOR") is not None:
        return False

    # TERM should not be dumb
    if os.getenv("TERM", "") == "dumb":
        return False

    if sys.platform == "win32":
        return os.getenv("ANSICON") is not None or os.getenv("WT_SESSION") is not None or os.getenv("TERM_PROGRAM") == "vscode" or "WindowsTerminal" in os.getenv("TERM", "")

    return True

# ========================================
#           CONVENIENCE FUNCTIONS
# ========================================

def configure_root_logging(level: str = "INFO") -> None:
    """
    Configure root logging for the entire application.
    Call this once at application startup.

    Args:
        level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
    """
    root_logger = logging.getLogger()
    _configure_logger(root_logger, level)

    # Project loggers do not propagate, so they follow the root level here
    for name in _loggers_configured:
        logging.getLogger(name).setLevel(root_logger.level)


def log_event(logger: logging.Logger, level: str, message: str,
              event: Optional[str] = None,
              **context: Any) -> None:
    """
    Log a socket lifecycle or document event with structured context.

    Args:
        logger: Logger instance
        level: Log level ("debug", "info", "warning", "error")
        message: Log message
        event: Socket.IO event name, shown as ``event=...``
        **context: Additional context fields (endpoint, sid, document, ...)

    Example:
        log_event(logger, "info", "Socket connected.",
                  event="connect", endpoint=config.api_endpoint)
    """

    extra_context = {}
    if event:
        extra_context['event'] = event
    extra_context.update({k: v for k, v in context.items() if v is not None})

    log_func = getattr(logger, level.lower())
    log_func(message, extra=extra_context)
