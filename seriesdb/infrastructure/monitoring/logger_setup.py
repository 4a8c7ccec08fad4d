"""Centralized logging configuration for seriesdb.

Sets up standard Python logging with appropriate levels, formatters and
handlers, and selects the logger each database instance reports through.
"""

import logging
import sys
from typing import Any, Optional

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = None
FALLBACK_LOGGER_NAME = "seriesdb.console"

_LOGGER_METHODS = ("error", "warning", "info", "debug")


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = DEFAULT_LOG_FILE
) -> None:
    """Configures the root logger for the application.

    Args:
        log_level: The minimum logging level (e.g., logging.DEBUG, logging.INFO).
        log_format: The format string for log messages.
        log_file: Optional path to a file for logging output.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers attached to the root logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            logging.info(f"Logging to file: {log_file}")
        except OSError as e:
            logging.error(f"Failed to set up file logging to {log_file}: {e}", exc_info=True)

    logging.info(f"Logging configured. Level={logging.getLevelName(log_level)}")


def console_logger() -> logging.Logger:
    """Returns a logger that always writes to stderr, whatever the root setup."""
    fallback = logging.getLogger(FALLBACK_LOGGER_NAME)
    if not fallback.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        fallback.addHandler(handler)
        fallback.setLevel(logging.DEBUG)
        fallback.propagate = False
    return fallback


def resolve_logger(logger_spec: Any, instance_name: str = "_default_") -> Any:
    """Selects the logger a database instance reports through.

    Args:
        logger_spec: A logger name, or an object exposing error, warning, info
            and debug methods (e.g. a logging.Logger or LoggerAdapter).
        instance_name: Name of the database instance, for the fallback notice.

    Returns:
        The configured logger, or a console logger if the configured one is
        unusable.
    """
    if isinstance(logger_spec, str) and logger_spec:
        return logging.getLogger(logger_spec)
    if logger_spec is not None and all(callable(getattr(logger_spec, method, None)) for method in _LOGGER_METHODS):
        return logger_spec
    fallback = console_logger()
    fallback.warning(f"{instance_name}: The configured database logger is missing ({logger_spec!r}), using console")
    return fallback
