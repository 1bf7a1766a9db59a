"""
Logging Utilities

This module provides standardized logging configuration for call simulations.
"""

import os
import sys
import json
import logging
import logging.handlers
from datetime import datetime
from typing import Dict, Any, Optional, Union


# Default log format
DEFAULT_LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Log levels dictionary for easier configuration
LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL
}


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(
        self,
        include_location: bool = False,
        additional_fields: Optional[Dict[str, Any]] = None
    ):
        """Initialize the JSON formatter.

        Args:
            include_location: Whether to include file, function and line
            additional_fields: Additional fields to include in JSON log
        """
        super().__init__()
        self.include_location = include_location
        self.additional_fields = additional_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'message': record.getMessage(),
            'timestamp': int(record.created * 1000),  # milliseconds
            'time': datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S.%f')[:-3],
            'level': record.levelname,
            'logger': record.name,
        }

        if self.include_location:
            log_data['path'] = record.pathname
            log_data['function'] = record.funcName
            log_data['line'] = record.lineno

        log_data.update(self.additional_fields)

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(log_data)


def get_log_level(log_level: Union[str, int]) -> int:
    """Convert a level name such as ``'debug'`` to its numeric value."""
    if isinstance(log_level, str):
        return LOG_LEVELS.get(log_level.lower(), logging.INFO)
    return log_level


def setup_logger(
    name: str,
    log_level: Union[str, int] = 'info',
    log_file: Optional[str] = None,
    console: bool = True,
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    json_format: bool = False,
    file_size_limit: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5
) -> logging.Logger:
    """Set up a logger with file and/or console handlers.

    Args:
        name: Logger name
        log_level: Logging level ('debug', 'info', 'warning', 'error', 'critical')
        log_file: Path to log file (if None, file logging is disabled)
        console: Whether to enable console logging
        log_format: Log format string
        date_format: Date format string
        json_format: Emit one JSON object per record instead of text
        file_size_limit: Maximum log file size in bytes before rotation
        backup_count: Number of backup log files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    level = get_log_level(log_level)
    logger.setLevel(level)

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    if json_format:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(log_format, date_format)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        # Use rotating file handler to limit log file size
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=file_size_limit,
            backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    # Reports go to stdout, so console logging uses stderr
    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(level)
        logger.addHandler(console_handler)

    return logger
