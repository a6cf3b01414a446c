"""Logging configuration and utilities."""

import logging
import logging.handlers
import time
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "cloudsync"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    log_to_console: bool = True,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> logging.Logger:
    """Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        log_to_console: Whether to log to console
        max_file_size: Maximum size of log file before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else getattr(logging, log_level.upper()))
    logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, log_level.upper()))
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class ContextualLogger:
    """Logger that adds contextual information to log messages."""

    def __init__(self, logger: logging.Logger, context: dict):
        """Initialize contextual logger.

        Args:
            logger: Base logger
            context: Context dictionary to add to messages
        """
        self.logger = logger
        self.context = context

    def _format_message(self, message: str) -> str:
        context_str = " | ".join(f"{k}={v}" for k, v in self.context.items())
        return f"[{context_str}] {message}"

    def debug(self, message: str):
        self.logger.debug(self._format_message(message))

    def info(self, message: str):
        self.logger.info(self._format_message(message))

    def warning(self, message: str):
        self.logger.warning(self._format_message(message))

    def error(self, message: str):
        self.logger.error(self._format_message(message))


class TimedOperation:
    """Context manager for timing operations and logging results."""

    def __init__(self, logger, operation_name: str, log_level: str = "INFO"):
        """Initialize timed operation.

        Args:
            logger: Logger (or ContextualLogger) to use
            operation_name: Name of the operation
            log_level: Log level for timing messages
        """
        self.logger = logger
        self.operation_name = operation_name
        self.log_method = getattr(logger, log_level.lower())
        self.start_time = None
        self.duration = None

    def __enter__(self):
        self.start_time = time.monotonic()
        self.log_method(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.monotonic() - self.start_time
        if exc_type is None:
            self.log_method(f"Completed {self.operation_name} in {self.duration:.2f}s")
        else:
            self.logger.error(f"Failed {self.operation_name} after {self.duration:.2f}s: {exc_val}")
