"""
Logging Utilities

Centralized logging configuration for the feature pipeline.
Console output goes to stdout; an optional rotating file handler keeps a
run log next to the outputs.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional


DEFAULT_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

_loggers: Dict[str, logging.Logger] = {}


def setup_logging(
    config: Optional[Dict[str, Any]] = None,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: Optional[str] = None
) -> None:
    """
    Set up logging for the pipeline.

    Args:
        config: Logging section as a dictionary (``level``, ``format``, ``file``)
        log_level: Default log level, overridden by ``config['level']``
        log_file: Path to a log file, overridden by ``config['file']``
        log_format: Log message format, overridden by ``config['format']``
    """
    if config:
        log_level = config.get('level') or log_level
        log_format = config.get('format') or log_format
        log_file = config.get('file') or log_file

    formatter = logging.Formatter(log_format or DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT)
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger with the given name.

    Args:
        name: Logger name (typically module or class name)

    Returns:
        Logger instance
    """
    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
    return _loggers[name]


class LoggerMixin:
    """
    Mixin class that provides a ``logger`` property named after the class.
    """

    @property
    def logger(self) -> logging.Logger:
        if not hasattr(self, '_logger'):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger


class PipelineLogger:
    """
    Structured logger for pipeline execution.

    Prefixes every message with the current context (split, stage, ...) so
    interleaved train/test progress stays readable.
    """

    def __init__(self, name: str):
        self.logger = get_logger(name)
        self._context: Dict[str, Any] = {}

    def set_context(self, **kwargs) -> None:
        """Set logging context (e.g., split='train')."""
        self._context.update(kwargs)

    def clear_context(self) -> None:
        self._context = {}

    def _format_message(self, message: str) -> str:
        if self._context:
            context_str = " ".join(f"{k}={v}" for k, v in self._context.items())
            return f"[{context_str}] {message}"
        return message

    def info(self, message: str) -> None:
        self.logger.info(self._format_message(message))

    def debug(self, message: str) -> None:
        self.logger.debug(self._format_message(message))

    def warning(self, message: str) -> None:
        self.logger.warning(self._format_message(message))

    def error(self, message: str) -> None:
        self.logger.error(self._format_message(message))

    def exception(self, message: str) -> None:
        """Log exception with traceback."""
        self.logger.exception(self._format_message(message))

    def step_start(self, step_name: str) -> None:
        """Log the start of a pipeline stage."""
        self.info(f"{'=' * 20} Starting: {step_name} {'=' * 20}")

    def step_complete(self, step_name: str, duration: Optional[float] = None) -> None:
        """Log the completion of a pipeline stage."""
        if duration is not None:
            self.info(f"{'=' * 20} Completed: {step_name} ({duration:.2f}s) {'=' * 20}")
        else:
            self.info(f"{'=' * 20} Completed: {step_name} {'=' * 20}")

    def metric(self, name: str, value: Any) -> None:
        self.info(f"METRIC | {name}: {value}")

    def data_stats(self, name: str, count: int, columns: Optional[int] = None) -> None:
        """Log table dimensions."""
        if columns is not None:
            self.info(f"DATA | {name}: {count:,} rows, {columns} columns")
        else:
            self.info(f"DATA | {name}: {count:,} rows")
