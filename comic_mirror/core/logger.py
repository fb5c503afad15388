"""
Logging System

This module provides centralized logging configuration for the comic mirror.
Library modules log through ``logging.getLogger(__name__)``; the command line
shell calls ``initialize_logging`` once to attach handlers.
"""

import logging
import logging.handlers
import os
import sys
from typing import Optional, Dict
from pathlib import Path


APP_NAME = "comic_mirror"


class StdoutHandler(logging.StreamHandler):
    """Console handler that writes to whatever sys.stdout is at emit time."""

    def __init__(self, level: int = logging.NOTSET):
        logging.Handler.__init__(self, level)

    @property
    def stream(self):
        return sys.stdout


class MirrorLogger:
    """
    Centralized logging for the comic mirror.

    Sets up a rotating debug log, a rotating error log, and console output
    under the ``comic_mirror`` logger namespace.
    """

    def __init__(self, log_dir: str = "logs", app_name: str = APP_NAME):
        """
        Initialize the logging system.

        Args:
            log_dir: Directory to store log files
            app_name: Name of the root logger and log file prefix
        """
        self.log_dir = Path(log_dir)
        self.app_name = app_name
        self.loggers: Dict[str, logging.Logger] = {}

        self.log_dir.mkdir(parents=True, exist_ok=True)

    def setup_logger(self, level: int = logging.INFO) -> logging.Logger:
        """
        Set up the main logger with file and console handlers.

        Args:
            level: Console logging level (default: INFO)

        Returns:
            Configured logger instance
        """
        logger = logging.getLogger(self.app_name)
        logger.setLevel(logging.DEBUG)

        # Prevent duplicate handlers
        if logger.handlers:
            self.loggers['main'] = logger
            return logger

        detailed_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(threadName)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%H:%M:%S'
        )

        log_file = self.log_dir / f"{self.app_name}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)

        console_handler = StdoutHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(console_formatter)

        error_file = self.log_dir / f"{self.app_name}_errors.log"
        error_handler = logging.handlers.RotatingFileHandler(
            error_file,
            maxBytes=5*1024*1024,  # 5MB
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
        logger.addHandler(error_handler)

        self.loggers['main'] = logger
        return logger

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get a child logger for a specific component.

        Args:
            name: Name of the component

        Returns:
            Logger instance named ``<app_name>.<name>``
        """
        full_name = f"{self.app_name}.{name}"

        if full_name not in self.loggers:
            self.loggers[full_name] = logging.getLogger(full_name)

        return self.loggers[full_name]

    def log_system_info(self):
        """Log system information for debugging."""
        logger = self.get_logger('system')

        logger.debug("=== comic_mirror started ===")
        logger.debug(f"Python version: {sys.version}")
        logger.debug(f"Platform: {sys.platform}")
        logger.debug(f"Working directory: {os.getcwd()}")
        logger.debug(f"Log directory: {self.log_dir.absolute()}")


_logger_instance: Optional[MirrorLogger] = None


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Name of the component (optional)

    Returns:
        The component logger, or the main logger when no name is given
    """
    if name:
        return logging.getLogger(f"{APP_NAME}.{name}")
    return logging.getLogger(APP_NAME)


def initialize_logging(log_dir: str = "logs", level: int = logging.INFO) -> logging.Logger:
    """
    Initialize the global logging system.

    Args:
        log_dir: Directory for log files
        level: Console logging level

    Returns:
        The configured main logger
    """
    global _logger_instance
    shutdown_logging()
    _logger_instance = MirrorLogger(log_dir)
    logger = _logger_instance.setup_logger(level)
    _logger_instance.log_system_info()
    return logger


def shutdown_logging():
    """Detach and close the handlers installed by initialize_logging."""
    global _logger_instance
    logger = logging.getLogger(APP_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    _logger_instance = None
