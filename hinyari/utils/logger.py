"""
Logger utility for the ranking API
Provides structured logging with optional file output and console output
"""

import logging
import sys
from pathlib import Path


DEFAULT_LOGGER_NAME = "hinyari"


class Logger:
    """Thin wrapper around a stdlib logger with file and console handlers"""

    def __init__(self, name=DEFAULT_LOGGER_NAME, config=None):
        """
        Initialize logger

        Args:
            name: Logger name
            config: Logging settings (level, file, console)
        """
        self.name = name
        self.logger = logging.getLogger(name)

        if config is None:
            config = {
                'level': 'INFO',
                'file': None,
                'console': True
            }

        level = getattr(logging, str(config.get('level', 'INFO')).upper(), logging.INFO)
        self.logger.setLevel(level)

        # Handlers are rebuilt on every construction so repeated calls don't stack them
        self.logger.handlers = []

        detailed_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        simple_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

        log_file = config.get('file')
        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(level)
            file_handler.setFormatter(detailed_formatter)
            self.logger.addHandler(file_handler)

        if config.get('console', True):
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level)
            console_handler.setFormatter(simple_formatter)
            self.logger.addHandler(console_handler)

    def debug(self, message, **kwargs):
        """Log debug message"""
        self.logger.debug(message, extra=kwargs)

    def info(self, message, **kwargs):
        """Log info message"""
        self.logger.info(message, extra=kwargs)

    def warning(self, message, **kwargs):
        """Log warning message"""
        self.logger.warning(message, extra=kwargs)

    def error(self, message, **kwargs):
        """Log error message"""
        self.logger.error(message, extra=kwargs)

    def exception(self, message, **kwargs):
        """Log error message with the active traceback"""
        self.logger.exception(message, extra=kwargs)


_configured = {}


def configure_logging(config=None):
    """
    Set the logging configuration used by get_logger

    Args:
        config: Logging settings dictionary
    """
    _configured.clear()
    if config:
        _configured.update(config)


def get_logger(name=DEFAULT_LOGGER_NAME, config=None):
    """
    Get or create a logger instance

    Args:
        name: Logger name
        config: Configuration dictionary, defaults to the configured one

    Returns:
        Logger instance
    """
    return Logger(name, config or _configured or None)
