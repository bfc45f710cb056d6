"""
Centralized logging configuration for wordlens.

Sets up consistent logging across the service and the lookup core:
- Detailed formatting including line numbers and function names
- Console output plus a rotating log file under constants.LOG_DIR
- A separate level for the lookup core ('wordlens') so cascade steps can be
  traced without turning on DEBUG for every third-party library
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import constants

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d:%(funcName)s - %(message)s'

def configure_logging(
    log_level: str = "INFO",
    app_log_level: str = "DEBUG",
    log_filename: Optional[str] = None
) -> None:
    """
    Configure application-wide logging settings.

    Args:
        log_level: Root logger level (default: "INFO")
        app_log_level: Level for the 'wordlens' and 'web' loggers (default: "DEBUG")
        log_filename: Optional custom log filename to use instead of default
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Clear any existing handlers to avoid duplicates on reconfiguration
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_dir = Path(constants.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file_path = log_dir / (log_filename or 'wordlens.log')

    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        maxBytes=1024 * 1024,  # 1MB per file
        backupCount=10,
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for name in ('wordlens', 'web'):
        logging.getLogger(name).setLevel(getattr(logging, app_log_level.upper()))

    # The HTTP client is chatty at DEBUG; cascade steps are logged by the pipeline instead
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    logging.info(f"Logging initialized: root_level={log_level}, app_level={app_log_level}, log_file={log_file_path}")

def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the standardized configuration.

    Args:
        name: Name for the logger, typically __name__ from the calling module

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)
