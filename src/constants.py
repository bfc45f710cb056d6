import os
from typing import Optional

# System state
TESTING: bool = False
INITIALIZED: bool = False
SERVICE: Optional[str] = None  # Track current service (api, reader)

def is_development_mode() -> bool:
    """
    Check if the application is running in development mode.

    :return: True if FLASK_ENV is set to 'development', False otherwise
    """
    flask_env = os.getenv('FLASK_ENV', 'production').lower()
    return flask_env == 'development'

# Get the src directory
SRC_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(SRC_DIR)

def get_log_dir() -> str:
    """
    Get the log directory path, optionally with service subdirectory.

    :return: Path to the log directory
    """
    base_log_dir = os.path.join(PROJECT_ROOT, "logs")

    if SERVICE:
        return os.path.join(base_log_dir, SERVICE)

    return base_log_dir

# Dynamic log directory based on service
LOG_DIR = get_log_dir()
REQUEST_LOG_DIR = os.path.join(LOG_DIR, "requests")
CONFIG_DIR = os.path.join(PROJECT_ROOT, "config")

# Saved words and user settings live here
_PROD_DATA_DIR = os.path.join(PROJECT_ROOT, "data")
DATA_DIR = _PROD_DATA_DIR

def get_store_path() -> str:
    """
    Get the path of the JSON store holding settings and saved words.

    :return: Path to the store file
    """
    return os.path.join(DATA_DIR, "wordlens_store.json")

def init_testing(test_data_dir: Optional[str] = None, service: Optional[str] = None) -> None:
    """
    Initialize system for testing mode.

    :param test_data_dir: Optional explicit data directory for stores written during tests
    :param service: Optional service name
    """
    global TESTING, INITIALIZED, DATA_DIR, SERVICE, LOG_DIR, REQUEST_LOG_DIR
    TESTING = True
    INITIALIZED = True
    SERVICE = service
    if test_data_dir:
        DATA_DIR = test_data_dir

    LOG_DIR = get_log_dir()
    REQUEST_LOG_DIR = os.path.join(LOG_DIR, "requests")

def init_production(service: Optional[str] = None) -> None:
    """
    Initialize system for production mode.

    :param service: Optional service name
    """
    global TESTING, INITIALIZED, DATA_DIR, SERVICE, LOG_DIR, REQUEST_LOG_DIR
    TESTING = False
    INITIALIZED = True
    SERVICE = service
    DATA_DIR = _PROD_DATA_DIR

    LOG_DIR = get_log_dir()
    REQUEST_LOG_DIR = os.path.join(LOG_DIR, "requests")

def reset() -> None:
    """Reset to uninitialized state (primarily for testing)."""
    global TESTING, INITIALIZED, DATA_DIR, SERVICE, LOG_DIR, REQUEST_LOG_DIR
    TESTING = False
    INITIALIZED = False
    SERVICE = None
    DATA_DIR = _PROD_DATA_DIR

    LOG_DIR = get_log_dir()
    REQUEST_LOG_DIR = os.path.join(LOG_DIR, "requests")
