"""Common - Shared functionality across wordlens components."""

# Import key subpackages for easy access
from . import base
from . import services
from . import config
from . import storage

__all__ = ["base", "services", "config", "storage"]
