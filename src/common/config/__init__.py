"""Common configuration management for wordlens."""

# Language configuration
from .language_config import (
    AUTO_DETECT,
    LanguageConfig,
    LanguageManager,
    init_language_manager,
    get_language_manager
)

# Lookup configuration
from .lookup_config import (
    LookupConfig,
    OverlaySettings,
    PipelineSettings,
    SourceSettings,
    init_lookup_config,
    get_lookup_config,
    load_lookup_config
)

__all__ = [
    # Language config
    'AUTO_DETECT', 'LanguageConfig', 'LanguageManager', 'init_language_manager', 'get_language_manager',

    # Lookup config
    'LookupConfig', 'OverlaySettings', 'PipelineSettings', 'SourceSettings',
    'init_lookup_config', 'get_lookup_config', 'load_lookup_config'
]
