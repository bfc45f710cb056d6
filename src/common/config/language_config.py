"""Target language configuration for wordlens."""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import tomli

import constants
from common.base.logging_config import get_logger

logger = get_logger(__name__)

# Language code that asks extraction to pick the first non-metalanguage section
AUTO_DETECT = "auto"

@dataclass
class LanguageConfig:
    """Language configuration data structure."""
    name: str
    code: str
    section: str = ""
    popular: bool = False

    @property
    def is_auto(self) -> bool:
        return self.code == AUTO_DETECT

    def to_dict(self) -> Dict[str, object]:
        return {'code': self.code, 'name': self.name, 'popular': self.popular}

class LanguageManager:
    """Manages target language configuration and validation."""

    def __init__(self, config_path: str):
        """
        Initialize language manager with configuration file.

        :param config_path: Path to TOML configuration file
        """
        self.config_path = config_path
        self.languages: Dict[str, LanguageConfig] = {}
        self.default_language = "ru"
        self.metalanguage = "English"
        self._load_config()

    def _load_config(self) -> None:
        """Load and validate language configuration from TOML file."""
        try:
            logger.info(f"Loading language configuration from {self.config_path}")
            with open(self.config_path, 'rb') as f:
                config = tomli.load(f)

            defaults = config.get('defaults', {})
            self.default_language = defaults.get('default_language', 'ru')
            self.metalanguage = defaults.get('metalanguage', 'English')

            for code, settings in config.get('languages', {}).items():
                self.languages[code] = LanguageConfig(
                    name=settings.get('name', code),
                    code=code,
                    section=settings.get('section', '' if code == AUTO_DETECT else settings.get('name', code)),
                    popular=bool(settings.get('popular', False)),
                )

            self._validate_config()
            logger.info(f"Language configuration loaded successfully: {len(self.languages)} languages")

        except Exception as e:
            logger.error(f"Error loading language configuration: {str(e)}")
            raise

    def _validate_config(self) -> None:
        """Validate language configuration for consistency."""
        if not self.languages:
            raise ValueError("No languages defined in configuration")

        if self.default_language not in self.languages:
            raise ValueError(f"Default language '{self.default_language}' not found in language list")

        for code, config in self.languages.items():
            if not config.is_auto and not config.section:
                raise ValueError(f"Language '{code}' has no section name")

    def is_known(self, code: Optional[str]) -> bool:
        return isinstance(code, str) and code in self.languages

    def get_language_config(self, code: Optional[str]) -> LanguageConfig:
        """
        Get configuration for a language.

        :param code: Language code to get config for
        :return: Language configuration or default if not found
        """
        if not self.is_known(code):
            logger.warning(f"Requested language '{code}' not found, using default")
            return self.languages[self.default_language]
        return self.languages[code]

    def section_for(self, code: Optional[str]) -> Optional[str]:
        """
        Get the section heading id for a language.

        :param code: Language code
        :return: Section id, or None in auto-detect mode
        """
        config = self.get_language_config(code)
        return None if config.is_auto else config.section

    def popular_languages(self) -> List[LanguageConfig]:
        return [lang for lang in self.languages.values() if lang.popular]

    def get_all_languages(self) -> List[LanguageConfig]:
        """
        Get all language configurations, popular languages first then by name.

        :return: List of language configurations
        """
        return sorted(self.languages.values(), key=lambda lang: (not lang.popular, lang.name))

# Default configuration file path
DEFAULT_CONFIG_PATH = Path(constants.CONFIG_DIR) / "languages.toml"

# Global language manager instance
_language_manager = None

def init_language_manager(config_path: Optional[str] = None) -> LanguageManager:
    """
    Initialize global language manager instance.

    :param config_path: Path to language configuration file
    :return: Language manager instance
    """
    global _language_manager
    config_path = config_path or DEFAULT_CONFIG_PATH
    logger.info(f"Initializing language manager with config path: {config_path}")
    _language_manager = LanguageManager(config_path)
    return _language_manager

def get_language_manager() -> LanguageManager:
    """
    Get global language manager instance.

    :return: Language manager instance
    """
    global _language_manager
    if _language_manager is None:
        logger.info("Language manager not initialized, initializing with default config")
        _language_manager = LanguageManager(DEFAULT_CONFIG_PATH)
    return _language_manager
