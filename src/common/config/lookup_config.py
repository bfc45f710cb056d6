"""Dictionary source, pipeline and overlay timing configuration."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import tomli

import constants
from common.base.logging_config import get_logger

logger = get_logger(__name__)

@dataclass
class SourceSettings:
    """Where and how the dictionary source is queried."""
    api_url: str = "https://en.wiktionary.org/w/api.php"
    page_url: str = "https://en.wiktionary.org/wiki/"
    user_agent: str = "wordlens/1.0 (dictionary overlay)"
    timeout_seconds: float = 6.0
    suggestion_limit: int = 5
    max_suggestions_tried: int = 3

@dataclass
class PipelineSettings:
    """Bounds for the resolution cascade and for caches shared by the HTTP service."""
    max_depth: int = 2
    shared_cache_entries: int = 5000

@dataclass
class OverlaySettings:
    """Interaction timing, in seconds, and selection bounds in characters."""
    hover_delay: float = 0.3
    switch_delay: float = 0.2
    hide_delay: float = 0.6
    overlay_padding: float = 20
    min_selection: int = 2
    max_selection: int = 50

@dataclass
class LookupConfig:
    source: SourceSettings = field(default_factory=SourceSettings)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    overlay: OverlaySettings = field(default_factory=OverlaySettings)

def _build(cls, table: Dict[str, Any]):
    """Instantiate a settings dataclass from a TOML table, ignoring unknown keys."""
    known = {f.name for f in fields(cls)}
    unknown = set(table) - known
    if unknown:
        logger.warning(f"Ignoring unknown {cls.__name__} keys: {', '.join(sorted(unknown))}")
    return cls(**{k: v for k, v in table.items() if k in known})

def load_lookup_config(config_path: Optional[str] = None) -> LookupConfig:
    """
    Load lookup configuration from TOML; a missing file yields the defaults.

    :param config_path: Path to TOML configuration file
    :return: LookupConfig instance
    """
    config_path = str(config_path or DEFAULT_CONFIG_PATH)
    if not os.path.exists(config_path):
        logger.info(f"No lookup configuration at {config_path}, using defaults")
        return LookupConfig()

    with open(config_path, 'rb') as f:
        raw = tomli.load(f)

    config = LookupConfig(
        source=_build(SourceSettings, raw.get('source', {})),
        pipeline=_build(PipelineSettings, raw.get('pipeline', {})),
        overlay=_build(OverlaySettings, raw.get('overlay', {})),
    )
    if config.pipeline.max_depth < 1:
        raise ValueError(f"pipeline.max_depth must be at least 1, got {config.pipeline.max_depth}")
    if config.pipeline.shared_cache_entries < 1:
        raise ValueError(f"pipeline.shared_cache_entries must be at least 1, got {config.pipeline.shared_cache_entries}")
    if config.source.timeout_seconds <= 0:
        raise ValueError("source.timeout_seconds must be positive")

    logger.info(f"Lookup configuration loaded from {config_path}")
    return config

# Default configuration file path
DEFAULT_CONFIG_PATH = Path(constants.CONFIG_DIR) / "lookup.toml"

# Global lookup configuration
_lookup_config: Optional[LookupConfig] = None

def init_lookup_config(config_path: Optional[str] = None) -> LookupConfig:
    global _lookup_config
    _lookup_config = load_lookup_config(config_path)
    return _lookup_config

def get_lookup_config() -> LookupConfig:
    global _lookup_config
    if _lookup_config is None:
        _lookup_config = load_lookup_config()
    return _lookup_config
