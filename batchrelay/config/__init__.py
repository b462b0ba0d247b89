"""Configuration module for batchrelay."""

from batchrelay.config.loader import load_config, get_config_path, save_config
from batchrelay.config.schema import Config, LoggingConfig, RelayConfig
from batchrelay.config.access import get_config, clear_config_cache

__all__ = [
    "Config",
    "LoggingConfig",
    "RelayConfig",
    "load_config",
    "save_config",
    "get_config_path",
    "get_config",
    "clear_config_cache",
]
