# Configuration module for esclient
from .settings import (
    ConfigurationError,
    Environment,
    Library,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "ConfigurationError",
    "Environment",
    "Library",
    "Settings",
    "clear_settings_cache",
    "get_settings",
]
