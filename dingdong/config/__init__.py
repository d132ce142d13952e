"""Configuration for the DingDong server."""

from .settings import (
    APP_NAME,
    BRAND_NAME,
    DESCRIPTION,
    TECHNICAL_NAME,
    VERSION,
    ConfigManager,
    ServerConfig,
    get_all_flags,
    is_enabled,
)

__all__ = [
    'APP_NAME',
    'BRAND_NAME',
    'DESCRIPTION',
    'TECHNICAL_NAME',
    'VERSION',
    'ConfigManager',
    'ServerConfig',
    'get_all_flags',
    'is_enabled',
]
