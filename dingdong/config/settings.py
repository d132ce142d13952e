"""
Application settings, server configuration and feature flags.

Application identity lives in module constants. Runtime configuration
(transport, host, port) is a validated pydantic model managed by
ConfigManager. Optional behaviors are feature flags controlled via
environment variables so they can be toggled without code changes.

Environment Variables:
    DINGDONG_FILE_LOGGING=true/false  - Write logs to ~/.toolprint/<name>/<name>.log
    DINGDONG_DYNAMIC_TOOLS=true/false - Register calculator/random-number at startup
    DINGDONG_LOG_LEVEL=debug|info|... - Default log level
    DINGDONG_LOG_DIR=/path            - Override the log directory
"""

import os
import re
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .. import __version__


def to_technical_name(name: str) -> str:
    """Convert a display name to kebab-case (e.g. 'DingDong Server' -> 'dingdong-server')."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


APP_NAME = "DingDong Notification Server"
TECHNICAL_NAME = to_technical_name(APP_NAME)
VERSION = __version__
DESCRIPTION = "macOS notification MCP server for desktop alerts"
BRAND_NAME = "Toolprint"

DEFAULT_PORT = 3000
DEFAULT_HOST = "localhost"


# Feature flags with environment variable overrides
FEATURE_FLAGS: Dict[str, bool] = {
    'file_logging': os.getenv('DINGDONG_FILE_LOGGING', 'true').lower() == 'true',
    'dynamic_tools': os.getenv('DINGDONG_DYNAMIC_TOOLS', 'false').lower() == 'true',
}


def is_enabled(flag: str) -> bool:
    """
    Check if a feature flag is enabled.

    Args:
        flag: Feature flag name (e.g., 'file_logging')

    Returns:
        True if flag is enabled, False otherwise

    Raises:
        KeyError: If flag name is not recognized
    """
    if flag not in FEATURE_FLAGS:
        available = ', '.join(FEATURE_FLAGS.keys())
        raise KeyError(
            f"Unknown feature flag: '{flag}'. "
            f"Available flags: {available}"
        )

    return FEATURE_FLAGS[flag]


def get_all_flags() -> Dict[str, bool]:
    """Get all feature flags and their current state."""
    return FEATURE_FLAGS.copy()


def get_log_level_name(verbose: bool = False) -> str:
    """Resolve the configured log level name."""
    if verbose:
        return "DEBUG"
    return os.getenv("DINGDONG_LOG_LEVEL", "info").upper()


def get_log_dir() -> str:
    """Directory for the log file."""
    override = os.getenv("DINGDONG_LOG_DIR")
    if override:
        return override
    return os.path.join(os.path.expanduser("~"), f".{BRAND_NAME.lower()}", TECHNICAL_NAME)


# ============================================================================
# Server Configuration
# ============================================================================

class ServerConfig(BaseModel):
    """Validated runtime configuration."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    transport: Literal["stdio", "http"] = "stdio"
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    host: str = Field(default=DEFAULT_HOST, min_length=1)
    verbose: bool = False


class ConfigManager:
    """Holds the active ServerConfig; readers get copies."""

    def __init__(self, config: Optional[ServerConfig] = None, **overrides):
        """
        Args:
            config: Starting configuration (defaults when omitted)
            **overrides: Field values applied on top, validated

        Raises:
            pydantic.ValidationError: If any value is invalid
        """
        base = config.model_dump() if config else {}
        base.update(overrides)
        self._config = ServerConfig(**base)

    def get_config(self) -> ServerConfig:
        return self._config.model_copy()

    def update_config(self, **updates) -> ServerConfig:
        """Apply validated updates. The current config is unchanged on failure."""
        merged = self._config.model_dump()
        merged.update(updates)
        self._config = ServerConfig(**merged)
        return self.get_config()

    @property
    def transport(self) -> str:
        return self._config.transport

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def host(self) -> str:
        return self._config.host
