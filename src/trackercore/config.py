"""
Centralized configuration for trackercore.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (TRACKERCORE_*)
3. .env file
4. Default values

Example:
    from trackercore.config import get_config

    config = get_config()
    print(config.base64)  # From TRACKERCORE_BASE64 or default

    # Override at runtime
    config = get_config(base64=False)
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trackercore import __version__


class TrackerCoreConfig(BaseSettings):
    """
    Central configuration for a tracker core.

    All settings can be overridden via environment variables
    prefixed with TRACKERCORE_.

    Example:
        export TRACKERCORE_BASE64=false
        export TRACKERCORE_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="TRACKERCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Payload encoding
    base64: bool = Field(
        default=True,
        description="Base64-encode contexts and self-describing event JSON on build",
    )

    # Persistent payload pairs
    tracker_namespace: Optional[str] = Field(
        default=None,
        description="Tracker namespace attached to every payload (tna)",
    )
    tracker_version: str = Field(
        default=f"py-{__version__}",
        description="Tracker version attached to every payload (tv)",
    )
    app_id: Optional[str] = Field(
        default=None,
        description="Application ID attached to every payload (aid)",
    )
    platform: str = Field(
        default="srv",
        description="Platform attached to every payload (p)",
    )

    # Logging
    log_level: Literal["none", "error", "warn", "debug", "info"] = Field(
        default="warn",
        description="Verbosity of the tracker logging facade",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format (json for log aggregation, text for console)",
    )

    @field_validator("platform")
    @classmethod
    def validate_platform(cls, v: str) -> str:
        """Platform codes are short lowercase tokens."""
        v = v.strip().lower()
        if not v:
            raise ValueError("platform must not be empty")
        return v


# Global singleton
_config: Optional[TrackerCoreConfig] = None


def get_config(**overrides) -> TrackerCoreConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.

    Args:
        **overrides: Override any config values

    Returns:
        TrackerCoreConfig instance
    """
    global _config

    if overrides or _config is None:
        _config = TrackerCoreConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


def get_log_level() -> str:
    """Get the configured log level."""
    return get_config().log_level
