"""
SDK settings (pydantic-settings).

Values come from ``ASSETDIR_*`` environment variables or a ``.env`` file.
Explicit arguments passed to the client always win over settings.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PART_SIZE = 5 * 1024 * 1024  # 5MB
DEFAULT_DOWNLOAD_CHUNK_SIZE = 64 * 1024  # 64KB


class AssetDirSettings(BaseSettings):
    """Settings for the asset directory client."""

    model_config = SettingsConfigDict(
        env_prefix="ASSETDIR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Endpoint and auth
    endpoint_url: str | None = None
    api_key: SecretStr | None = None
    username: str | None = None
    password: SecretStr | None = None

    # Timeouts (seconds)
    connect_timeout: float = Field(default=10.0, ge=1.0, le=120.0)
    request_timeout: float = Field(default=300.0, ge=1.0, le=3600.0)

    # Transfer
    part_size: int = Field(default=DEFAULT_PART_SIZE, ge=1)
    download_chunk_size: int = Field(default=DEFAULT_DOWNLOAD_CHUNK_SIZE, ge=1024)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"


_settings: AssetDirSettings | None = None


def get_settings() -> AssetDirSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = AssetDirSettings()
    return _settings


def configure_settings(**overrides: Any) -> AssetDirSettings:
    """Replace the process-wide settings with explicit overrides."""
    global _settings
    _settings = AssetDirSettings(**overrides)
    return _settings


def reset_settings() -> None:
    """Forget cached settings; the next get_settings() reloads them."""
    global _settings
    _settings = None


__all__ = [
    "AssetDirSettings",
    "DEFAULT_PART_SIZE",
    "DEFAULT_DOWNLOAD_CHUNK_SIZE",
    "get_settings",
    "configure_settings",
    "reset_settings",
]
