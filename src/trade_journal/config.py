# ABOUTME: Application configuration using Pydantic Settings for environment variables
# ABOUTME: Provides type-safe access to storage paths, database URL, upload policy and logging

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="TRADE_JOURNAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown environment variables
    )

    # Image storage
    upload_dir: Path = Field(default=Path("public/uploads"), description="Filesystem root of the image store")
    image_subdir: str = Field(default="images", description="Subdirectory of upload_dir holding journal images")
    public_base_url: str = Field(default="/uploads", description="URL prefix the upload directory is served under")

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./trade_journal.db", description="Database URL for async SQLite operations"
    )

    # Upload policy
    allowed_upload_types: list[str] = Field(
        default_factory=lambda: ["image/png", "image/jpeg", "image/jpg"],
        description="MIME types accepted for direct uploads",
    )
    inline_image_subtypes: list[str] = Field(
        default_factory=lambda: ["png", "jpeg", "jpg", "gif", "webp"],
        description="data:image/<subtype> values extracted from rich text",
    )

    # Logging Configuration
    log_mode: Literal["interactive", "production"] = Field(default="interactive", description="Logging output mode")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging verbosity level"
    )

    log_file: Path | None = Field(default=None, description="Custom log file path (overrides default)")


# Global config instance - lazy loaded when first accessed
_config_instance: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Creates the config on first access, subsequent calls return the same instance.

    Returns:
        Config: The application configuration instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def reload_config() -> Config:
    """Reload configuration from environment variables.

    Useful for testing or when environment variables change at runtime.

    Returns:
        Config: A fresh configuration instance
    """
    global _config_instance
    _config_instance = Config()
    return _config_instance
