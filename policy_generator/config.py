"""Configuration management for the Tagging Policy Generator.

Settings are read from environment variables (and an optional .env file)
with defaults suitable for local use.
"""

from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import CloudProvider


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development.
    """

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LOG_LEVEL",
    )
    default_provider: CloudProvider = Field(
        default=CloudProvider.AWS,
        description="Default provider for get_resource_types when none is given",
        validation_alias=AliasChoices("DEFAULT_CLOUD_PROVIDER", "CLOUD_PROVIDER"),
    )
    policy_path: Optional[str] = Field(
        default=None,
        description="Canonical policy validated when validate_tagging_policy receives no policy",
        validation_alias=AliasChoices("POLICY_PATH", "POLICY_FILE_PATH"),
    )
    export_dir: str = Field(
        default="exports",
        description="Directory that file exports are written to",
        validation_alias="EXPORT_DIR",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("default_provider", mode="before")
    @classmethod
    def _parse_provider(cls, value: object) -> CloudProvider:
        return CloudProvider.parse(value)


def get_settings() -> Settings:
    """
    Get application settings.

    Loads settings from environment variables and .env file.
    """
    return Settings()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def settings() -> Settings:
    """
    Get the global settings instance.

    Creates the settings instance on first call and caches it.
    """
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
