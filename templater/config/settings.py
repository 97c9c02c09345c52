"""
Application Settings
===================

Templater settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from templater.models.schemas import FailureCascade, LevelStrategy


class Settings(BaseSettings):
    """Main templater settings with environment variable support."""

    # Environment Configuration
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )

    # Scheduling Configuration
    level_strategy: LevelStrategy = Field(
        default=LevelStrategy.LONGEST_PATH,
        description="How service instances are assigned to execution levels",
    )
    failure_cascade: FailureCascade = Field(
        default=FailureCascade.TRANSITIVE,
        description="Which dependents are pruned when a provider group fails",
    )
    check_unused_providers: bool = Field(
        default=True,
        description="Require every registered provider argument to be wired, used or not",
    )

    # Rendering Configuration
    undefined_placeholder: str = Field(
        default="", description="Text substituted for unresolved values"
    )
    array_separator: str = Field(default=", ", description="Separator for string array values")

    # Monitoring Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="TEMPLATER_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
