"""
Application configuration management.

Handles loading configuration from environment variables and .env files.
"""

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from toolhost import __version__


class ApplicationSettings(BaseSettings):
    """Application configuration."""

    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = str(v).upper()
        if v not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return str(v)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class ServerSettings(BaseSettings):
    """Identity and registry behaviour of the hosted server."""

    server_name: str = Field(default="toolhost", alias="TOOLHOST_SERVER_NAME")
    server_version: str = Field(default=__version__, alias="TOOLHOST_SERVER_VERSION")
    instructions: str | None = Field(None, alias="TOOLHOST_INSTRUCTIONS")

    # replace: re-registering a name updates it in place; reject: raise
    duplicate_policy: str = Field(default="replace", alias="TOOLHOST_DUPLICATE_POLICY")
    # Refuse everything but initialize/ping until initialize succeeded
    require_initialize: bool = Field(default=False, alias="TOOLHOST_REQUIRE_INITIALIZE")

    prompts_dir: Path | None = Field(None, alias="TOOLHOST_PROMPTS_DIR")

    @field_validator("duplicate_policy")
    @classmethod
    def validate_duplicate_policy(cls, v: Any) -> str:
        allowed = {"replace", "reject"}
        v = str(v).lower()
        if v not in allowed:
            raise ValueError(f"TOOLHOST_DUPLICATE_POLICY must be one of {allowed}")
        return str(v)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class Settings(BaseSettings):
    """Main settings class that combines all configuration sections."""

    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)  # type: ignore[arg-type]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def load_settings() -> Settings:
    """
    Load settings from environment variables and .env file.

    Returns:
        Settings: Configured settings instance
    """
    return Settings()


_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get cached settings instance (singleton pattern).

    Returns:
        Settings: Cached settings instance
    """
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next ``get_settings()`` reloads them."""
    global _settings
    _settings = None
