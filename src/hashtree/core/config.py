"""
hashtree - Configuration
"""

import hashlib
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "hashtree"
    VERSION: str = "1.0.0"
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Hashing
    HASH_ALGORITHM: str = "sha256"

    # Metrics
    METRICS_ENABLED: bool = True

    @field_validator("HASH_ALGORITHM")
    @classmethod
    def validate_hash_algorithm(cls, value: str) -> str:
        name = value.lower()
        if name not in hashlib.algorithms_available:
            raise ValueError(f"Unknown hash algorithm: {value}")
        if name.startswith("shake_"):
            raise ValueError(f"Variable-length hash algorithm not supported: {value}")
        hashlib.new(name)
        return name

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
