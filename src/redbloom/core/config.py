"""
Configuration management for redbloom.

Uses pydantic-settings for environment variable support, with an optional
YAML file underneath.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from redbloom.core.types import MAX_SHARD_BITS

logger = logging.getLogger(__name__)

ENV_PREFIX = "REDBLOOM_"

LOG_LEVELS = frozenset(["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"])


class Settings(BaseSettings):
    """redbloom configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Environment: development, staging, production, test",
    )

    # Redis connection
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    socket_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Seconds before a Redis round trip times out",
    )

    # Filter defaults (used when the caller does not pass n/p)
    default_capacity: int = Field(
        default=1_000_000,
        ge=1,
        description="Default expected element count",
    )
    default_error_rate: float = Field(
        default=0.001,
        gt=0.0,
        lt=1.0,
        description="Default target false-positive rate",
    )

    # Engine
    shard_bits: int = Field(
        default=MAX_SHARD_BITS,
        ge=1,
        le=MAX_SHARD_BITS,
        description="Bits per Redis bitmap key (SETBIT caps offsets at 2^32)",
    )
    max_hash_attempts: int | None = Field(
        default=None,
        ge=1,
        description="Ceiling on hash attempts per element (None = k * 64)",
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level for the CLI",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment name."""
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {sorted(allowed)}, got {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the logging level name."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(LOG_LEVELS)}, got {v!r}")
        return level


def _find_config_file() -> Path | None:
    """
    Find YAML config file in standard locations.

    Search order:
    1. REDBLOOM_CONFIG_FILE environment variable
    2. ./redbloom.yaml, ./redbloom.yml (current directory)
    3. ~/.redbloom/config.yaml (user home)

    Returns:
        Path to config file if found, None otherwise
    """
    env_config = os.getenv(f"{ENV_PREFIX}CONFIG_FILE")
    if env_config:
        path = Path(env_config).expanduser()
        if path.exists():
            return path
        logger.warning(f"Config file from {ENV_PREFIX}CONFIG_FILE not found: {path}")

    search_paths = [
        Path("redbloom.yaml"),
        Path("redbloom.yml"),
        Path.home() / ".redbloom" / "config.yaml",
    ]

    for path in search_paths:
        if path.exists():
            logger.debug(f"Found config file: {path}")
            return path

    return None


def _load_yaml_config(path: Path) -> dict:
    """
    Load configuration from YAML file.

    Raises:
        ValueError: If YAML file is invalid
    """
    import yaml

    try:
        with open(path) as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file {path}: {e}") from e

    if not isinstance(config, dict):
        raise ValueError(f"Config file must contain a dictionary, got {type(config).__name__}")

    logger.info(f"Loaded configuration from: {path}")
    return config


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded from (in order of precedence):
    1. Environment variables (REDBLOOM_* prefix)
    2. YAML config file (if found)
    3. Default values
    """
    config_path = _find_config_file()

    if config_path:
        yaml_config = _load_yaml_config(config_path)

        # Drop YAML values that have env var overrides
        filtered_config = {}
        for key, value in yaml_config.items():
            if os.getenv(f"{ENV_PREFIX}{key.upper()}") is None:
                filtered_config[key] = value

        return Settings(**filtered_config)

    return Settings()


def reset_settings() -> None:
    """Clear the cached settings, forcing reload on next get_settings() call."""
    get_settings.cache_clear()
