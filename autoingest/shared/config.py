"""Environment-aware configuration with validation.

This module provides centralized configuration management using Pydantic Settings.
All environment variables are validated at startup to fail fast on misconfigurations.
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Example:
        >>> settings = get_settings()
        >>> print(settings.manifest_suffix)
        '_MANIFEST.XML'
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Manifest conventions
    manifest_suffix: str = Field(
        default="_MANIFEST.XML",
        alias="MANIFEST_SUFFIX",
        min_length=1,
        description="Case-insensitive file name suffix identifying manifests",
    )
    root_element: str = Field(
        default="AutopsyManifest",
        alias="MANIFEST_ROOT_ELEMENT",
        min_length=1,
        description="Required root element tag of a manifest document",
    )

    # Recovery
    scratch_dir: str = Field(
        default="",
        alias="SCRATCH_DIR",
        description="Directory for tidied scratch copies (empty = system temp dir)",
    )
    enable_tidy_recovery: bool = Field(
        default=True,
        alias="ENABLE_TIDY_RECOVERY",
        description="Retry once on a tidied copy when strict XML parsing fails",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("manifest_suffix", mode="after")
    @classmethod
    def normalize_suffix(cls, v: str) -> str:
        """Store the suffix upper-cased; matching is case-insensitive."""
        return v.upper()

    @field_validator("scratch_dir", mode="after")
    @classmethod
    def validate_scratch_dir(cls, v: str) -> str:
        """Ensure a configured scratch directory exists."""
        if v and not os.path.isdir(v):
            raise ValueError(f"Scratch directory does not exist: {v}")
        return v

    @property
    def scratch_dir_or_none(self) -> str | None:
        """Scratch directory in the form tempfile expects."""
        return self.scratch_dir or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Validated Settings instance

    Raises:
        ValidationError: If environment variables are invalid
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when environment variables change.
    """
    get_settings.cache_clear()
