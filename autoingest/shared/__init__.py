"""Shared utilities for the auto-ingest manifest component."""

from .config import Settings, clear_settings_cache, get_settings
from .exceptions import (
    AutoIngestError,
    MalformedDocumentError,
    ManifestFileSystemError,
    ManifestParseError,
    MissingRequiredFieldError,
)
from .models import Manifest

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Exceptions
    "AutoIngestError",
    "MalformedDocumentError",
    "MissingRequiredFieldError",
    "ManifestFileSystemError",
    "ManifestParseError",
    # Models
    "Manifest",
]
