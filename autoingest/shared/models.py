"""Pydantic models for parsed manifests.

All models use Pydantic v2 for validation and serialization.
"""

from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Manifest(BaseModel):
    """Canonical record describing one data source ready for ingest.

    Constructed once per successful parse and immutable thereafter.
    The ingest scheduler owns the instance after it is returned.
    """

    model_config = ConfigDict(frozen=True)

    source_path: Path = Field(
        description=(
            "Manifest path exactly as passed to parse; not resolved, so it is "
            "absolute only when the caller passed an absolute path"
        ),
    )
    created_at: datetime = Field(
        description="File-system creation time of the manifest file",
    )
    case_name: str = Field(
        min_length=1,
        description="Case the data source is ingested into",
    )
    device_id: str = Field(
        min_length=1,
        description="Originating device (generated when the manifest omits it)",
    )
    data_source_path: Path = Field(
        description="Data source joined onto source_path's parent directory",
    )
    metadata: dict[str, str] = Field(
        default_factory=dict,
        description="Auxiliary key/value pairs (reserved for extension)",
    )

    @property
    def data_source_file_name(self) -> str:
        """Final path component of the data source (e.g., 'image.E01')."""
        return self.data_source_path.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary for logging and handoff."""
        return self.model_dump(mode="json")
