"""Manifest detection.

Detection answers "is this file a manifest?" without extracting any
fields. It never raises: every internal failure is captured in a
DetectionResult and collapsed to False at the public boundary.
"""

from dataclasses import dataclass
from pathlib import Path

from aws_lambda_powertools import Logger

from ..shared.config import Settings, get_settings
from ..shared.exceptions import AutoIngestError
from .sanitizer import LxmlSanitizer, Sanitizer, scratch_copy
from .xml_parser import build_document, has_root_element

logger = Logger(service="manifest-parser", child=True)


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of a manifest detection attempt."""

    is_manifest: bool
    reason: str
    recovered: bool = False
    error: Exception | None = None

    def __bool__(self) -> bool:
        return self.is_manifest


class ManifestDetector:
    """Detects auto-ingest manifests by file name and root element.

    Example:
        >>> detector = ManifestDetector()
        >>> detector.is_manifest(Path("/cases/ABC_MANIFEST.XML"))
        True
    """

    def __init__(
        self,
        sanitizer: Sanitizer | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize detector.

        Args:
            sanitizer: Recovery strategy for malformed XML (default LxmlSanitizer)
            settings: Application settings (default from environment)
        """
        self.settings = settings or get_settings()
        self.sanitizer = sanitizer or LxmlSanitizer(self.settings.scratch_dir_or_none)

    def has_manifest_name(self, file_path: str | Path) -> bool:
        """Check the case-insensitive name suffix. Performs no I/O."""
        return Path(file_path).name.upper().endswith(self.settings.manifest_suffix)

    def is_manifest(self, file_path: str | Path) -> bool:
        """Return True if ``file_path`` is a manifest. Never raises."""
        try:
            return self.check(file_path).is_manifest
        except Exception:
            logger.exception(
                "Unexpected error during manifest detection",
                extra={"file_path": str(file_path)},
            )
            return False

    def check(self, file_path: str | Path) -> DetectionResult:
        """Detect a manifest and report why it was accepted or rejected.

        1. Reject on file name alone (no I/O)
        2. Strict parse + exact root element check
        3. On parse failure or root mismatch, tidy once and re-check
        """
        path = Path(file_path)

        if not self.has_manifest_name(path):
            return DetectionResult(False, "name_mismatch")

        first = self._check_root(path)
        if first.is_manifest:
            return first

        if not self.settings.enable_tidy_recovery:
            return first

        logger.debug(
            "Retrying manifest detection on tidied copy",
            extra={"file_path": str(path), "reason": first.reason},
        )

        try:
            with scratch_copy(path, self.sanitizer) as tidied:
                retry = self._check_root(tidied)
        except AutoIngestError as e:
            return DetectionResult(False, "recovery_failed", recovered=True, error=e)

        return DetectionResult(
            retry.is_manifest,
            retry.reason,
            recovered=True,
            error=retry.error,
        )

    def _check_root(self, file_path: Path) -> DetectionResult:
        try:
            document = build_document(file_path)
        except AutoIngestError as e:
            return DetectionResult(False, "malformed_document", error=e)

        if has_root_element(document, self.settings.root_element):
            return DetectionResult(True, "root_element_match")
        return DetectionResult(False, "root_element_mismatch")
