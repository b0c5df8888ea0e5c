"""Manifest parser module for the auto-ingest pipeline.

This module handles:
- Manifest detection by file name and root element
- XML parsing with a one-shot tidy fallback
- Field extraction into immutable Manifest records
- Directory scanning for the file-discovery collaborator
"""

from .detector import DetectionResult, ManifestDetector
from .parser import AutopsyManifestParser, ManifestFileParser, random_device_id
from .sanitizer import LxmlSanitizer, Sanitizer, scratch_copy
from .scanner import ScanReport, scan_directory

__all__ = [
    "AutopsyManifestParser",
    "ManifestFileParser",
    "ManifestDetector",
    "DetectionResult",
    "LxmlSanitizer",
    "Sanitizer",
    "scratch_copy",
    "random_device_id",
    "ScanReport",
    "scan_directory",
]
