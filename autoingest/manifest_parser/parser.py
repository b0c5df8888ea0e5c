"""Auto-ingest manifest file parser.

Turns a detected manifest file into an immutable Manifest record. Every
failure surfaces as a single ManifestParseError whose ``cause`` holds the
specific problem (malformed XML, missing field, file-system error).
"""

import os
import uuid
from contextlib import ExitStack
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Protocol

from aws_lambda_powertools import Logger
from lxml import etree

from ..shared.config import Settings, get_settings
from ..shared.exceptions import (
    MalformedDocumentError,
    ManifestFileSystemError,
    ManifestParseError,
    MissingRequiredFieldError,
)
from ..shared.models import Manifest
from .detector import ManifestDetector
from .sanitizer import LxmlSanitizer, Sanitizer, scratch_copy
from .xml_parser import (
    CASE_NAME_ELEMENT,
    DATA_SOURCE_ELEMENT,
    DEVICE_ID_ELEMENT,
    build_document,
    query_text,
)

logger = Logger(service="manifest-parser", child=True)

IdGenerator = Callable[[], str]


def random_device_id() -> str:
    """Generate a random unique device identifier."""
    return str(uuid.uuid4())


class ManifestFileParser(Protocol):
    """Interface used by the file-discovery collaborator.

    The collaborator is handed a concrete implementation at startup.
    """

    def file_is_manifest(self, file_path: Path) -> bool:
        ...

    def parse(self, file_path: Path) -> Manifest:
        ...


class AutopsyManifestParser:
    """Parser for ``*_MANIFEST.XML`` files with an AutopsyManifest root.

    Example:
        >>> parser = AutopsyManifestParser()
        >>> manifest = parser.parse(Path("/cases/ABC_MANIFEST.XML"))
        >>> print(manifest.case_name)
        'Case1'
    """

    def __init__(
        self,
        sanitizer: Sanitizer | None = None,
        id_generator: IdGenerator | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize parser.

        Args:
            sanitizer: Recovery strategy for malformed XML (default LxmlSanitizer)
            id_generator: Device id factory used when a manifest omits DeviceId
            settings: Application settings (default from environment)
        """
        self.settings = settings or get_settings()
        self.sanitizer = sanitizer or LxmlSanitizer(self.settings.scratch_dir_or_none)
        self.id_generator = id_generator or random_device_id
        self.detector = ManifestDetector(sanitizer=self.sanitizer, settings=self.settings)

    def file_is_manifest(self, file_path: Path) -> bool:
        """Return True if ``file_path`` is a manifest. Never raises."""
        return self.detector.is_manifest(file_path)

    def parse(self, file_path: Path) -> Manifest:
        """Parse a manifest file.

        Args:
            file_path: Path to the manifest file

        Returns:
            Fully populated, immutable Manifest

        Raises:
            ManifestParseError: On any failure; ``cause`` holds the reason
        """
        path = Path(file_path)

        try:
            return self._parse(path)
        except Exception as e:
            raise ManifestParseError(str(path), e) from e

    def _parse(self, path: Path) -> Manifest:
        created_at = file_created_at(path)

        # Scratch copy (if any) is discarded when the stack closes
        with ExitStack() as stack:
            document = self._build(path, stack)
            root = self.settings.root_element

            case_name = query_text(document, CASE_NAME_ELEMENT, root)
            if not case_name:
                raise MissingRequiredFieldError("case name", str(path))

            device_id = query_text(document, DEVICE_ID_ELEMENT, root)
            if not device_id:
                device_id = self.id_generator()
                logger.debug(
                    "Manifest has no device id, generated one",
                    extra={"file_path": str(path), "device_id": device_id},
                )

            data_source_name = query_text(document, DATA_SOURCE_ELEMENT, root)
            if not data_source_name:
                raise MissingRequiredFieldError("data source", str(path))

        return Manifest(
            source_path=path,
            created_at=created_at,
            case_name=case_name,
            device_id=device_id,
            data_source_path=path.parent / data_source_name,
            metadata={},
        )

    def _build(self, path: Path, stack: ExitStack) -> etree._ElementTree:
        """Strict parse, falling back to a single tidied copy."""
        try:
            return build_document(path)
        except MalformedDocumentError as e:
            if not self.settings.enable_tidy_recovery:
                raise
            logger.debug(
                "Strict parse failed, retrying on tidied copy",
                extra={"file_path": str(path), "error": e.message},
            )

        tidied = stack.enter_context(scratch_copy(path, self.sanitizer))
        return build_document(tidied)


def file_created_at(file_path: Path) -> datetime:
    """Read the file-system creation time of ``file_path``.

    Platforms without a birth time report the last modification time.

    Raises:
        ManifestFileSystemError: If the file attributes cannot be read
    """
    try:
        stat = os.stat(file_path)
    except OSError as e:
        raise ManifestFileSystemError(
            f"Unable to read file attributes of {file_path}",
            original_error=e,
            details={"file_path": str(file_path)},
        ) from e

    timestamp = getattr(stat, "st_birthtime", None)
    if timestamp is None:
        timestamp = stat.st_mtime
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
