"""Best-effort repair ("tidy") of malformed manifest XML.

A sanitizer writes a well-formed copy of a broken document to a new
scratch file and never modifies the original. The caller owns the scratch
file and must discard it; ``scratch_copy`` does that on every exit path.

The default LxmlSanitizer handles the common authoring mistakes seen in
hand-written manifests:
- Encoding declarations that do not match the actual bytes
- Bare ampersands in text content
- Unbalanced or unclosed tags (via lxml recover mode)
"""

import codecs
import os
import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Protocol

from aws_lambda_powertools import Logger
from lxml import etree

from ..shared.exceptions import MalformedDocumentError, ManifestFileSystemError

logger = Logger(service="manifest-parser", child=True)

SCRATCH_PREFIX = "manifest-tidy-"
SCRATCH_SUFFIX = ".xml"

# Tried in order after the declared/BOM encoding; latin-1 always decodes
FALLBACK_ENCODINGS = ("utf-8", "cp1252", "latin-1")

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>", re.IGNORECASE)
_DECLARED_ENCODING = re.compile(
    rb"^\s*<\?xml[^>]*?encoding\s*=\s*[\"']([A-Za-z0-9._-]+)[\"']",
    re.IGNORECASE,
)
# Ampersands that do not start a predefined entity or a character reference.
# CDATA sections and comments match the first group and pass through unchanged.
_BARE_AMPERSAND = re.compile(
    r"(<!\[CDATA\[.*?\]\]>|<!--.*?-->)"
    r"|&(?!(?:amp|lt|gt|quot|apos|#[0-9]+|#x[0-9A-Fa-f]+);)",
    re.DOTALL,
)
# Declared encodings that cannot apply to a document starting with ASCII "<?xml"
_WIDE_ENCODING = re.compile(r"^(utf-?16|utf-?32|ucs-?2|ucs-?4)", re.IGNORECASE)


class Sanitizer(Protocol):
    """Capability that converts a malformed XML file into a well-formed copy."""

    def tidy(self, file_path: Path) -> Path:
        """Write a best-effort well-formed copy of ``file_path``.

        Returns:
            Path of a new scratch file owned by the caller

        Raises:
            MalformedDocumentError: If no well-formed copy can be produced
            ManifestFileSystemError: If the scratch file cannot be written
        """
        ...


class LxmlSanitizer:
    """Sanitizer backed by lxml's recovering parser.

    Example:
        >>> sanitizer = LxmlSanitizer()
        >>> with scratch_copy(Path("case/ABC_MANIFEST.XML"), sanitizer) as tidied:
        ...     document = build_document(tidied)
    """

    def __init__(self, scratch_dir: str | None = None) -> None:
        """Initialize sanitizer.

        Args:
            scratch_dir: Directory for scratch files (None = system temp dir)
        """
        self.scratch_dir = scratch_dir

    def tidy(self, file_path: Path) -> Path:
        path = Path(file_path)

        try:
            raw = path.read_bytes()
        except OSError as e:
            raise MalformedDocumentError(
                f"Unable to read XML document for tidying: {e}",
                {"file_path": str(path), "os_error": type(e).__name__},
            ) from e

        repaired = tidy_xml(raw, source=str(path))
        return self._write_scratch(repaired, path)

    def _write_scratch(self, content: bytes, source: Path) -> Path:
        """Write ``content`` to a uniquely named scratch file."""
        try:
            fd, name = tempfile.mkstemp(
                prefix=SCRATCH_PREFIX,
                suffix=SCRATCH_SUFFIX,
                dir=self.scratch_dir,
            )
        except OSError as e:
            raise ManifestFileSystemError(
                "Unable to create scratch file for tidied manifest",
                original_error=e,
                details={"file_path": str(source), "scratch_dir": self.scratch_dir},
            ) from e

        scratch = Path(name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        except OSError as e:
            discard_scratch(scratch)
            raise ManifestFileSystemError(
                "Unable to write tidied manifest",
                original_error=e,
                details={"file_path": str(source), "scratch_path": name},
            ) from e

        logger.debug(
            "Wrote tidied manifest copy",
            extra={"file_path": str(source), "scratch_path": name},
        )
        return scratch


def tidy_xml(raw: bytes, source: str = "<bytes>") -> bytes:
    """Repair raw XML bytes into a well-formed UTF-8 document.

    Args:
        raw: Original document bytes
        source: Name used in error details

    Returns:
        Serialized well-formed document with an XML declaration

    Raises:
        MalformedDocumentError: If no root element can be recovered
    """
    text = _decode(raw)
    text = text.lstrip("\ufeff")
    text = _XML_DECLARATION.sub("", text, count=1)
    text = _BARE_AMPERSAND.sub(lambda m: m.group(1) or "&amp;", text)

    parser = etree.XMLParser(
        recover=True,
        encoding="utf-8",
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
    )

    try:
        root = etree.fromstring(text.encode("utf-8"), parser)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise MalformedDocumentError(
            f"Unable to recover XML document: {e}",
            {"file_path": source},
        ) from e

    if root is None:
        raise MalformedDocumentError(
            "Unable to recover XML document: no root element",
            {"file_path": source},
        )

    return etree.tostring(root.getroottree(), xml_declaration=True, encoding="UTF-8")


def _decode(raw: bytes) -> str:
    """Decode document bytes, tolerating a lying encoding declaration.

    A decode only counts when the text starts with markup; otherwise the
    next candidate is tried.
    """
    candidates: list[str] = []
    has_bom = True

    if raw.startswith(codecs.BOM_UTF8):
        candidates.append("utf-8-sig")
    elif raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        candidates.append("utf-16")
    else:
        has_bom = False

    match = _DECLARED_ENCODING.match(raw)
    if match:
        declared = match.group(1).decode("ascii")
        # The declaration itself was read as ASCII, so a wide encoding is a lie
        if has_bom or not _WIDE_ENCODING.match(declared):
            candidates.append(declared)

    candidates.extend(FALLBACK_ENCODINGS)

    for encoding in candidates:
        try:
            text = raw.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            continue
        if text.lstrip("\ufeff").lstrip().startswith("<"):
            return text

    # No candidate starts with markup; let the recovering parser decide
    return raw.decode("latin-1")


def discard_scratch(scratch_path: Path) -> None:
    """Delete a scratch file, logging and ignoring any failure."""
    try:
        os.remove(scratch_path)
    except FileNotFoundError:
        logger.debug("Scratch file already removed", extra={"scratch_path": str(scratch_path)})
    except OSError as e:
        logger.warning(
            "Failed to delete scratch file",
            extra={"scratch_path": str(scratch_path), "error": str(e)},
        )


@contextmanager
def scratch_copy(file_path: Path, sanitizer: Sanitizer) -> Iterator[Path]:
    """Tidy ``file_path`` once and yield the scratch copy.

    The scratch file is deleted when the block exits, whether it
    completes, returns early, or raises.
    """
    scratch = sanitizer.tidy(Path(file_path))
    try:
        yield scratch
    finally:
        discard_scratch(scratch)
