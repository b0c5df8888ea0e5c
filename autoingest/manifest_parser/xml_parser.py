"""XML parsing utilities for auto-ingest manifests.

This module provides:
- A strict document builder that never touches the input file
- Root tag inspection for manifest detection
- Field queries that yield "" instead of raising for missing elements
"""

from pathlib import Path

from lxml import etree

from ..shared.exceptions import MalformedDocumentError

ROOT_ELEMENT = "AutopsyManifest"

CASE_NAME_ELEMENT = "CaseName"
DEVICE_ID_ELEMENT = "DeviceId"
DATA_SOURCE_ELEMENT = "DataSource"


def _strict_parser() -> etree.XMLParser:
    """Create a fresh strict parser.

    External entities and network lookups are disabled; manifests are
    plain data documents.
    """
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        huge_tree=False,
    )


def build_document(file_path: str | Path) -> etree._ElementTree:
    """Parse the file at ``file_path`` into a document tree.

    Each call performs a fresh parse; trees are not cached or shared.

    Args:
        file_path: Original manifest or a tidied scratch copy

    Returns:
        Parsed document tree

    Raises:
        MalformedDocumentError: If the file cannot be read or is not well-formed XML
    """
    path = Path(file_path)

    try:
        with open(path, "rb") as f:
            content = f.read()
    except OSError as e:
        raise MalformedDocumentError(
            f"Unable to read XML document: {e}",
            {"file_path": str(path), "os_error": type(e).__name__},
        ) from e

    try:
        root = etree.fromstring(content, _strict_parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        raise MalformedDocumentError(
            f"Invalid XML format: {e}",
            {
                "file_path": str(path),
                "line": getattr(e, "lineno", None),
                "column": getattr(e, "offset", None),
            },
        ) from e

    return root.getroottree()


def root_tag(document: etree._ElementTree) -> str:
    """Return the tag name of the document's root element."""
    return document.getroot().tag


def has_root_element(document: etree._ElementTree, expected: str = ROOT_ELEMENT) -> bool:
    """Check that the root element tag matches ``expected`` exactly.

    Namespaced roots (``{uri}AutopsyManifest``) do not match.
    """
    tag = root_tag(document)
    return isinstance(tag, str) and tag == expected


def field_xpath(element: str, root: str = ROOT_ELEMENT) -> str:
    """Build the string-valued XPath selecting a root child's text.

    Example:
        >>> field_xpath("CaseName")
        'string(/AutopsyManifest/CaseName/text())'
    """
    return f"string(/{root}/{element}/text())"


def query_text(
    document: etree._ElementTree,
    element: str,
    root: str = ROOT_ELEMENT,
) -> str:
    """Get the text of a single-occurrence child of the root element.

    Absent elements and empty elements both yield "". When the element
    occurs more than once the first match wins. Text is returned verbatim,
    without trimming.

    Args:
        document: Parsed manifest document
        element: Child element tag (e.g., 'CaseName')
        root: Expected root element tag

    Returns:
        Text content or ""
    """
    result = document.xpath(field_xpath(element, root))
    return str(result)
