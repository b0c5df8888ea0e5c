"""Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup
- Settings bound to a per-test scratch directory
- Sample manifest XML (valid, partial, malformed, foreign)
- Helpers for writing manifests to disk and spying on recovery
"""

import os
from pathlib import Path
from typing import Callable, Generator

import pytest

# Set application environment variables BEFORE importing any application code
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ.pop("SCRATCH_DIR", None)
os.environ.pop("ENABLE_TIDY_RECOVERY", None)

from autoingest.manifest_parser.parser import AutopsyManifestParser  # noqa: E402
from autoingest.manifest_parser.sanitizer import LxmlSanitizer  # noqa: E402
from autoingest.shared.config import Settings, clear_settings_cache  # noqa: E402


FIXED_DEVICE_ID = "fixed-device-0001"


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Ensure cached settings never leak between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    """Directory that receives every tidied scratch copy in a test."""
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def settings(scratch_dir: Path) -> Settings:
    """Settings with scratch files confined to the test's scratch dir."""
    return Settings(scratch_dir=str(scratch_dir))


# =============================================================================
# Parser Fixtures
# =============================================================================


class SpySanitizer(LxmlSanitizer):
    """LxmlSanitizer that records every tidy call and scratch path."""

    def __init__(self, scratch_dir: str | None = None) -> None:
        super().__init__(scratch_dir)
        self.calls: list[Path] = []
        self.scratch_paths: list[Path] = []

    def tidy(self, file_path: Path) -> Path:
        self.calls.append(Path(file_path))
        scratch = super().tidy(file_path)
        self.scratch_paths.append(scratch)
        return scratch


@pytest.fixture
def spy_sanitizer(scratch_dir: Path) -> SpySanitizer:
    return SpySanitizer(str(scratch_dir))


@pytest.fixture
def parser(settings: Settings, spy_sanitizer: SpySanitizer) -> AutopsyManifestParser:
    """Parser with the default random device id generator."""
    return AutopsyManifestParser(sanitizer=spy_sanitizer, settings=settings)


@pytest.fixture
def fixed_parser(settings: Settings, spy_sanitizer: SpySanitizer) -> AutopsyManifestParser:
    """Parser whose generated device ids are always FIXED_DEVICE_ID."""
    return AutopsyManifestParser(
        sanitizer=spy_sanitizer,
        id_generator=lambda: FIXED_DEVICE_ID,
        settings=settings,
    )


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing manifest content below tmp_path/case/."""

    def _write(
        content: str | bytes,
        name: str = "ABC_MANIFEST.XML",
        subdir: str = "case",
    ) -> Path:
        directory = tmp_path / subdir
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_bytes(content)
        return path

    return _write


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def sample_manifest_xml() -> str:
    """Complete valid manifest XML."""
    return """<?xml version="1.0" encoding="UTF-8" standalone="no"?>
<AutopsyManifest>
    <CaseName>Case1</CaseName>
    <DeviceId>device-42</DeviceId>
    <DataSource>img.E01</DataSource>
</AutopsyManifest>
"""


@pytest.fixture
def manifest_without_device_id_xml() -> str:
    """Valid manifest XML without the optional DeviceId."""
    return (
        "<AutopsyManifest><CaseName>Case1</CaseName>"
        "<DataSource>img.E01</DataSource></AutopsyManifest>"
    )


@pytest.fixture
def empty_case_name_xml() -> str:
    return (
        "<AutopsyManifest><CaseName></CaseName>"
        "<DataSource>img.E01</DataSource></AutopsyManifest>"
    )


@pytest.fixture
def missing_data_source_xml() -> str:
    return (
        "<AutopsyManifest><CaseName>Case1</CaseName>"
        "<DeviceId>device-42</DeviceId></AutopsyManifest>"
    )


@pytest.fixture
def ampersand_manifest_xml() -> str:
    """Malformed but recoverable: unescaped ampersand in text content."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<AutopsyManifest>
    <CaseName>Smith & Jones</CaseName>
    <DeviceId>device-42</DeviceId>
    <DataSource>img.E01</DataSource>
</AutopsyManifest>
"""


@pytest.fixture
def escaped_ampersand_manifest_xml() -> str:
    """The well-formed equivalent of ampersand_manifest_xml."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<AutopsyManifest>
    <CaseName>Smith &amp; Jones</CaseName>
    <DeviceId>device-42</DeviceId>
    <DataSource>img.E01</DataSource>
</AutopsyManifest>
"""


@pytest.fixture
def unclosed_manifest_xml() -> str:
    """Malformed but recoverable: root element never closed."""
    return (
        "<AutopsyManifest><CaseName>Case1</CaseName>"
        "<DataSource>img.E01</DataSource>"
    )


@pytest.fixture
def latin1_manifest_bytes() -> bytes:
    """Declared UTF-8, actually encoded as Latin-1."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        "<AutopsyManifest><CaseName>Café</CaseName>"
        "<DataSource>img.E01</DataSource></AutopsyManifest>"
    ).encode("latin-1")


@pytest.fixture
def non_manifest_xml() -> str:
    """Well-formed XML with a foreign root element."""
    return """<?xml version="1.0"?>
<SomeOtherDocument>
    <CaseName>Case1</CaseName>
    <DataSource>img.E01</DataSource>
</SomeOtherDocument>
"""


@pytest.fixture
def garbage_content() -> str:
    """Content with no recoverable XML at all."""
    return "this is not xml at all, just a note about the case\n"
