"""Directory scanner that feeds candidate files through a manifest parser.

This is the reference file-discovery collaborator: it walks an input
directory, asks the injected parser whether each file is a manifest, and
parses the ones that are. Files that fail detection are skipped silently;
a manifest that fails to parse is reported without stopping the scan.

Usage:
    python -m autoingest.manifest_parser.scanner /cases/input
"""

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from aws_lambda_powertools import Logger

from ..shared.config import get_settings
from ..shared.exceptions import ManifestParseError
from ..shared.models import Manifest
from .parser import AutopsyManifestParser, ManifestFileParser

logger = Logger(service="manifest-parser")


@dataclass
class ScanReport:
    """Result of scanning one input directory."""

    manifests: list[Manifest] = field(default_factory=list)
    failures: dict[str, ManifestParseError] = field(default_factory=dict)
    skipped: int = 0

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def to_dict(self) -> dict[str, Any]:
        return {
            "manifests": [m.to_dict() for m in self.manifests],
            "failures": {path: e.to_dict() for path, e in self.failures.items()},
            "skipped": self.skipped,
        }


def scan_directory(root_dir: str | Path, parser: ManifestFileParser) -> ScanReport:
    """Detect and parse every manifest below ``root_dir``.

    Args:
        root_dir: Input directory to walk recursively
        parser: Manifest parser chosen at startup

    Returns:
        ScanReport with parsed manifests and per-file failures
    """
    report = ScanReport()

    for candidate in sorted(p for p in Path(root_dir).rglob("*") if p.is_file()):
        if not parser.file_is_manifest(candidate):
            report.skipped += 1
            continue

        try:
            manifest = parser.parse(candidate)
        except ManifestParseError as e:
            logger.error(
                "Manifest parsing failed",
                extra={"file_path": str(candidate), "error": e.to_dict()},
            )
            report.failures[str(candidate)] = e
            continue

        logger.info(
            "Parsed manifest",
            extra={
                "file_path": str(candidate),
                "case_name": manifest.case_name,
                "data_source": str(manifest.data_source_path),
            },
        )
        report.manifests.append(manifest)

    return report


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    arg_parser = argparse.ArgumentParser(
        description="Find and parse auto-ingest manifests in a directory",
    )
    arg_parser.add_argument(
        "input_dir",
        help="Directory to scan recursively for *_MANIFEST.XML files",
    )
    return arg_parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Command line entry point. Prints a JSON scan report."""
    args = parse_args(argv)
    settings = get_settings()
    logger.setLevel(settings.log_level)

    input_dir = Path(args.input_dir)
    if not input_dir.is_dir():
        logger.error("Input directory not found", extra={"input_dir": str(input_dir)})
        return 2

    report = scan_directory(input_dir, AutopsyManifestParser(settings=settings))
    print(json.dumps(report.to_dict(), indent=2, default=str))

    return 1 if report.has_failures else 0


if __name__ == "__main__":
    sys.exit(main())
