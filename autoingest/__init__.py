"""Detection and parsing of auto-ingest manifest files."""

__version__ = "0.1.0"
