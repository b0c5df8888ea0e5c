"""Custom exception hierarchy for manifest detection and parsing.

All component-specific exceptions inherit from AutoIngestError,
enabling consistent error handling and structured error responses.

Exception hierarchy:
    AutoIngestError (base)
    ├── MalformedDocumentError
    ├── MissingRequiredFieldError
    ├── ManifestFileSystemError
    └── ManifestParseError
"""

from typing import Any


class AutoIngestError(Exception):
    """Base exception for all auto-ingest errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for log filtering
        details: Additional context as key-value pairs
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize auto-ingest error.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (e.g., 'MALFORMED_DOCUMENT')
            details: Additional context for debugging
        """
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON serialization.

        Returns:
            Dictionary with error_code, error_message, and details.
            Uses 'error_message' instead of 'message' because the logging
            module reserves 'message' internally.
        """
        return {
            "error_code": self.error_code,
            "error_message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.error_code!r}, {self.message!r})"


class MalformedDocumentError(AutoIngestError):
    """Raised when a manifest cannot be parsed as XML.

    This covers:
    - Syntax errors in the original document
    - A tidied copy that still does not parse
    - A sanitizer that cannot produce any well-formed copy
    - An unreadable document
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "MALFORMED_DOCUMENT", details)


class MissingRequiredFieldError(AutoIngestError):
    """Raised when a required manifest element is absent or empty."""

    def __init__(self, field_name: str, file_path: str) -> None:
        """Initialize missing field error.

        Args:
            field_name: Human name of the field ('case name', 'data source')
            file_path: Manifest the field was expected in
        """
        self.field_name = field_name
        message = f"{field_name.capitalize()} not found, manifest is invalid"
        super().__init__(
            message,
            "MISSING_REQUIRED_FIELD",
            {"field": field_name, "file_path": file_path},
        )


class ManifestFileSystemError(AutoIngestError):
    """Raised when file attributes or scratch files cannot be handled."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = details or {}
        if original_error:
            error_details["original_error"] = str(original_error)
            error_details["original_error_type"] = type(original_error).__name__

        super().__init__(message, "FILE_SYSTEM_ERROR", error_details)
        self.original_error = original_error


class ManifestParseError(AutoIngestError):
    """The single error type raised by manifest parsing.

    Callers distinguish failure kinds by inspecting ``cause`` rather than
    catching several exception types.
    """

    def __init__(self, file_path: str, cause: Exception) -> None:
        """Initialize manifest parse error.

        Args:
            file_path: Manifest that failed to parse
            cause: The specific underlying failure
        """
        details: dict[str, Any] = {
            "file_path": file_path,
            "cause_type": type(cause).__name__,
        }
        if isinstance(cause, AutoIngestError):
            details["cause"] = cause.to_dict()
        else:
            details["cause"] = str(cause)

        super().__init__(
            f"Error parsing manifest {file_path}",
            "MANIFEST_PARSE_ERROR",
            details,
        )
        self.file_path = file_path
        self.cause = cause
