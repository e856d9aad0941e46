"""Exceptions raised by the bill extraction pipeline.

Exception hierarchy:
    BillScanError (base)
    ├── ValidationError      document rejected before recognition
    ├── RecognitionError     OCR engine failed on an accepted document
    └── SessionClosedError   recognition attempted after teardown

Field and line-item misses are not errors. They show up as ``None``
fields or an empty item list on the result.
"""

from typing import Any


class BillScanError(Exception):
    """Base exception for all billscan errors.

    Attributes:
        message: Human-readable error message.
        details: Extra context for logs and callers.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(BillScanError):
    """Raised when an upload is too large or has an unaccepted media type."""


class RecognitionError(BillScanError):
    """Raised when the OCR engine cannot produce text for a document."""


class SessionClosedError(BillScanError):
    """Raised when a terminated recognition session is asked for text."""

    def __init__(self, message: str = "Recognition session has been terminated") -> None:
        super().__init__(message)
