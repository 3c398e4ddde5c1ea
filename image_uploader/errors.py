"""Exception hierarchy for Image Uploader."""

from typing import Optional


class UploaderError(Exception):
    """Base exception for all uploader errors.

    Attributes:
        message: User-facing description, safe to broadcast
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(UploaderError):
    """Raised when configuration is invalid or missing."""


class ValidationError(UploaderError):
    """Raised when a job's input is rejected before any work starts."""


class FileTooLargeError(ValidationError):
    """Raised by the admission gate when a source exceeds the size limit."""


class ContentTypeError(ValidationError):
    """Raised when a file's content type is not in the allowed set."""


class TransformError(UploaderError):
    """Raised when an image cannot be decoded, transformed or written."""


class TransferError(UploaderError):
    """Raised when an object store operation fails.

    Attributes:
        detail: Underlying failure description for local diagnostics only
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail
