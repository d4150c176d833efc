"""
Custom exceptions for the checklist reviewer.
"""

from typing import Any, Optional


class ReviewEngineError(Exception):
    """Base exception for checklist review errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(ReviewEngineError):
    """Exception raised when configuration is invalid."""

    def __init__(
        self, message: str, config_field: Optional[str] = None, config_value: Any = None
    ):
        details = {}
        if config_field:
            details["config_field"] = config_field
        if config_value is not None:
            details["config_value"] = str(config_value)
        super().__init__(message, details)
        self.config_field = config_field
        self.config_value = config_value


class RegistryError(ReviewEngineError):
    """Exception raised when the checkpoint registry is misused."""

    def __init__(self, message: str, checkpoint_id: Optional[str] = None):
        details = {}
        if checkpoint_id:
            details["checkpoint_id"] = checkpoint_id
        super().__init__(message, details)
        self.checkpoint_id = checkpoint_id


class CheckpointNotFoundError(RegistryError):
    """Exception raised when a checkpoint id is not registered."""

    def __init__(self, checkpoint_id: str):
        super().__init__(f"Unknown checkpoint: {checkpoint_id}", checkpoint_id)


class DetectorError(ReviewEngineError):
    """Exception raised when a detector fails while scanning."""

    def __init__(
        self,
        message: str,
        checkpoint_id: Optional[str] = None,
        content_snippet: Optional[str] = None,
    ):
        details = {}
        if checkpoint_id:
            details["checkpoint_id"] = checkpoint_id
        if content_snippet:
            # Truncate content snippet for readability
            snippet = (
                content_snippet[:100] + "..."
                if len(content_snippet) > 100
                else content_snippet
            )
            details["content_snippet"] = snippet
        super().__init__(message, details)
        self.checkpoint_id = checkpoint_id
        self.content_snippet = content_snippet


class FileProcessingError(ReviewEngineError):
    """Exception raised when file processing fails."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        line_number: Optional[int] = None,
    ):
        details = {}
        if file_path:
            details["file_path"] = file_path
        if line_number:
            details["line_number"] = line_number
        super().__init__(message, details)
        self.file_path = file_path
        self.line_number = line_number


class FileReadError(FileProcessingError):
    """Exception raised when file reading fails."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        encoding: Optional[str] = None,
    ):
        super().__init__(message, file_path)
        if encoding:
            self.details["encoding"] = encoding
        self.encoding = encoding


class FindingSchemaError(ReviewEngineError):
    """Exception raised when a finding cannot satisfy the finding schema."""

    def __init__(
        self, message: str, field: Optional[str] = None, checkpoint_id: Optional[str] = None
    ):
        details = {}
        if field:
            details["field"] = field
        if checkpoint_id:
            details["checkpoint_id"] = checkpoint_id
        super().__init__(message, details)
        self.field = field
        self.checkpoint_id = checkpoint_id


class EvaluationTimeoutError(FileProcessingError):
    """Exception raised when evaluating a single file takes too long."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(message, file_path)
        if timeout_seconds:
            self.details["timeout_seconds"] = timeout_seconds
        self.timeout_seconds = timeout_seconds


def handle_review_error(
    error: Exception, context: Optional[dict] = None
) -> ReviewEngineError:
    """Convert generic exceptions to ReviewEngineError with context."""
    if isinstance(error, ReviewEngineError):
        return error

    error_context = dict(context or {})
    error_context["original_error"] = str(error)
    error_context["error_type"] = type(error).__name__

    if isinstance(error, FileNotFoundError):
        return FileReadError(
            f"File not found: {error}", file_path=error_context.get("file_path")
        )
    elif isinstance(error, PermissionError):
        return FileReadError(
            f"Permission denied: {error}", file_path=error_context.get("file_path")
        )
    elif isinstance(error, UnicodeDecodeError):
        return FileReadError(
            f"Encoding error: {error}", file_path=error_context.get("file_path")
        )
    elif isinstance(error, TimeoutError):
        return EvaluationTimeoutError(
            f"Operation timed out: {error}",
            file_path=error_context.get("file_path"),
            timeout_seconds=error_context.get("timeout_seconds"),
        )
    else:
        return ReviewEngineError(f"Unexpected error: {error}", details=error_context)
