"""
Exception hierarchy for the document translation pipeline.

Every failure a pipeline run can surface derives from PipelineError. Each
class carries a short ``kind`` (persisted in the Translation error message)
and the HTTP status code the service boundary answers with.
"""

from typing import Optional, Dict, Any


class PipelineError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        context: Additional context about the error
    """

    kind = "pipeline_error"
    status_code = 500

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        base = self.message
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base += f" ({context_str})"
        return base

    def as_record_message(self) -> str:
        """Message stored on a failed Translation record."""
        return f"{self.kind}: {self}"


class NotFoundError(PipelineError):
    """Raised when a Document or Translation record does not exist."""
    kind = "not_found"
    status_code = 404


class StorageError(PipelineError):
    """Raised when an object-store read or write fails."""
    kind = "storage_error"


class TranslationServiceError(PipelineError):
    """Raised when a segment could not be translated after all retries."""
    kind = "translation_service_error"
    status_code = 502


class TranslationTimeoutError(TranslationServiceError):
    """Raised when the last translation attempt timed out."""
    kind = "translation_timeout"
    status_code = 504


class RenderError(PipelineError):
    """Raised when a renderer rejects its input."""
    kind = "render_error"


class RepositoryError(PipelineError):
    """Raised when the relational store cannot be read or written."""
    kind = "repository_error"


class UpdateError(RepositoryError):
    """Raised when the final status write fails after artifacts are stored."""
    kind = "update_error"


class DeadlineExceededError(PipelineError):
    """Raised when a whole run exceeds the request deadline."""
    kind = "deadline_exceeded"
    status_code = 504


class InvalidTransitionError(PipelineError):
    """Raised when a terminal Translation would change status again."""
    kind = "invalid_transition"
    status_code = 409
