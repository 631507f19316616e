"""
Pipeline Errors

Exceptions raised inside the inbound pipeline. Only ValidationError is ever
surfaced to the webhook caller as a failure; everything else is handled and
acknowledged.
"""

from typing import Any


class PipelineError(Exception):
    """Base error for the inbound pipeline."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(PipelineError):
    """Malformed webhook payload or address."""


class TenantNotFoundError(PipelineError):
    """No building owns the recipient address."""


class SenderNotFoundError(PipelineError):
    """No resident of the building matches the sender address."""


class AmbiguousSenderError(SenderNotFoundError):
    """More than one resident of the building matches the sender address."""


class ConversationConflictError(PipelineError):
    """Another delivery created the active conversation first. Retryable."""

    retryable = True


class ClassificationParseError(PipelineError):
    """Classifier output could not be turned into a ClassificationResult."""


class DuplicateMessageError(PipelineError):
    """The provider message SID was stored by a concurrent delivery."""
