"""Typed failures of quiz generation."""

from __future__ import annotations

from enum import Enum

__all__ = [
    "GenerationErrorKind",
    "GenerationError",
    "ValidationError",
    "InvalidModelOutput",
    "UpstreamFailure",
    "error_for_status",
]


class GenerationErrorKind(str, Enum):
    VALIDATION = "validation"
    INVALID_MODEL_OUTPUT = "invalid_model_output"
    UPSTREAM_FAILURE = "upstream_failure"


class GenerationError(RuntimeError):
    """Base class; ``str(exc)`` is safe to show to end users."""

    kind: GenerationErrorKind = GenerationErrorKind.UPSTREAM_FAILURE
    status_code: int = 500
    default_message = "An error occurred while generating the quiz."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(GenerationError):
    """The caller supplied missing or malformed input."""

    kind = GenerationErrorKind.VALIDATION
    status_code = 400
    default_message = "Extracted text is missing."


class InvalidModelOutput(GenerationError):
    """The model answered with text that is not a usable quiz."""

    kind = GenerationErrorKind.INVALID_MODEL_OUTPUT
    default_message = "The model returned an invalid quiz. Please try again."


class UpstreamFailure(GenerationError):
    """The model provider call itself failed."""

    kind = GenerationErrorKind.UPSTREAM_FAILURE
    default_message = "A server error occurred while generating the quiz."


def error_for_status(status_code: int, message: str | None) -> GenerationError:
    """Map an HTTP error response back onto the error taxonomy."""

    if 400 <= status_code < 500:
        return ValidationError(message)
    return UpstreamFailure(message)
