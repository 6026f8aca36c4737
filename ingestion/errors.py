"""Error taxonomy for the intake pipeline."""
from __future__ import annotations


class IntakeError(Exception):
    """Base class for intake errors; str(exc) is the user-facing message."""

    default_message = "Upload failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(IntakeError):
    """Submission rejected locally (incomplete selection, batch limits)."""

    default_message = "Please complete the selection first"


class TransportError(IntakeError):
    """Network failure, non-2xx response, or a success body without a job id."""

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PollTimeoutError(IntakeError):
    """Attempt budget exhausted before the job reached a terminal status."""

    default_message = "Parsing timed out"

    def __init__(self, job_id: str, attempts: int, message: str | None = None):
        super().__init__(message)
        self.job_id = job_id
        self.attempts = attempts


class ParseFailure(IntakeError):
    default_message = "Parsing failed"


class CatalogError(IntakeError):
    default_message = "Failed to load bank templates"


class InvalidTransitionError(IntakeError):
    def __init__(self, current, target):
        super().__init__(f"Invalid status transition: {current.value} -> {target.value}")
        self.current = current
        self.target = target
