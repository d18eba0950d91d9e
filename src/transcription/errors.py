"""Failure taxonomy for the transcription job client.

Every error that reaches the caller carries its structured payload as
attributes; nothing here is meant to be recovered by parsing ``str(exc)``.
"""
from typing import Optional

from src.transcription.models import FailureRecord


class TranscriptionError(Exception):
    """Base error for the transcription job client."""


class ConfigError(TranscriptionError, ValueError):
    """Raised at startup when credentials or settings are missing."""


class UploadError(TranscriptionError):
    """Raised when the audio upload fails. Never retried internally."""

    def __init__(
        self, message: str, code: Optional[str] = None, desc_info: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.code = code
        self.desc_info = desc_info


class TransientPollError(TranscriptionError):
    """A single poll attempt failed for a non-terminal reason; the poller retries."""


class JobFailure(TranscriptionError):
    """A job ended without a result. ``record`` holds the full diagnostic."""

    def __init__(self, record: FailureRecord) -> None:
        super().__init__(record.message)
        self.record = record


class TerminalFailure(JobFailure):
    """The vendor reported the order as failed."""


class TimeoutFailure(JobFailure):
    """The order never reached a terminal state within the attempt budget."""


class JobCancelled(TranscriptionError):
    """The caller aborted polling before the attempt budget ran out."""

    def __init__(self, message: str, job_id: str, attempts: int) -> None:
        super().__init__(message)
        self.job_id = job_id
        self.attempts = attempts


class ParseError(TranscriptionError):
    """The result payload's top-level shape is not a lattice document."""


class EmptyInputError(TranscriptionError):
    """There are no segments to serialise."""
