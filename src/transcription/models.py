"""Value types shared by the transcription job client."""
import asyncio
import logging
import secrets
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from src.constants import (
    FAIL_TYPE_DESCRIPTIONS,
    FAIL_TYPE_OTHER,
    LANGUAGE_AUTODIALECT,
    LANGUAGE_AUTOMINOR,
    LANGUAGE_LABELS,
    NONCE_ALPHABET,
    NONCE_LENGTH,
    STATUS_CODE_COMPLETED,
    STATUS_CODE_CREATED,
    STATUS_CODE_FAILED,
    STATUS_CODE_PROCESSING,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    app_id: str
    access_key_id: str
    access_key_secret: str = field(repr=False)


class LanguageMode(str, Enum):
    AUTODIALECT = LANGUAGE_AUTODIALECT
    AUTOMINOR = LANGUAGE_AUTOMINOR

    @property
    def label(self) -> str:
        return LANGUAGE_LABELS[self.value]


class JobStatus(str, Enum):
    CREATED = "created"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMEOUT = "timeout"

    @classmethod
    def from_code(cls, code: int) -> "JobStatus":
        """Map a vendor order status code; unknown codes keep the job polling."""
        match code:
            case c if c == STATUS_CODE_CREATED:
                return cls.CREATED
            case c if c == STATUS_CODE_PROCESSING:
                return cls.PROCESSING
            case c if c == STATUS_CODE_COMPLETED:
                return cls.COMPLETED
            case c if c == STATUS_CODE_FAILED:
                return cls.FAILED
            case _:
                return cls.PROCESSING

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.TIMEOUT)


def generate_nonce() -> str:
    return "".join(secrets.choice(NONCE_ALPHABET) for _ in range(NONCE_LENGTH))


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


@dataclass
class Job:
    """One vendor order. The nonce signs both the upload and every poll."""

    job_id: str
    nonce: str
    duration_ms: int
    status: JobStatus = JobStatus.CREATED


@dataclass(frozen=True)
class Segment:
    bg: int
    ed: int
    text: str


@dataclass(frozen=True)
class FailureRecord:
    message: str
    job_id: str
    status: JobStatus
    timestamp: str
    fail_type: Optional[int] = None
    original_duration: Optional[int] = None
    attempts: Optional[int] = None

    @property
    def fail_type_description(self) -> str:
        match self.fail_type:
            case None:
                return ""
            case code:
                return FAIL_TYPE_DESCRIPTIONS.get(code, FAIL_TYPE_DESCRIPTIONS[FAIL_TYPE_OTHER])

    def to_dict(self) -> dict:
        record = asdict(self)
        record["status"] = self.status.value
        return record


class Phase(str, Enum):
    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PARSING = "parsing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ProgressEvent:
    phase: Phase
    message: str
    job_id: Optional[str] = None
    attempt: Optional[int] = None
    max_attempts: Optional[int] = None


ProgressQueue = asyncio.Queue


def publish(queue: Optional[ProgressQueue], event: ProgressEvent) -> None:
    """Put ``event`` on the caller's queue without waiting. A full queue drops it."""
    match queue:
        case None:
            return
        case q:
            try:
                q.put_nowait(event)
            except asyncio.QueueFull:
                logger.debug("Progress queue full, dropped %s event", event.phase.value)


@dataclass(frozen=True)
class Transcript:
    job_id: str
    segments: tuple[Segment, ...]
    srt: str

    @property
    def segment_count(self) -> int:
        return len(self.segments)
