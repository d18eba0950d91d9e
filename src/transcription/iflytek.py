"""IflytekTranscriptionClient — iFLYTEK office ASR (V2) subtitle backend."""
import asyncio
import logging
from typing import Optional

import httpx

from src.constants import (
    IFLYTEK_BASE_URL,
    IFLYTEK_UPLOAD_FILENAME,
    MSG_PHASE_CANCELLED,
    MSG_PHASE_COMPLETED,
    MSG_PHASE_FAILED,
    MSG_PHASE_PARSING,
    MSG_PHASE_TIMEOUT,
    MSG_PHASE_UPLOADED,
    MSG_PHASE_UPLOADING,
    POLL_INTERVAL,
    POLL_MAX_ATTEMPTS,
)
from src.history import HistoryError, HistorySink
from src.transcription.client import TranscriptionClient
from src.transcription.errors import (
    JobCancelled,
    TerminalFailure,
    TimeoutFailure,
    TranscriptionError,
)
from src.transcription.models import (
    Credentials,
    LanguageMode,
    Phase,
    ProgressEvent,
    ProgressQueue,
    Transcript,
    generate_nonce,
    publish,
)
from src.transcription.parser import parse_result
from src.transcription.poller import JobPoller
from src.transcription.srt import render_srt
from src.transcription.submitter import JobSubmitter

logger = logging.getLogger(__name__)


def _failure_event(exc: TranscriptionError, job_id: Optional[str]) -> ProgressEvent:
    match exc:
        case TerminalFailure(record=record):
            return ProgressEvent(Phase.FAILED, MSG_PHASE_FAILED % record.fail_type, job_id=job_id)
        case TimeoutFailure(record=record):
            return ProgressEvent(
                Phase.FAILED, MSG_PHASE_TIMEOUT, job_id=job_id,
                attempt=record.attempts, max_attempts=record.attempts,
            )
        case JobCancelled(attempts=attempts):
            return ProgressEvent(Phase.CANCELLED, MSG_PHASE_CANCELLED, job_id=job_id, attempt=attempts)
        case _:
            return ProgressEvent(Phase.FAILED, str(exc), job_id=job_id)


class IflytekTranscriptionClient(TranscriptionClient):
    """Upload → poll → parse → SRT, one order per ``transcribe`` call.

    ``http`` may be shared by the host; when omitted each call opens and
    closes its own ``httpx.AsyncClient``. Calls share nothing mutable.
    """

    def __init__(
        self,
        credentials: Credentials,
        base_url: str = IFLYTEK_BASE_URL,
        max_attempts: int = POLL_MAX_ATTEMPTS,
        interval: float = POLL_INTERVAL,
        history: Optional[HistorySink] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._credentials = credentials
        self._base_url = base_url
        self._max_attempts = max_attempts
        self._interval = interval
        self._history = history
        self._http = http

    async def transcribe(
        self,
        audio: bytes,
        language: LanguageMode = LanguageMode.AUTODIALECT,
        progress: Optional[ProgressQueue] = None,
        cancel: Optional[asyncio.Event] = None,
        file_name: Optional[str] = None,
    ) -> Transcript:
        mode = LanguageMode(language)
        match self._http:
            case None:
                async with httpx.AsyncClient() as http:
                    transcript = await self._run(http, audio, mode, progress, cancel)
            case http:
                transcript = await self._run(http, audio, mode, progress, cancel)

        self._record_history(file_name or IFLYTEK_UPLOAD_FILENAME, mode, transcript)
        return transcript

    async def _run(
        self,
        http: httpx.AsyncClient,
        audio: bytes,
        language: LanguageMode,
        progress: Optional[ProgressQueue],
        cancel: Optional[asyncio.Event],
    ) -> Transcript:
        nonce = generate_nonce()
        job_id: Optional[str] = None
        try:
            publish(progress, ProgressEvent(Phase.UPLOADING, MSG_PHASE_UPLOADING))
            job = await JobSubmitter(http, self._credentials, self._base_url).submit(audio, language, nonce)
            job_id = job.job_id
            publish(progress, ProgressEvent(Phase.UPLOADED, MSG_PHASE_UPLOADED % job_id, job_id=job_id))

            payload = await JobPoller(http, self._credentials, self._base_url).poll(
                job,
                max_attempts=self._max_attempts,
                interval=self._interval,
                progress=progress,
                cancel=cancel,
            )

            publish(progress, ProgressEvent(Phase.PARSING, MSG_PHASE_PARSING, job_id=job_id))
            segments = parse_result(payload)
            srt = render_srt(segments)
        except TranscriptionError as exc:
            publish(progress, _failure_event(exc, job_id))
            raise

        logger.info("Order %s transcribed: %d segments", job_id, len(segments))
        publish(progress, ProgressEvent(
            Phase.COMPLETED, MSG_PHASE_COMPLETED % len(segments), job_id=job_id
        ))
        return Transcript(job_id=job_id, segments=tuple(segments), srt=srt)

    def _record_history(self, file_name: str, language: LanguageMode, transcript: Transcript) -> None:
        match self._history:
            case None:
                return
            case sink:
                try:
                    sink.add(file_name, language, transcript.segment_count, transcript.srt)
                except HistoryError:
                    logger.exception("Could not record history for order %s", transcript.job_id)
