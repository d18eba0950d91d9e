"""JobPoller — bounded, cancellable status polling for one iFLYTEK order."""
import asyncio
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from src.constants import (
    CONTENT_TYPE_JSON,
    IFLYTEK_BASE_URL,
    IFLYTEK_RESULT_PATH,
    IFLYTEK_RESULT_TYPE,
    IFLYTEK_SIGNATURE_HEADER,
    IFLYTEK_SUCCESS_CODE,
    MSG_ERR_CANCELLED,
    MSG_ERR_TERMINAL,
    MSG_ERR_TIMEOUT,
    MSG_PHASE_PROCESSING,
    POLL_INTERVAL,
    POLL_MAX_ATTEMPTS,
    QUERY_TIMEOUT,
)
from src.transcription.errors import (
    JobCancelled,
    TerminalFailure,
    TimeoutFailure,
    TransientPollError,
)
from src.transcription.models import (
    Credentials,
    FailureRecord,
    Job,
    JobStatus,
    Phase,
    ProgressEvent,
    ProgressQueue,
    publish,
    utc_timestamp,
)
from src.transcription.schema import QueryResponse
from src.transcription.signer import sign, vendor_datetime

logger = logging.getLogger(__name__)


async def _wait(interval: float, cancel: Optional[asyncio.Event]) -> bool:
    """Sleep ``interval`` seconds; return True if ``cancel`` fired first."""
    match cancel:
        case None:
            await asyncio.sleep(interval)
            return False
        case event if event.is_set():
            return True
        case event:
            try:
                await asyncio.wait_for(event.wait(), timeout=interval)
                return True
            except asyncio.TimeoutError:
                return False


class JobPoller:

    def __init__(
        self,
        http: httpx.AsyncClient,
        credentials: Credentials,
        base_url: str = IFLYTEK_BASE_URL,
    ) -> None:
        self._http = http
        self._credentials = credentials
        self._url = base_url.rstrip("/") + IFLYTEK_RESULT_PATH

    def build_params(self, job: Job) -> dict[str, str]:
        return {
            "accessKeyId": self._credentials.access_key_id,
            "dateTime": vendor_datetime(),
            "signatureRandom": job.nonce,
            "orderId": job.job_id,
            "resultType": IFLYTEK_RESULT_TYPE,
        }

    async def query(self, job: Job) -> Optional[str]:
        """One signed getResult call.

        Returns the order result once it is attached, None while the order is
        still running. Raises TerminalFailure when the vendor reports failure
        and TransientPollError for anything worth retrying.
        """
        params = self.build_params(job)
        headers = {
            "Content-Type": CONTENT_TYPE_JSON,
            IFLYTEK_SIGNATURE_HEADER: sign(params, self._credentials.access_key_secret),
        }
        try:
            response = await self._http.post(
                self._url, params=params, json={}, headers=headers, timeout=QUERY_TIMEOUT
            )
            body = QueryResponse.model_validate_json(response.content)
        except (httpx.HTTPError, ValidationError) as exc:
            raise TransientPollError(f"query for {job.job_id} failed: {exc}") from exc

        if body.code != IFLYTEK_SUCCESS_CODE or body.content is None:
            raise TransientPollError(f"query for {job.job_id} rejected: {body.code} {body.desc_info}")

        content = body.content
        info = content.order_info
        job.status = JobStatus.from_code(info.status)
        match job.status:
            case JobStatus.FAILED:
                record = FailureRecord(
                    message=MSG_ERR_TERMINAL,
                    job_id=job.job_id,
                    status=JobStatus.FAILED,
                    timestamp=utc_timestamp(),
                    fail_type=info.fail_type,
                    original_duration=(
                        job.duration_ms if info.original_duration is None else info.original_duration
                    ),
                )
                logger.error("Order failed: %s", record.to_dict())
                raise TerminalFailure(record)
            case JobStatus.COMPLETED if content.order_result:
                return content.order_result
            case _:
                return None

    async def poll(
        self,
        job: Job,
        max_attempts: int = POLL_MAX_ATTEMPTS,
        interval: float = POLL_INTERVAL,
        progress: Optional[ProgressQueue] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> str:
        attempts = 0
        while attempts < max_attempts:
            if await _wait(interval, cancel):
                logger.info("Order %s cancelled after %d attempts", job.job_id, attempts)
                raise JobCancelled(MSG_ERR_CANCELLED % (job.job_id, attempts), job.job_id, attempts)

            attempts += 1
            try:
                result = await self.query(job)
            except TransientPollError as exc:
                logger.warning("Attempt %d/%d: %s", attempts, max_attempts, exc)
                result = None

            match result:
                case str() as payload if payload:
                    logger.info("Order %s completed after %d attempts", job.job_id, attempts)
                    return payload
                case _:
                    logger.debug("Order %s %s (%d/%d)", job.job_id, job.status.value, attempts, max_attempts)
                    publish(progress, ProgressEvent(
                        phase=Phase.PROCESSING,
                        message=MSG_PHASE_PROCESSING % (attempts, max_attempts),
                        job_id=job.job_id,
                        attempt=attempts,
                        max_attempts=max_attempts,
                    ))

        job.status = JobStatus.TIMEOUT
        record = FailureRecord(
            message=MSG_ERR_TIMEOUT % max_attempts,
            job_id=job.job_id,
            status=JobStatus.TIMEOUT,
            timestamp=utc_timestamp(),
            original_duration=job.duration_ms,
            attempts=attempts,
        )
        logger.error("Order timed out: %s", record.to_dict())
        raise TimeoutFailure(record)
