"""JobSubmitter — signed audio upload that opens an iFLYTEK order."""
import logging

import httpx
from pydantic import ValidationError

from src.constants import (
    CONTENT_TYPE_OCTET_STREAM,
    IFLYTEK_BASE_URL,
    IFLYTEK_SIGNATURE_HEADER,
    IFLYTEK_SUCCESS_CODE,
    IFLYTEK_UPLOAD_FILENAME,
    IFLYTEK_UPLOAD_PATH,
    MSG_ERR_UPLOAD,
    UPLOAD_TIMEOUT,
)
from src.transcription.duration import estimate_duration_ms
from src.transcription.errors import UploadError
from src.transcription.models import Credentials, Job, LanguageMode
from src.transcription.schema import UploadResponse
from src.transcription.signer import canonical_string, sign, vendor_datetime

logger = logging.getLogger(__name__)


class JobSubmitter:
    """Uploads audio bytes and returns the vendor order as a Job.

    Inputs are trusted: size and language validation belong to the caller.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        credentials: Credentials,
        base_url: str = IFLYTEK_BASE_URL,
    ) -> None:
        self._http = http
        self._credentials = credentials
        self._url = base_url.rstrip("/") + IFLYTEK_UPLOAD_PATH

    def build_params(self, audio: bytes, language: LanguageMode, nonce: str, duration_ms: int) -> dict[str, str]:
        return {
            "appId": self._credentials.app_id,
            "accessKeyId": self._credentials.access_key_id,
            "dateTime": vendor_datetime(),
            "signatureRandom": nonce,
            "fileSize": str(len(audio)),
            "fileName": IFLYTEK_UPLOAD_FILENAME,
            "duration": str(duration_ms),
            "language": LanguageMode(language).value,
        }

    async def submit(self, audio: bytes, language: LanguageMode, nonce: str) -> Job:
        duration_ms = estimate_duration_ms(audio)
        params = self.build_params(audio, language, nonce, duration_ms)
        logger.debug("Upload base string: %s", canonical_string(params))
        headers = {
            "Content-Type": CONTENT_TYPE_OCTET_STREAM,
            IFLYTEK_SIGNATURE_HEADER: sign(params, self._credentials.access_key_secret),
        }
        logger.info(
            "Uploading %d bytes (duration %dms, language %s)",
            len(audio), duration_ms, params["language"],
        )

        try:
            response = await self._http.post(
                self._url, params=params, content=audio, headers=headers, timeout=UPLOAD_TIMEOUT
            )
        except httpx.TimeoutException as exc:
            logger.error("Upload timed out after %.0fs", UPLOAD_TIMEOUT)
            raise UploadError(MSG_ERR_UPLOAD % f"timed out after {UPLOAD_TIMEOUT:.0f}s") from exc
        except httpx.HTTPError as exc:
            logger.error("Upload transport error: %s", exc)
            raise UploadError(MSG_ERR_UPLOAD % exc) from exc

        try:
            body = UploadResponse.model_validate_json(response.content)
        except ValidationError as exc:
            logger.error("Unreadable upload response (HTTP %d)", response.status_code)
            raise UploadError(MSG_ERR_UPLOAD % f"HTTP {response.status_code}") from exc

        match (body.code, body.content):
            case (code, content) if code == IFLYTEK_SUCCESS_CODE and content is not None:
                logger.info("Upload accepted, order id: %s", content.order_id)
                return Job(job_id=content.order_id, nonce=nonce, duration_ms=duration_ms)
            case (code, _):
                logger.error(
                    "Upload rejected: code=%s descInfo=%s dateTime=%s",
                    code, body.desc_info, params["dateTime"],
                )
                raise UploadError(MSG_ERR_UPLOAD % body.desc_info, code=code, desc_info=body.desc_info)
