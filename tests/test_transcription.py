"""TDD: IflytekTranscriptionClient tests written FIRST"""
import asyncio
import json
from unittest.mock import MagicMock

import httpx
import pytest

from src.history import HistoryError, HistorySink, JsonHistoryStore
from src.transcription.client import TranscriptionClient
from src.transcription.errors import (
    EmptyInputError,
    JobCancelled,
    ParseError,
    TerminalFailure,
    TimeoutFailure,
    UploadError,
)
from src.transcription.iflytek import IflytekTranscriptionClient
from src.transcription.models import Credentials, LanguageMode, Phase

CREDENTIALS = Credentials(app_id="app123", access_key_id="key456", access_key_secret="s3cret")
BASE_URL = "https://asr.example.test"
AUDIO = b"\x00" * 8000


# --- Helpers ---

def _lattice(*texts: str) -> str:
    entries = [
        {"json_1best": json.dumps(
            {"st": {"bg": str(i * 1000), "ed": str(i * 1000 + 900),
                    "rt": [{"ws": [{"cw": [{"w": ch}]} for ch in text]}]}},
            ensure_ascii=False,
        )}
        for i, text in enumerate(texts)
    ]
    return json.dumps({"lattice": entries}, ensure_ascii=False)


def _order(status: int, fail_type: int = 0, result: str | None = None) -> dict:
    content = {"orderInfo": {"status": status, "failType": fail_type, "orderId": "ORDER1", "originalDuration": 500}}
    if result is not None:
        content["orderResult"] = result
    return {"code": "000000", "descInfo": "success", "content": content}


UPLOAD_OK = {"code": "000000", "descInfo": "success", "content": {"orderId": "ORDER1", "taskEstimateTime": 1}}


def _vendor(upload: dict, orders: list[dict], calls: list) -> httpx.AsyncClient:
    script = iter(orders)

    def _handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        match request.url.path:
            case "/v2/upload":
                return httpx.Response(200, json=upload)
            case "/v2/getResult":
                return httpx.Response(200, json=next(script))
            case path:
                return httpx.Response(404, json={"code": "404", "descInfo": path})

    return httpx.AsyncClient(transport=httpx.MockTransport(_handler))


def _phases(queue: asyncio.Queue) -> list[Phase]:
    phases = []
    while not queue.empty():
        phases.append(queue.get_nowait().phase)
    return phases


def _client(http: httpx.AsyncClient, **kwargs) -> IflytekTranscriptionClient:
    return IflytekTranscriptionClient(CREDENTIALS, base_url=BASE_URL, interval=0, http=http, **kwargs)


# --- Tests ---

def test_iflytek_client_implements_abc():
    assert issubclass(IflytekTranscriptionClient, TranscriptionClient)


@pytest.mark.asyncio
async def test_happy_path_end_to_end():
    calls: list = []
    queue: asyncio.Queue = asyncio.Queue()
    orders = [_order(3), _order(3), _order(4, result=_lattice("你好", "世界"))]

    async with _vendor(UPLOAD_OK, orders, calls) as http:
        transcript = await _client(http).transcribe(AUDIO, LanguageMode.AUTODIALECT, progress=queue)

    assert transcript.job_id == "ORDER1"
    assert transcript.segment_count == 2
    assert transcript.srt == (
        "1\n00:00:00,000 --> 00:00:00,900\n你好\n\n"
        "2\n00:00:01,000 --> 00:00:01,900\n世界\n\n"
    )
    assert _phases(queue) == [
        Phase.UPLOADING, Phase.UPLOADED, Phase.PROCESSING, Phase.PROCESSING, Phase.PARSING, Phase.COMPLETED,
    ]


@pytest.mark.asyncio
async def test_upload_and_polls_share_one_nonce():
    calls: list = []
    orders = [_order(3), _order(4, result=_lattice("ok"))]

    async with _vendor(UPLOAD_OK, orders, calls) as http:
        await _client(http).transcribe(AUDIO, LanguageMode.AUTOMINOR)

    nonces = {request.url.params["signatureRandom"] for request in calls}
    assert len(calls) == 3
    assert len(nonces) == 1
    assert len(nonces.pop()) == 16


@pytest.mark.asyncio
async def test_each_call_gets_a_fresh_nonce():
    calls: list = []
    orders = [_order(4, result=_lattice("a")), _order(4, result=_lattice("b"))]

    async with _vendor(UPLOAD_OK, orders, calls) as http:
        client = _client(http)
        await client.transcribe(AUDIO)
        await client.transcribe(AUDIO)

    assert calls[0].url.params["signatureRandom"] != calls[2].url.params["signatureRandom"]


@pytest.mark.asyncio
async def test_upload_failure_aborts_without_polling():
    calls: list = []
    queue: asyncio.Queue = asyncio.Queue()
    rejected = {"code": "26602", "descInfo": "invalid appId"}

    async with _vendor(rejected, [], calls) as http:
        with pytest.raises(UploadError) as excinfo:
            await _client(http).transcribe(AUDIO, progress=queue)

    assert excinfo.value.code == "26602"
    assert len(calls) == 1
    assert _phases(queue) == [Phase.UPLOADING, Phase.FAILED]


@pytest.mark.asyncio
async def test_terminal_failure_reaches_caller_with_full_record():
    queue: asyncio.Queue = asyncio.Queue()
    history = MagicMock(spec=HistorySink)

    async with _vendor(UPLOAD_OK, [_order(3), _order(-1, fail_type=6)], []) as http:
        with pytest.raises(TerminalFailure) as excinfo:
            await _client(http, history=history).transcribe(AUDIO, progress=queue)

    record = excinfo.value.record
    assert record.to_dict() == {
        "message": record.message,
        "job_id": "ORDER1",
        "status": "failed",
        "timestamp": record.timestamp,
        "fail_type": 6,
        "original_duration": 500,
        "attempts": None,
    }
    assert record.fail_type_description == "audio is silent"
    assert _phases(queue)[-1] is Phase.FAILED
    history.add.assert_not_called()


@pytest.mark.asyncio
async def test_timeout_reaches_caller():
    async with _vendor(UPLOAD_OK, [_order(3)] * 2, []) as http:
        with pytest.raises(TimeoutFailure) as excinfo:
            await _client(http, max_attempts=2).transcribe(AUDIO)

    assert excinfo.value.record.attempts == 2


@pytest.mark.asyncio
async def test_cancelled_job_emits_cancelled_phase():
    queue: asyncio.Queue = asyncio.Queue()
    cancel = asyncio.Event()
    cancel.set()

    async with _vendor(UPLOAD_OK, [], []) as http:
        with pytest.raises(JobCancelled):
            await _client(http).transcribe(AUDIO, progress=queue, cancel=cancel)

    assert _phases(queue) == [Phase.UPLOADING, Phase.UPLOADED, Phase.CANCELLED]


@pytest.mark.asyncio
async def test_unparseable_result_raises_parse_error():
    async with _vendor(UPLOAD_OK, [_order(4, result="not json")], []) as http:
        with pytest.raises(ParseError):
            await _client(http).transcribe(AUDIO)


@pytest.mark.asyncio
async def test_no_speech_raises_empty_input():
    async with _vendor(UPLOAD_OK, [_order(4, result=json.dumps({"lattice": []}))], []) as http:
        with pytest.raises(EmptyInputError):
            await _client(http).transcribe(AUDIO)


@pytest.mark.asyncio
async def test_invalid_language_is_rejected_before_upload():
    calls: list = []
    async with _vendor(UPLOAD_OK, [], calls) as http:
        with pytest.raises(ValueError):
            await _client(http).transcribe(AUDIO, "klingon")

    assert calls == []


@pytest.mark.asyncio
async def test_success_is_recorded_in_history(tmp_path):
    store = JsonHistoryStore(tmp_path / "history.json")

    async with _vendor(UPLOAD_OK, [_order(4, result=_lattice("你好"))], []) as http:
        transcript = await _client(http, history=store).transcribe(
            AUDIO, LanguageMode.AUTOMINOR, file_name="meeting.m4a"
        )

    [record] = store.recent()
    assert record.file_name == "meeting.m4a"
    assert record.language == "autominor"
    assert record.segment_count == 1
    assert record.srt_content == transcript.srt


@pytest.mark.asyncio
async def test_history_failure_does_not_fail_transcription():
    history = MagicMock(spec=HistorySink)
    history.add.side_effect = HistoryError("disk full")

    async with _vendor(UPLOAD_OK, [_order(4, result=_lattice("ok"))], []) as http:
        transcript = await _client(http, history=history).transcribe(AUDIO)

    assert transcript.segment_count == 1
    history.add.assert_called_once()
