"""TDD: duration estimator tests written FIRST"""
import io
import math
import wave
from unittest.mock import patch

from src.transcription.duration import estimate_duration_ms, fallback_duration_ms


def _wav_bytes(frames: int, rate: int = 8000) -> bytes:
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(b"\x00\x00" * frames)
    return buffer.getvalue()


def test_metadata_duration_is_rounded_up():
    audio = _wav_bytes(12345)  # 1.543125 s
    assert estimate_duration_ms(audio) == math.ceil(12345 / 8000 * 1000) == 1544


def test_metadata_whole_seconds():
    assert estimate_duration_ms(_wav_bytes(16000)) == 2000


def test_unparseable_bytes_use_bitrate_fallback():
    audio = b"\x00" * 4000
    assert estimate_duration_ms(audio) == math.ceil(4000 * 8 / 128000 * 1000) == 250


def test_fallback_rounds_up():
    assert fallback_duration_ms(1001) == 63


def test_parser_exception_falls_back_silently():
    audio = b"\x01" * 1001
    with patch("src.transcription.duration.mutagen.File", side_effect=RuntimeError("boom")):
        assert estimate_duration_ms(audio) == 63


def test_metadata_without_length_falls_back():
    class _Info:
        length = 0

    class _Parsed:
        info = _Info()

    with patch("src.transcription.duration.mutagen.File", return_value=_Parsed()):
        assert estimate_duration_ms(b"\x00" * 16000) == 1000


def test_empty_audio_is_zero():
    assert estimate_duration_ms(b"") == 0
