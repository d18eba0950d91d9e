"""Audio duration estimate for the upload request, in whole milliseconds."""
import io
import logging
import math

import mutagen

from src.constants import FALLBACK_BITRATE_BPS

logger = logging.getLogger(__name__)


def fallback_duration_ms(size: int) -> int:
    return math.ceil(size * 8 / FALLBACK_BITRATE_BPS * 1000)


def _metadata_seconds(audio: bytes) -> float | None:
    match mutagen.File(io.BytesIO(audio)):
        case None:
            return None
        case parsed if getattr(parsed.info, "length", 0):
            return float(parsed.info.length)
        case _:
            return None


def estimate_duration_ms(audio: bytes) -> int:
    """Duration from container metadata, rounded up; byte-rate guess when unavailable.

    Never raises: any metadata failure degrades to the 128 kbit/s estimate.
    """
    try:
        seconds = _metadata_seconds(audio)
    except Exception as exc:
        logger.warning("Could not read audio metadata: %s", exc)
        seconds = None

    match seconds:
        case None:
            estimate = fallback_duration_ms(len(audio))
            logger.warning("Audio duration unknown, estimated %dms from size", estimate)
            return estimate
        case s:
            duration = math.ceil(s * 1000)
            logger.info("Audio duration: %dms (%.2fs)", duration, s)
            return duration
