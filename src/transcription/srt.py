"""SRT rendering for transcription segments."""
from collections.abc import Sequence

from src.constants import MSG_ERR_EMPTY
from src.transcription.errors import EmptyInputError
from src.transcription.models import Segment


def ms_to_srt_timestamp(ms: int) -> str:
    """Convert milliseconds to SRT timestamp format: HH:MM:SS,mmm (truncating)."""
    hours, rest = divmod(ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"


def _cue(index: int, segment: Segment) -> str:
    start = ms_to_srt_timestamp(segment.bg)
    end = ms_to_srt_timestamp(segment.ed)
    return f"{index}\n{start} --> {end}\n{segment.text}\n\n"


def render_srt(segments: Sequence[Segment]) -> str:
    match segments:
        case []:
            raise EmptyInputError(MSG_ERR_EMPTY)
        case _:
            return "".join(map(lambda item: _cue(*item), enumerate(segments, start=1)))
