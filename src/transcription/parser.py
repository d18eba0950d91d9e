"""Order result → flat, source-ordered list of Segments."""
import logging
from itertools import chain
from typing import Any

from pydantic import ValidationError

from src.constants import MSG_ERR_PARSE
from src.transcription.errors import ParseError
from src.transcription.models import Segment
from src.transcription.schema import LatticeEntry, OrderResult, RecognitionGroup

logger = logging.getLogger(__name__)


def _group_text(group: RecognitionGroup) -> str:
    return "".join(filter(lambda w: w.strip(), map(lambda ws: ws.best, group.ws))).strip()


def _entry_segments(index: int, raw: Any) -> list[Segment]:
    try:
        entry = LatticeEntry.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Skipping malformed lattice entry %d: %s", index, exc.errors()[:1])
        return []

    sentence = entry.json_1best.st
    texts = filter(None, map(_group_text, sentence.rt))
    # Groups of one entry share its offsets; they are kept as separate cues.
    return list(map(lambda text: Segment(bg=sentence.bg, ed=sentence.ed, text=text), texts))


def parse_result(payload: str | bytes) -> list[Segment]:
    """Decode an ``orderResult`` document.

    A payload that is not JSON or has no ``lattice`` list raises ParseError;
    individual broken entries are skipped.
    """
    try:
        document = OrderResult.model_validate_json(payload)
    except ValidationError as exc:
        logger.error("Unrecognised order result (%d chars): %s", len(payload), exc.errors()[:1])
        raise ParseError(MSG_ERR_PARSE) from exc

    return list(chain.from_iterable(map(lambda item: _entry_segments(*item), enumerate(document.lattice))))
