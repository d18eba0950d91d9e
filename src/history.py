"""Transcription history — the sink a finished transcript is handed to."""
import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path

from src.constants import DEFAULT_HISTORY_PATH, HISTORY_LIST_LIMIT
from src.transcription.models import LanguageMode, utc_timestamp

logger = logging.getLogger(__name__)


class HistoryError(Exception):
    """Raised when a history record cannot be written."""


@dataclass(frozen=True)
class HistoryRecord:
    id: str
    file_name: str
    language: str
    language_label: str
    segment_count: int
    srt_content: str
    created_at: str


class HistorySink(ABC):
    @abstractmethod
    def add(
        self, file_name: str, language: LanguageMode, segment_count: int, srt_content: str
    ) -> HistoryRecord:
        """Record a finished transcription. Raises HistoryError on failure."""
        ...


class JsonHistoryStore(HistorySink):
    """Newest-last list of HistoryRecord dicts in a single JSON file."""

    def __init__(self, path: Path = Path(DEFAULT_HISTORY_PATH)) -> None:
        self._path = path
        self._records: list[dict] = []
        self._load()

    def _load(self) -> None:
        match self._path.exists():
            case True:
                try:
                    with open(self._path, encoding="utf-8") as f:
                        self._records = list(json.load(f))
                except Exception as e:
                    logger.warning("History load failed: %s, starting fresh", e)
            case False:
                pass

    def _save(self, records: list[dict]) -> None:
        try:
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error("History save failed: %s", e)
            raise HistoryError(f"could not write {self._path}: {e}") from e

    def add(
        self, file_name: str, language: LanguageMode, segment_count: int, srt_content: str
    ) -> HistoryRecord:
        mode = LanguageMode(language)
        record = HistoryRecord(
            id=str(uuid.uuid4()),
            file_name=file_name,
            language=mode.value,
            language_label=mode.label,
            segment_count=segment_count,
            srt_content=srt_content,
            created_at=utc_timestamp(),
        )
        records = [*self._records, asdict(record)]
        self._save(records)
        self._records = records
        logger.info("History: saved %s (%d segments)", file_name, segment_count)
        return record

    def recent(self, limit: int = HISTORY_LIST_LIMIT) -> list[HistoryRecord]:
        newest_first = reversed(self._records[-limit:]) if limit > 0 else []
        return list(map(lambda r: HistoryRecord(**r), newest_first))

    def get(self, record_id: str) -> HistoryRecord | None:
        match list(filter(lambda r: r.get("id") == record_id, self._records)):
            case [found, *_]:
                return HistoryRecord(**found)
            case _:
                return None

    def delete(self, record_id: str) -> bool:
        remaining = list(filter(lambda r: r.get("id") != record_id, self._records))
        match len(remaining) == len(self._records):
            case True:
                return False
            case False:
                self._save(remaining)
                self._records = remaining
                return True

    def clear(self) -> None:
        self._save([])
        self._records = []
