"""Per-chat settings persisted as a flat JSON object."""
import json
import logging
from pathlib import Path

from src.constants import DEFAULT_LANGUAGE_STORE_PATH
from src.transcription.models import LanguageMode

logger = logging.getLogger(__name__)


class ChatStore:

    def __init__(self, path: Path):
        self._path = path
        self._store: dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        match self._path.exists():
            case True:
                try:
                    with open(self._path) as f:
                        raw = json.load(f)
                    self._store = dict(map(lambda kv: (str(kv[0]), str(kv[1])), raw.items()))
                except Exception as e:
                    logger.warning(f"Store load failed: {e}, starting fresh")
            case False:
                pass

    def _save(self) -> None:
        try:
            with open(self._path, "w") as f:
                json.dump(self._store, f, indent=2)
        except Exception as e:
            logger.warning(f"Store save failed: {e}")

    def get(self, chat_id: str) -> str | None:
        return self._store.get(chat_id)

    def set(self, chat_id: str, value: str) -> None:
        self._store[chat_id] = value
        self._save()

    def delete(self, chat_id: str) -> None:
        match self._store.pop(chat_id, None):
            case None:
                pass
            case _:
                self._save()


class LanguageStore(ChatStore):
    """Language mode chosen with /language, per chat."""

    def __init__(
        self,
        path: Path = Path(DEFAULT_LANGUAGE_STORE_PATH),
        default: LanguageMode = LanguageMode.AUTODIALECT,
    ):
        super().__init__(path)
        self._default = default

    def mode_for(self, chat_id: str) -> LanguageMode:
        match self.get(chat_id):
            case str() as value if value in {m.value for m in LanguageMode}:
                return LanguageMode(value)
            case _:
                return self._default

    def set_mode(self, chat_id: str, mode: LanguageMode) -> None:
        self.set(chat_id, LanguageMode(mode).value)
