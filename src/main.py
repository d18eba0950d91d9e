"""Entry point — wires Config → history → IflytekTranscriptionClient → TelegramClient."""
import logging
from pathlib import Path

from rich.logging import RichHandler

from src.chat_store import LanguageStore
from src.config import Config
from src.constants import MSG_BOT_STARTING
from src.history import JsonHistoryStore
from src.telegram.client import TelegramClient
from src.transcription.iflytek import IflytekTranscriptionClient


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))
    # httpx logs every request URL at INFO, query string included.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main() -> None:
    config = Config.from_env()
    _setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.info(MSG_BOT_STARTING)

    history = JsonHistoryStore(Path(config.history_path))
    transcriber = IflytekTranscriptionClient(
        config.credentials,
        base_url=config.base_url,
        max_attempts=config.poll_max_attempts,
        interval=config.poll_interval,
        history=history,
    )
    languages = LanguageStore(Path(config.language_store_path), config.default_language)
    client = TelegramClient(config, transcriber, languages=languages, history=history)
    client.run()


if __name__ == "__main__":
    main()
