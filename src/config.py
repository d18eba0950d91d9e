from dataclasses import dataclass
import os
from dotenv import load_dotenv

from src.constants import (
    DEFAULT_HISTORY_PATH,
    DEFAULT_LANGUAGE_STORE_PATH,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_AUDIO_BYTES,
    IFLYTEK_BASE_URL,
    POLL_INTERVAL,
    POLL_MAX_ATTEMPTS,
)
from src.transcription.errors import ConfigError
from src.transcription.models import Credentials, LanguageMode


@dataclass(frozen=True)
class Config:
    credentials: Credentials
    telegram_bot_token: str
    allowed_chat_id: str
    log_level: str
    base_url: str
    poll_max_attempts: int
    poll_interval: float
    max_audio_bytes: int
    default_language: LanguageMode
    history_path: str
    language_store_path: str

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        app_id = os.getenv("IFLYTEK_APP_ID")
        api_key = os.getenv("IFLYTEK_API_KEY")
        api_secret = os.getenv("IFLYTEK_API_SECRET")
        token = os.getenv("TELEGRAM_BOT_TOKEN")
        chat_id = os.getenv("ALLOWED_CHAT_ID")
        log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
        base_url = os.getenv("IFLYTEK_BASE_URL") or IFLYTEK_BASE_URL
        max_attempts = os.getenv("POLL_MAX_ATTEMPTS", str(POLL_MAX_ATTEMPTS))
        interval = os.getenv("POLL_INTERVAL", str(POLL_INTERVAL))
        max_audio_bytes = os.getenv("MAX_AUDIO_BYTES", str(DEFAULT_MAX_AUDIO_BYTES))
        default_language = os.getenv("DEFAULT_LANGUAGE", LanguageMode.AUTODIALECT.value)
        history_path = os.getenv("HISTORY_PATH") or DEFAULT_HISTORY_PATH
        language_store_path = os.getenv("LANGUAGE_STORE_PATH") or DEFAULT_LANGUAGE_STORE_PATH

        try:
            numbers = (int(max_attempts), float(interval), int(max_audio_bytes))
        except ValueError as exc:
            raise ConfigError(f"Invalid numeric setting in .env: {exc}") from exc

        return cls._validate(
            app_id=app_id,
            api_key=api_key,
            api_secret=api_secret,
            telegram_bot_token=token,
            allowed_chat_id=chat_id,
            log_level=log_level,
            base_url=base_url,
            poll_max_attempts=numbers[0],
            poll_interval=numbers[1],
            max_audio_bytes=numbers[2],
            default_language=default_language,
            history_path=history_path,
            language_store_path=language_store_path,
        )

    @staticmethod
    def _validate(
        app_id: str | None,
        api_key: str | None,
        api_secret: str | None,
        telegram_bot_token: str | None,
        allowed_chat_id: str | None,
        log_level: str,
        base_url: str,
        poll_max_attempts: int,
        poll_interval: float,
        max_audio_bytes: int,
        default_language: str,
        history_path: str,
        language_store_path: str,
    ) -> "Config":
        required = (
            ("IFLYTEK_APP_ID", app_id),
            ("IFLYTEK_API_KEY", api_key),
            ("IFLYTEK_API_SECRET", api_secret),
            ("TELEGRAM_BOT_TOKEN", telegram_bot_token),
            ("ALLOWED_CHAT_ID", allowed_chat_id),
        )
        match [name for name, value in required if not value]:
            case []:
                pass
            case [name, *_]:
                raise ConfigError(f"{name} must be set in .env")

        match (poll_max_attempts, poll_interval):
            case (n, _) if n < 1:
                raise ConfigError("POLL_MAX_ATTEMPTS must be at least 1")
            case (_, s) if s < 0:
                raise ConfigError("POLL_INTERVAL must not be negative")
            case _:
                pass

        try:
            language = LanguageMode(default_language)
        except ValueError as exc:
            raise ConfigError(
                f"DEFAULT_LANGUAGE must be one of: {', '.join(m.value for m in LanguageMode)}"
            ) from exc

        return Config(
            credentials=Credentials(
                app_id=app_id,
                access_key_id=api_key,
                access_key_secret=api_secret,
            ),
            telegram_bot_token=telegram_bot_token,
            allowed_chat_id=allowed_chat_id,
            log_level=log_level,
            base_url=base_url,
            poll_max_attempts=poll_max_attempts,
            poll_interval=poll_interval,
            max_audio_bytes=max_audio_bytes,
            default_language=language,
            history_path=history_path,
            language_store_path=language_store_path,
        )
