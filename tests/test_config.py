"""TDD: Config tests written FIRST"""
import pytest
from src.config import Config
from src.transcription.errors import ConfigError
from src.transcription.models import Credentials, LanguageMode

REQUIRED = {
    "IFLYTEK_APP_ID": "app123",
    "IFLYTEK_API_KEY": "key456",
    "IFLYTEK_API_SECRET": "s3cret",
    "TELEGRAM_BOT_TOKEN": "bot123:ABC",
    "ALLOWED_CHAT_ID": "987654321",
}

OPTIONAL = (
    "LOG_LEVEL", "IFLYTEK_BASE_URL", "POLL_MAX_ATTEMPTS", "POLL_INTERVAL",
    "MAX_AUDIO_BYTES", "DEFAULT_LANGUAGE", "HISTORY_PATH", "LANGUAGE_STORE_PATH",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.setattr("src.config.load_dotenv", lambda **_: None)
    for name in OPTIONAL:
        monkeypatch.delenv(name, raising=False)
    for name, value in REQUIRED.items():
        monkeypatch.setenv(name, value)


def test_config_from_env_success():
    """Happy-path: all required env vars present."""
    config = Config.from_env()

    assert config.credentials == Credentials("app123", "key456", "s3cret")
    assert config.telegram_bot_token == "bot123:ABC"
    assert config.allowed_chat_id == "987654321"


@pytest.mark.parametrize("name", list(REQUIRED))
def test_config_missing_required_fails(monkeypatch, name):
    """Every required variable is checked at startup."""
    monkeypatch.delenv(name)

    with pytest.raises(ConfigError, match=name):
        Config.from_env()


def test_config_blank_secret_fails(monkeypatch):
    monkeypatch.setenv("IFLYTEK_API_SECRET", "")

    with pytest.raises(ValueError, match="IFLYTEK_API_SECRET"):
        Config.from_env()


def test_config_defaults():
    """Optional fields have sensible defaults."""
    config = Config.from_env()

    assert config.log_level == "INFO"
    assert config.base_url == "https://office-api-ist-dx.iflyaisol.com"
    assert config.poll_max_attempts == 60
    assert config.poll_interval == 5.0
    assert config.max_audio_bytes == 50 * 1024 * 1024
    assert config.default_language is LanguageMode.AUTODIALECT


def test_config_overrides_from_env(monkeypatch):
    monkeypatch.setenv("POLL_MAX_ATTEMPTS", "12")
    monkeypatch.setenv("POLL_INTERVAL", "2.5")
    monkeypatch.setenv("MAX_AUDIO_BYTES", "1024")
    monkeypatch.setenv("DEFAULT_LANGUAGE", "autominor")
    monkeypatch.setenv("IFLYTEK_BASE_URL", "https://asr.example.test")
    monkeypatch.setenv("HISTORY_PATH", "/tmp/h.json")

    config = Config.from_env()

    assert config.poll_max_attempts == 12
    assert config.poll_interval == 2.5
    assert config.max_audio_bytes == 1024
    assert config.default_language is LanguageMode.AUTOMINOR
    assert config.base_url == "https://asr.example.test"
    assert config.history_path == "/tmp/h.json"


def test_config_invalid_language_fails(monkeypatch):
    monkeypatch.setenv("DEFAULT_LANGUAGE", "klingon")

    with pytest.raises(ConfigError, match="DEFAULT_LANGUAGE"):
        Config.from_env()


def test_config_non_numeric_attempts_fails(monkeypatch):
    monkeypatch.setenv("POLL_MAX_ATTEMPTS", "many")

    with pytest.raises(ConfigError):
        Config.from_env()


def test_config_zero_attempts_fails(monkeypatch):
    monkeypatch.setenv("POLL_MAX_ATTEMPTS", "0")

    with pytest.raises(ConfigError, match="POLL_MAX_ATTEMPTS"):
        Config.from_env()


def test_config_immutable():
    """Frozen dataclass: attribute assignment must fail."""
    config = Config.from_env()

    with pytest.raises(Exception):
        config.telegram_bot_token = "other"


def test_secret_not_in_repr():
    assert "s3cret" not in repr(Config.from_env())
