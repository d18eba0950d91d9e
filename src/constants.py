"""All magic values live here — no inline literals anywhere else."""

# iFLYTEK office ASR (V2 API)
IFLYTEK_BASE_URL = "https://office-api-ist-dx.iflyaisol.com"
IFLYTEK_UPLOAD_PATH = "/v2/upload"
IFLYTEK_RESULT_PATH = "/v2/getResult"
IFLYTEK_SUCCESS_CODE = "000000"
IFLYTEK_RESULT_TYPE = "transfer"
IFLYTEK_UPLOAD_FILENAME = "audio.mp3"
IFLYTEK_SIGNATURE_HEADER = "signature"
IFLYTEK_SIGNATURE_KEY = "signature"

# The vendor validates dateTime against Beijing time, whatever the host locale.
IFLYTEK_UTC_OFFSET_HOURS = 8
IFLYTEK_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# encodeURIComponent leaves these unescaped; the server re-computes with the same set.
URI_COMPONENT_SAFE = "!~*'()"

NONCE_LENGTH = 16
NONCE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"

CONTENT_TYPE_OCTET_STREAM = "application/octet-stream"
CONTENT_TYPE_JSON = "application/json"

# Timeouts (seconds)
UPLOAD_TIMEOUT: float = 60.0
QUERY_TIMEOUT: float = 30.0

# Polling: 60 attempts × 5 s = 5 minutes
POLL_MAX_ATTEMPTS = 60
POLL_INTERVAL: float = 5.0

# Duration fallback: assume constant 128 kbit/s
FALLBACK_BITRATE_BPS = 128_000

# Vendor order status codes
STATUS_CODE_CREATED = 0
STATUS_CODE_PROCESSING = 3
STATUS_CODE_COMPLETED = 4
STATUS_CODE_FAILED = -1

FAIL_TYPE_OTHER = 99
FAIL_TYPE_DESCRIPTIONS: dict[int, str] = {
    0: "normal",
    1: "audio upload failed",
    2: "audio transcoding failed",
    3: "speech recognition failed",
    4: "audio duration exceeds the limit",
    5: "audio duration does not match the declared duration",
    6: "audio is silent",
    7: "translation failed",
    8: "translation not authorized for this account",
    9: "quality check failed",
    10: "quality check failed",
    11: "quality check not enabled for this account",
    12: "language detection failed",
    FAIL_TYPE_OTHER: "other error",
}

# Language modes
LANGUAGE_AUTODIALECT = "autodialect"
LANGUAGE_AUTOMINOR = "autominor"
LANGUAGE_LABELS: dict[str, str] = {
    LANGUAGE_AUTODIALECT: "Chinese/English + dialects",
    LANGUAGE_AUTOMINOR: "37 languages",
}

# Config defaults
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_AUDIO_BYTES = 50 * 1024 * 1024
DEFAULT_HISTORY_PATH = ".transcription_history.json"
DEFAULT_LANGUAGE_STORE_PATH = ".chat_languages.json"
HISTORY_LIST_LIMIT = 50
HISTORY_SHOW_ENTRIES = 5

# Progress messages
MSG_PHASE_UPLOADING = "Uploading audio…"
MSG_PHASE_UPLOADED = "Uploaded, job id: %s"
MSG_PHASE_PROCESSING = "Transcribing… (%d/%d)"
MSG_PHASE_PARSING = "Parsing transcription result…"
MSG_PHASE_COMPLETED = "Done — %d segments"
MSG_PHASE_FAILED = "Transcription failed: fail type %s"
MSG_PHASE_TIMEOUT = "Transcription timed out"
MSG_PHASE_CANCELLED = "Transcription cancelled"

# Error messages
MSG_ERR_UPLOAD = "Upload failed: %s"
MSG_ERR_TERMINAL = "Transcription failed"
MSG_ERR_TIMEOUT = "Transcription did not finish within %d attempts"
MSG_ERR_PARSE = "Could not parse transcription result"
MSG_ERR_EMPTY = "No speech recognised"
MSG_ERR_CANCELLED = "Job %s cancelled after %d attempts"

# Telegram
CMD_LANGUAGE = "language"
CMD_STATUS = "status"
CMD_HISTORY = "history"
CMD_CANCEL = "cancel"
SRT_SUFFIX = ".srt"
DEFAULT_AUDIO_STEM = "voice"
MSG_BOT_STARTING = "Starting Telegram bot…"
MSG_BLOCKED_CHAT = "Blocked update from chat_id: %s"
MSG_AUDIO_TOO_LARGE = "File is larger than the %d MB limit."
MSG_JOB_RUNNING = "A transcription is already running — /cancel it first."
MSG_NOTHING_TO_CANCEL = "Nothing to cancel."
MSG_CANCEL_REQUESTED = "Cancelling…"
MSG_LANGUAGE_SET = "Language mode set to: %s (%s)"
MSG_LANGUAGE_USAGE = (
    "Usage:\n"
    "  /language autodialect  — Chinese/English + dialects\n"
    "  /language autominor    — 37 languages"
)
MSG_SRT_CAPTION = "%d segments"
MSG_SEND_FAIL = "✗ Send failed: %s"
MSG_HISTORY_EMPTY = "No transcriptions yet — send a voice note first."
MSG_HISTORY_HEADER = "Last %d transcriptions:\n\n"
MSG_HISTORY_LINE = "• %s — %s, %d segments (%s)"
MSG_STATUS = (
    "Status\n"
    "  Language     : %s\n"
    "  Max attempts : %d\n"
    "  Interval     : %.1fs\n"
    "  Running job  : %s\n"
)
MSG_FAILURE_REPORT = (
    "Transcription failed\n"
    "  Job id     : %s\n"
    "  Status     : %s\n"
    "  Fail type  : %s (%s)\n"
    "  Duration   : %s ms\n"
    "  Attempts   : %s\n"
    "  At         : %s"
)
MSG_UPLOAD_REPORT = "Upload rejected: %s (code %s)"

MSG_HELP = (
    "iflytek-srt-bot — audio to subtitles on Telegram\n"
    "\n"
    "Send a voice note or an audio file and get an .srt back.\n"
    "\n"
    "Commands:\n"
    "  /help                    — show this message\n"
    "  /status                  — current settings\n"
    "  /language <mode>         — autodialect or autominor\n"
    "  /history                 — recent transcriptions\n"
    "  /cancel                  — stop the running transcription\n"
)
