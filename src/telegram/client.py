"""TelegramClient — audio in, SRT out, via python-telegram-bot."""
import asyncio
import io
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from telegram import Bot, Update
from telegram.ext import Application, CommandHandler, ContextTypes
from telegram.ext import MessageHandler as TGMessageHandler
from telegram.ext import filters

from src.chat_store import LanguageStore
from src.config import Config
from src.constants import (
    CMD_CANCEL,
    CMD_HISTORY,
    CMD_LANGUAGE,
    CMD_STATUS,
    DEFAULT_AUDIO_STEM,
    HISTORY_SHOW_ENTRIES,
    MSG_AUDIO_TOO_LARGE,
    MSG_BLOCKED_CHAT,
    MSG_CANCEL_REQUESTED,
    MSG_FAILURE_REPORT,
    MSG_HELP,
    MSG_HISTORY_EMPTY,
    MSG_HISTORY_HEADER,
    MSG_HISTORY_LINE,
    MSG_JOB_RUNNING,
    MSG_LANGUAGE_SET,
    MSG_LANGUAGE_USAGE,
    MSG_NOTHING_TO_CANCEL,
    MSG_PHASE_CANCELLED,
    MSG_PHASE_UPLOADING,
    MSG_SEND_FAIL,
    MSG_SRT_CAPTION,
    MSG_STATUS,
    MSG_UPLOAD_REPORT,
    SRT_SUFFIX,
)
from src.history import JsonHistoryStore
from src.transcription.client import TranscriptionClient
from src.transcription.errors import (
    JobCancelled,
    JobFailure,
    TranscriptionError,
    UploadError,
)
from src.transcription.models import LanguageMode, ProgressEvent, Transcript

logger = logging.getLogger(__name__)


# ── pure helpers (module-level so tests can import them directly) ──────────────


def _or_dash(value: Any) -> str:
    return "-" if value is None or value == "" else str(value)


def describe_failure(exc: TranscriptionError) -> str:
    """Render a chat diagnostic from the structured error, never from its message text."""
    match exc:
        case JobFailure(record=record):
            return MSG_FAILURE_REPORT % (
                record.job_id,
                record.status.value,
                _or_dash(record.fail_type),
                _or_dash(record.fail_type_description),
                _or_dash(record.original_duration),
                _or_dash(record.attempts),
                record.timestamp,
            )
        case UploadError(code=code, desc_info=desc):
            return MSG_UPLOAD_REPORT % (desc or str(exc), _or_dash(code))
        case JobCancelled():
            return MSG_PHASE_CANCELLED
        case _:
            return str(exc)


def parse_language_args(args: str) -> LanguageMode | None:
    match args.strip().lower().split():
        case [mode] if mode in {m.value for m in LanguageMode}:
            return LanguageMode(mode)
        case _:
            return None


def srt_filename(file_name: str) -> str:
    return (Path(file_name).stem or DEFAULT_AUDIO_STEM) + SRT_SUFFIX


async def _relay_progress(bot: Bot, chat_id: str, message_id: int, queue: asyncio.Queue) -> None:
    """Mirror progress events into one status message until a None sentinel arrives."""
    while (event := await queue.get()) is not None:
        match event:
            case ProgressEvent(message=text):
                try:
                    await bot.edit_message_text(chat_id=int(chat_id), message_id=message_id, text=text)
                except Exception as exc:
                    logger.debug("Progress edit failed: %s", exc)


class TelegramClient:

    def __init__(
        self,
        config: Config,
        transcriber: TranscriptionClient,
        languages: Optional[LanguageStore] = None,
        history: Optional[JsonHistoryStore] = None,
    ) -> None:
        self._token = config.telegram_bot_token
        self._allowed_chat_id = config.allowed_chat_id
        self._max_audio_bytes = config.max_audio_bytes
        self._max_attempts = config.poll_max_attempts
        self._interval = config.poll_interval
        self._transcriber = transcriber
        self._languages = languages or LanguageStore(
            Path(config.language_store_path), config.default_language
        )
        self._history = history
        self._app: Optional[Application] = None
        self._running: dict[str, asyncio.Event] = {}

    def run(self) -> None:
        self._app = Application.builder().token(self._token).concurrent_updates(True).build()
        self._app.add_handler(CommandHandler("help", self._guarded(self._on_help)))
        self._app.add_handler(CommandHandler(CMD_STATUS, self._guarded(self._on_status)))
        self._app.add_handler(CommandHandler(CMD_LANGUAGE, self._guarded(self._on_language)))
        self._app.add_handler(CommandHandler(CMD_HISTORY, self._guarded(self._on_history)))
        self._app.add_handler(CommandHandler(CMD_CANCEL, self._guarded(self._on_cancel)))
        self._app.add_handler(
            TGMessageHandler(
                filters.VOICE | filters.AUDIO | filters.Document.AUDIO,
                self._guarded(self._on_audio),
            )
        )
        self._app.run_polling()

    async def send_message(self, to: str, text: str) -> bool:
        match self._app:
            case None:
                logger.error("send_message called before run()")
                return False
            case app:
                try:
                    await app.bot.send_message(chat_id=int(to), text=text)
                    return True
                except Exception as exc:
                    logger.error(MSG_SEND_FAIL, exc)
                    return False

    # ── helpers (also used in tests) ─────────────────────────────────────────

    def _is_allowed(self, update: Update) -> bool:
        if update.effective_chat is None:
            return False
        return str(update.effective_chat.id) == self._allowed_chat_id.strip()

    @staticmethod
    def _attachment(update: Update) -> tuple[Any, str] | None:
        """Return (telegram file-like, file name) for a voice/audio/document message."""
        match update.message:
            case None:
                return None
            case msg if msg.voice:
                return (msg.voice, f"{DEFAULT_AUDIO_STEM}.ogg")
            case msg if msg.audio:
                return (msg.audio, msg.audio.file_name or f"{DEFAULT_AUDIO_STEM}.mp3")
            case msg if msg.document:
                return (msg.document, msg.document.file_name or f"{DEFAULT_AUDIO_STEM}.mp3")
            case _:
                return None

    def _status_text(self, chat_id: str) -> str:
        mode = self._languages.mode_for(chat_id)
        return MSG_STATUS % (
            f"{mode.value} ({mode.label})",
            self._max_attempts,
            self._interval,
            "yes" if chat_id in self._running else "no",
        )

    def _history_text(self) -> str:
        records = self._history.recent(HISTORY_SHOW_ENTRIES) if self._history else []
        match records:
            case []:
                return MSG_HISTORY_EMPTY
            case _:
                lines = map(
                    lambda r: MSG_HISTORY_LINE % (r.file_name, r.language_label, r.segment_count, r.created_at),
                    records,
                )
                return MSG_HISTORY_HEADER % len(records) + "\n".join(lines)

    # ── handlers ─────────────────────────────────────────────────────────────

    def _guarded(self, handler: Callable) -> Callable:
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            match self._is_allowed(update):
                case False:
                    chat_id = update.effective_chat.id if update.effective_chat else "?"
                    logger.warning(MSG_BLOCKED_CHAT, chat_id)
                    return
                case True:
                    pass
            await handler(str(update.effective_chat.id), update, context)

        return _handler

    async def _on_help(self, chat_id: str, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self.send_message(chat_id, MSG_HELP)

    async def _on_status(self, chat_id: str, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self.send_message(chat_id, self._status_text(chat_id))

    async def _on_history(self, chat_id: str, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self.send_message(chat_id, self._history_text())

    async def _on_language(self, chat_id: str, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        match parse_language_args(" ".join(context.args or [])):
            case None:
                await self.send_message(chat_id, MSG_LANGUAGE_USAGE)
            case mode:
                self._languages.set_mode(chat_id, mode)
                await self.send_message(chat_id, MSG_LANGUAGE_SET % (mode.value, mode.label))

    async def _on_cancel(self, chat_id: str, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        match self._running.get(chat_id):
            case None:
                await self.send_message(chat_id, MSG_NOTHING_TO_CANCEL)
            case event:
                event.set()
                await self.send_message(chat_id, MSG_CANCEL_REQUESTED)

    async def _on_audio(self, chat_id: str, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        match self._attachment(update):
            case None:
                return
            case (_, _) if chat_id in self._running:
                await self.send_message(chat_id, MSG_JOB_RUNNING)
                return
            case (item, _) if (item.file_size or 0) > self._max_audio_bytes:
                await self.send_message(chat_id, MSG_AUDIO_TOO_LARGE % (self._max_audio_bytes // (1024 * 1024)))
                return
            case (item, file_name):
                # Reserved before the download so a second upload is refused.
                self._running[chat_id] = asyncio.Event()
                try:
                    tg_file = await item.get_file()
                    audio = bytes(await tg_file.download_as_bytearray())
                except Exception:
                    self._running.pop(chat_id, None)
                    raise
                await self._process(chat_id, audio, file_name, context.bot)

    async def _transcribe(
        self, chat_id: str, audio: bytes, file_name: str, bot: Bot, cancel: asyncio.Event
    ) -> Transcript:
        status = await bot.send_message(chat_id=int(chat_id), text=MSG_PHASE_UPLOADING)
        queue: asyncio.Queue = asyncio.Queue()
        relay = asyncio.create_task(_relay_progress(bot, chat_id, status.message_id, queue))
        try:
            return await self._transcriber.transcribe(
                audio,
                self._languages.mode_for(chat_id),
                progress=queue,
                cancel=cancel,
                file_name=file_name,
            )
        finally:
            queue.put_nowait(None)
            await relay

    async def _process(self, chat_id: str, audio: bytes, file_name: str, bot: Bot) -> None:
        cancel = self._running.setdefault(chat_id, asyncio.Event())
        try:
            transcript = await self._transcribe(chat_id, audio, file_name, bot, cancel)
        except TranscriptionError as exc:
            logger.error("Transcription for chat %s failed: %s", chat_id, exc)
            await self.send_message(chat_id, describe_failure(exc))
            return
        finally:
            self._running.pop(chat_id, None)

        try:
            await bot.send_document(
                chat_id=int(chat_id),
                document=io.BytesIO(transcript.srt.encode("utf-8")),
                filename=srt_filename(file_name),
                caption=MSG_SRT_CAPTION % transcript.segment_count,
            )
        except Exception as exc:
            logger.error(MSG_SEND_FAIL, exc)
