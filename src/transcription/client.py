"""TranscriptionClient — abstract base for subtitle transcription backends."""
import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from src.transcription.models import LanguageMode, ProgressQueue, Transcript


class TranscriptionClient(ABC):
    @abstractmethod
    async def transcribe(
        self,
        audio: bytes,
        language: LanguageMode = LanguageMode.AUTODIALECT,
        progress: Optional[ProgressQueue] = None,
        cancel: Optional[asyncio.Event] = None,
        file_name: Optional[str] = None,
    ) -> Transcript:
        """Convert raw audio bytes to SRT subtitles. Raises TranscriptionError on failure."""
        ...
