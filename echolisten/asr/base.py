"""
ASREngine: abstract interface for whole-recording transcription with word timings.

Implementations: LocalWhisperEngine (faster-whisper), DeepgramEngine, CloudflareWhisperEngine.
All run heavy work in executor (or async HTTP) to avoid blocking the event loop.
An engine that cannot transcribe (no model, no credentials, provider error) returns an
empty ASRResult instead of raising; the import pipeline then falls back.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from echolisten.transcript.models import WordTimestamp


@dataclass
class ASRResult:
    """Result of one transcribe call over a full recording."""

    text: str = ""
    words: list[WordTimestamp] = field(default_factory=list)
    duration: float | None = None  # seconds, when the provider reports it
    provider: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.words


class ASREngine(ABC):
    """Abstract ASR engine. Accepts the encoded audio file bytes as uploaded."""

    name: str = "asr"

    @abstractmethod
    async def transcribe(self, audio_bytes: bytes, mime_type: str = "audio/mpeg") -> ASRResult:
        """
        Transcribe a full recording. Returns word timings (speaker may be None).
        Must not block event loop; must not raise for provider failures.
        """
        ...


class NoOpASREngine(ASREngine):
    """ASR_BACKEND=none: every import uses placeholder segments."""

    name = "none"

    async def transcribe(self, audio_bytes: bytes, mime_type: str = "audio/mpeg") -> ASRResult:
        return ASRResult(provider=self.name)
