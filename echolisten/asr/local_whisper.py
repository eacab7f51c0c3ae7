"""
LocalWhisperEngine: whole-recording ASR using faster-whisper.

- Model loaded ONCE at startup (singleton, injected at construction).
- word_timestamps=True; words are collected across all segments.
- faster-whisper has no diarization: speakers come from SpeakerTracker (gap-based).
- Audio: decoded to float32 mono 16kHz via pydub.
- Runs in executor so event loop stays responsive.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from echolisten.asr.base import ASREngine, ASRResult
from echolisten.audio.decode import decode_to_float32
from echolisten.config import get_settings
from echolisten.diarization.speaker_tracker import SpeakerTracker
from echolisten.transcript.models import WordTimestamp

logger = logging.getLogger(__name__)

# Type for shared WhisperModel (loaded at startup)
WhisperModelT = Any


def load_whisper_model() -> WhisperModelT:
    """Load faster-whisper model once. Called at startup when ASR_BACKEND=local."""
    try:
        from faster_whisper import WhisperModel
    except ImportError as err:
        raise ImportError(
            "faster-whisper is required for ASR_BACKEND=local. "
            "Install with: pip install faster-whisper"
        ) from err
    settings = get_settings()
    return WhisperModel(
        settings.LOCAL_WHISPER_MODEL,
        device=settings.LOCAL_WHISPER_DEVICE,
        compute_type=settings.LOCAL_WHISPER_COMPUTE_TYPE,
    )


class LocalWhisperEngine(ASREngine):
    """
    Local Whisper via faster-whisper. Uses shared model (singleton).
    transcribe() is async; heavy work runs in executor.
    """

    name = "local"

    def __init__(self, model: WhisperModelT | None = None, tracker: SpeakerTracker | None = None) -> None:
        """
        model: shared WhisperModel instance (loaded at app startup).
        If None, engine returns empty results (import falls back to placeholders).
        """
        self._model = model
        self._tracker = tracker

    def _transcribe_sync(self, audio_bytes: bytes, mime_type: str) -> ASRResult:
        if self._model is None:
            logger.info("Local Whisper model not loaded; returning empty result")
            return ASRResult(provider=self.name)

        try:
            audio = decode_to_float32(audio_bytes, mime_type)
        except Exception as e:
            logger.warning("Local Whisper: audio decode failed: %s", e)
            return ASRResult(provider=self.name)

        settings = get_settings()
        segments, info = self._model.transcribe(
            audio,
            beam_size=settings.LOCAL_WHISPER_BEAM_SIZE,
            language=settings.LOCAL_WHISPER_LANGUAGE or None,
            vad_filter=True,
            word_timestamps=True,
        )

        parts: list[str] = []
        words: list[WordTimestamp] = []
        for seg in segments:
            t = (seg.text or "").strip()
            if t:
                parts.append(t)
            for w in getattr(seg, "words", None) or []:
                token = (w.word or "").strip()
                if token:
                    words.append(WordTimestamp(word=token, start=w.start, end=w.end))

        tracker = self._tracker or SpeakerTracker()
        return ASRResult(
            text=" ".join(parts).strip(),
            words=tracker.assign(words),
            duration=getattr(info, "duration", None),
            provider=self.name,
        )

    async def transcribe(self, audio_bytes: bytes, mime_type: str = "audio/mpeg") -> ASRResult:
        """Run _transcribe_sync in executor so event loop is not blocked."""
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, self._transcribe_sync, audio_bytes, mime_type)
        except Exception as e:
            logger.warning("Local Whisper transcription failed: %s", e)
            return ASRResult(provider=self.name)
