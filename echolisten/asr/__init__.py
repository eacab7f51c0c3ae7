"""ASR: swappable word-timing sources for imported recordings."""
from __future__ import annotations

from typing import Any

from echolisten.config import get_settings

from .base import ASREngine, ASRResult, NoOpASREngine
from .cloudflare import CloudflareWhisperEngine
from .deepgram import DeepgramEngine
from .local_whisper import LocalWhisperEngine, load_whisper_model


def create_asr_engine(whisper_model: Any | None = None) -> ASREngine:
    """Return ASR engine based on config. Local uses the shared model loaded at startup."""
    backend = get_settings().ASR_BACKEND
    if backend == "deepgram":
        return DeepgramEngine()
    if backend == "cloudflare":
        return CloudflareWhisperEngine()
    if backend == "none":
        return NoOpASREngine()
    return LocalWhisperEngine(model=whisper_model)


__all__ = [
    "ASREngine",
    "ASRResult",
    "NoOpASREngine",
    "LocalWhisperEngine",
    "CloudflareWhisperEngine",
    "DeepgramEngine",
    "create_asr_engine",
    "load_whisper_model",
]
