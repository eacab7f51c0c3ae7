"""
Pronunciation service.

get_tts_engine() picks the engine from TTS_BACKEND (edge | none).
synthesize_speech(text) -> (audio_base64 | None, mime_type). Audio is cached on
disk per engine voice/rate and normalized text, so replaying a word costs no request.
"""
from __future__ import annotations

import base64
import hashlib
import logging

from echolisten.config import get_settings
from echolisten.storage.blob_store import BlobStore
from echolisten.tts.engine import EdgeTTSEngine, SpeechEngine

logger = logging.getLogger(__name__)

PRONUNCIATION_STORE = "pronunciations"


def pronunciation_store() -> BlobStore:
    return BlobStore(PRONUNCIATION_STORE)


def pronunciation_key(engine: SpeechEngine, text: str) -> str:
    normalized = " ".join(text.split())
    return hashlib.sha1(f"{engine.cache_key}|{normalized}".encode("utf-8")).hexdigest()


def get_tts_engine() -> SpeechEngine | None:
    settings = get_settings()
    backend = (settings.TTS_BACKEND or "").strip().lower()
    if backend in ("", "none"):
        return None
    if backend == "edge":
        return EdgeTTSEngine(voice=settings.TTS_EDGE_VOICE or None, rate=settings.TTS_EDGE_RATE)
    logger.warning("Unknown TTS_BACKEND=%s; use edge or none", backend)
    return None


async def synthesize_speech(text: str, engine: SpeechEngine | None = None) -> tuple[str | None, str]:
    """
    Pronounce text. Returns (base64_audio, mime_type); (None, "") when TTS is off,
    (None, mime) when the engine produced nothing. Failures are logged, not raised.
    """
    if not (text or "").strip():
        return None, ""
    engine = engine or get_tts_engine()
    if engine is None:
        logger.info("TTS disabled (TTS_BACKEND=none or unknown); audio=null")
        return None, ""

    store = pronunciation_store()
    key = pronunciation_key(engine, text)
    audio = store.get(key)
    if audio is None:
        try:
            audio = await engine.synthesize(text)
        except Exception as e:
            logger.warning("TTS synthesize failed: %s", e)
            return None, ""
        if not audio:
            return None, engine.format
        store.put(key, audio)
    else:
        logger.debug("Pronunciation cache hit %s", key)
    return base64.b64encode(audio).decode("ascii"), engine.format
