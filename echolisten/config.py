"""Application configuration. Loads from env vars."""
from __future__ import annotations

import logging
import os
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings. Override via environment variables."""

    # Slicing defaults for imports that don't pass method/value
    DEFAULT_SLICING_METHOD: Literal["turns", "duration"] = "turns"
    DEFAULT_SLICING_VALUE: int = 1  # 1 turn = new block for every reply

    # Fallback slicing (no ASR result): window width for turn-based imports, assumed length when unknown
    FALLBACK_SLICE_SECONDS: float = 30.0
    FALLBACK_ASSUMED_DURATION: float = 300.0

    # ASR backend: "local" | "cloudflare" | "deepgram" | "none"
    ASR_BACKEND: Literal["local", "cloudflare", "deepgram", "none"] = "local"

    # Cloudflare Workers AI: ASR (when ASR_BACKEND=cloudflare) and AI word analysis
    CLOUDFLARE_ACCOUNT_ID: str = ""
    CLOUDFLARE_API_TOKEN: str = ""

    # Deepgram (when ASR_BACKEND=deepgram); diarized word timings
    DEEPGRAM_API_KEY: str = ""
    DEEPGRAM_MODEL: str = "nova-3"
    DEEPGRAM_LANGUAGE: str = "en"
    DEEPGRAM_TIMEOUT_SECONDS: float = 120.0

    # Local Whisper (when ASR_BACKEND=local), model loaded once at startup
    LOCAL_WHISPER_MODEL: str = "base"  # base | small | medium | large-v3
    LOCAL_WHISPER_DEVICE: Literal["cpu", "cuda"] = "cpu"
    LOCAL_WHISPER_COMPUTE_TYPE: Literal["int8", "float16"] = "int8"
    LOCAL_WHISPER_BEAM_SIZE: int = 5
    LOCAL_WHISPER_LANGUAGE: str = ""  # empty = auto-detect

    # Speaker ids for engines without diarization (gap-based alternation)
    DIARIZATION_ENABLED: bool = True
    DIARIZATION_SPEAKER_GAP_SEC: float = 0.8
    DIARIZATION_MAX_SPEAKERS: int = 2

    # On-disk storage: audio_files/, dictionary/, sessions.json, words.json
    STORAGE_DIR: str = "./storage"

    # Player
    PLAYER_LOOKAHEAD_SEC: float = 0.08  # multiplied by playback speed
    PLAYER_SEEK_STEP_SEC: float = 15.0
    PLAYER_END_OF_LIST: Literal["stop", "wrap"] = "stop"

    # Dictionary lookup: fast APIs first, then AI word analysis via Workers AI
    DICTIONARY_API_URL: str = "https://api.dictionaryapi.dev/api/v2/entries/en"
    TRANSLATE_API_URL: str = "https://api.mymemory.translated.net/get"
    TRANSLATE_LANGPAIR: str = "en|zh"
    DICTIONARY_TIMEOUT_SECONDS: float = 10.0
    DICTIONARY_AI_ENABLED: bool = True
    DICTIONARY_AI_MODEL: str = "@cf/meta/llama-3.1-8b-instruct"

    # TTS for word pronunciation: edge = Edge TTS, none = disabled
    TTS_BACKEND: str = "edge"
    TTS_EDGE_VOICE: str = "en-US-GuyNeural"
    TTS_EDGE_RATE: str = "-10%"

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path empty = console only
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()


_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """Apply LOG_LEVEL / LOG_FILE to the package logger. Safe to call more than once."""
    settings = settings or get_settings()
    level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    root = logging.getLogger("echolisten")
    root.setLevel(level)
    if not any(getattr(h, "_echolisten", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._echolisten = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    log_file = (settings.LOG_FILE or "").strip()
    if log_file and not any(getattr(h, "baseFilename", None) == os.path.abspath(log_file) for h in root.handlers):
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(file_handler)
