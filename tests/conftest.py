"""Shared fixtures: isolated storage and config for every test."""

from __future__ import annotations

import io
import wave
from collections.abc import Generator
from pathlib import Path

import pytest

from echolisten.session_store import session_store
from echolisten.vocabulary.store import word_store


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Points storage at tmp_path and disables every network-backed provider."""
    storage = tmp_path / "storage"
    monkeypatch.setenv("STORAGE_DIR", str(storage))
    monkeypatch.setenv("ASR_BACKEND", "none")
    monkeypatch.setenv("TTS_BACKEND", "none")
    monkeypatch.setenv("DICTIONARY_AI_ENABLED", "false")
    monkeypatch.setenv("LOG_FILE", "")
    for name in ("CLOUDFLARE_ACCOUNT_ID", "CLOUDFLARE_API_TOKEN", "DEEPGRAM_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    session_store().clear()
    word_store().clear()
    yield storage
    session_store().clear()
    word_store().clear()


def make_wav(seconds: float, rate: int = 100) -> bytes:
    """Silent 16-bit mono WAV of the given length (low rate keeps it small)."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(b"\x00\x00" * int(seconds * rate))
    return buf.getvalue()


@pytest.fixture
def wav_bytes() -> bytes:
    return make_wav(65.0)
