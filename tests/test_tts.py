"""Tests for TTS engine selection, rate handling and the pronunciation cache."""

from __future__ import annotations

import asyncio
import base64

import pytest

from echolisten.tts import EdgeTTSEngine, SpeechEngine, get_tts_engine, synthesize_speech
from echolisten.tts.engine import normalize_rate
from echolisten.tts.service import pronunciation_key, pronunciation_store


class _FakeEngine(SpeechEngine):
    def __init__(self, audio: bytes) -> None:
        self._audio = audio
        self.calls: list[str] = []

    @property
    def format(self) -> str:
        return "audio/mpeg"

    async def synthesize(self, text: str) -> bytes:
        self.calls.append(text)
        return self._audio


def test_synthesize_speech_returns_base64() -> None:
    audio, mime = asyncio.run(synthesize_speech("hello", engine=_FakeEngine(b"mp3")))

    assert base64.b64decode(audio) == b"mp3"
    assert mime == "audio/mpeg"


def test_repeated_pronunciation_is_served_from_cache() -> None:
    engine = _FakeEngine(b"mp3")
    asyncio.run(synthesize_speech("hello", engine=engine))
    audio, _ = asyncio.run(synthesize_speech("  hello ", engine=engine))

    assert engine.calls == ["hello"]
    assert base64.b64decode(audio) == b"mp3"
    assert pronunciation_store().exists(pronunciation_key(engine, "hello"))


def test_empty_audio_is_null_and_not_cached() -> None:
    engine = _FakeEngine(b"")
    audio, mime = asyncio.run(synthesize_speech("hello", engine=engine))

    assert audio is None
    assert mime == "audio/mpeg"
    assert not pronunciation_store().exists(pronunciation_key(engine, "hello"))


def test_disabled_backend_returns_null() -> None:
    assert get_tts_engine() is None
    assert asyncio.run(synthesize_speech("hello")) == (None, "")


def test_edge_backend_uses_configured_voice_and_rate(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TTS_BACKEND", "edge")
    monkeypatch.setenv("TTS_EDGE_VOICE", "en-GB-RyanNeural")
    monkeypatch.setenv("TTS_EDGE_RATE", "-20%")
    engine = get_tts_engine()

    assert isinstance(engine, EdgeTTSEngine)
    assert engine.voice == "en-GB-RyanNeural"
    assert engine.rate == "-20%"
    assert engine.cache_key == "edge:en-GB-RyanNeural:-20%"


def test_cache_key_depends_on_voice() -> None:
    a = pronunciation_key(EdgeTTSEngine(voice="en-US-GuyNeural"), "hello")
    b = pronunciation_key(EdgeTTSEngine(voice="en-GB-RyanNeural"), "hello")
    assert a != b


@pytest.mark.parametrize(("raw", "expected"), [("10%", "+10%"), ("", "+0%"), ("-10%", "-10%"), ("fast", "-10%")])
def test_normalize_rate(raw: str, expected: str) -> None:
    assert normalize_rate(raw) == expected
