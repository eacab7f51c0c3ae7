"""Tests for ASR provider response parsing and failure handling."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import httpx
import pytest

from echolisten.asr import NoOpASREngine, create_asr_engine
from echolisten.asr import local_whisper
from echolisten.asr.cloudflare import CloudflareWhisperEngine, parse_cloudflare_words
from echolisten.asr.deepgram import DeepgramEngine, parse_deepgram_words
from echolisten.diarization import SpeakerTracker

DEEPGRAM_RESPONSE = {
    "metadata": {"duration": 12.5},
    "results": {
        "channels": [
            {
                "alternatives": [
                    {
                        "transcript": "hello there hi",
                        "words": [
                            {"word": "hello", "punctuated_word": "Hello", "start": 0.1, "end": 0.4, "speaker": 0},
                            {"word": "there", "punctuated_word": "there.", "start": 0.5, "end": 0.9, "speaker": 0},
                            {"word": "hi", "start": 1.5, "end": 1.8, "speaker": 1},
                            {"word": "", "start": 2.0, "end": 2.1},
                        ],
                    }
                ]
            }
        ]
    },
}


def test_parse_deepgram_prefers_punctuated_words() -> None:
    words = parse_deepgram_words(DEEPGRAM_RESPONSE)

    assert [w.word for w in words] == ["Hello", "there.", "hi"]
    assert [w.speaker for w in words] == [0, 0, 1]


@pytest.mark.parametrize("payload", [{}, {"results": {"channels": []}}, {"results": None}])
def test_parse_deepgram_tolerates_missing_fields(payload: dict) -> None:
    assert parse_deepgram_words(payload) == []


def test_deepgram_engine_sends_diarize_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=DEEPGRAM_RESPONSE)

    engine = DeepgramEngine(api_key="key", transport=httpx.MockTransport(handler))
    result = asyncio.run(engine.transcribe(b"audio", "audio/wav"))

    assert result.duration == 12.5
    assert len(result.words) == 3
    request = seen[0]
    assert request.headers["Authorization"] == "Token key"
    assert request.url.params["diarize"] == "true"
    assert request.url.params["smart_format"] == "true"
    assert request.content == b"audio"


def test_deepgram_http_error_returns_empty_result() -> None:
    engine = DeepgramEngine(api_key="key", transport=httpx.MockTransport(lambda r: httpx.Response(401)))
    assert asyncio.run(engine.transcribe(b"audio")).is_empty


def test_deepgram_without_key_skips_request() -> None:
    engine = DeepgramEngine(api_key="", transport=httpx.MockTransport(lambda r: pytest.fail("no request expected")))
    assert asyncio.run(engine.transcribe(b"audio")).is_empty


def test_parse_cloudflare_words() -> None:
    words = parse_cloudflare_words({"text": "a b", "words": [{"word": "a", "start": 0, "end": 0.2}, {"word": " "}]})
    assert [(w.word, w.speaker) for w in words] == [("a", 0)]
    assert parse_cloudflare_words("nope") == []


def test_cloudflare_engine_reads_result(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUDFLARE_ACCOUNT_ID", "acct")
    monkeypatch.setenv("CLOUDFLARE_API_TOKEN", "token")
    payload = {"result": {"text": "hi", "words": [{"word": "hi", "start": 0.0, "end": 0.3}]}}
    engine = CloudflareWhisperEngine(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=payload)))

    result = asyncio.run(engine.transcribe(b"abc"))

    assert result.text == "hi"
    assert [w.word for w in result.words] == ["hi"]


def test_local_whisper_collects_words_and_assigns_speakers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(local_whisper, "decode_to_float32", lambda audio, mime: [0.0])

    def _word(text: str, start: float, end: float) -> SimpleNamespace:
        return SimpleNamespace(word=text, start=start, end=end)

    class _Model:
        def transcribe(self, audio, **kwargs):
            assert kwargs["word_timestamps"] is True
            segs = [
                SimpleNamespace(text=" Hello there.", words=[_word(" Hello", 0.0, 0.4), _word(" there.", 0.5, 0.9)]),
                SimpleNamespace(text=" Hi!", words=[_word(" Hi!", 2.5, 2.8)]),
            ]
            return iter(segs), SimpleNamespace(duration=3.0)

    engine = local_whisper.LocalWhisperEngine(model=_Model(), tracker=SpeakerTracker(gap_sec=1.0, max_speakers=2, enabled=True))
    result = asyncio.run(engine.transcribe(b"mp3"))

    assert result.text == "Hello there. Hi!"
    assert [(w.word, w.speaker) for w in result.words] == [("Hello", 0), ("there.", 0), ("Hi!", 1)]
    assert result.duration == 3.0


def test_local_whisper_without_model_is_empty() -> None:
    assert asyncio.run(local_whisper.LocalWhisperEngine(model=None).transcribe(b"x")).is_empty


def test_create_asr_engine_follows_config(monkeypatch: pytest.MonkeyPatch) -> None:
    assert isinstance(create_asr_engine(), NoOpASREngine)
    monkeypatch.setenv("ASR_BACKEND", "deepgram")
    assert isinstance(create_asr_engine(), DeepgramEngine)
    monkeypatch.setenv("ASR_BACKEND", "local")
    assert isinstance(create_asr_engine(), local_whisper.LocalWhisperEngine)
