"""
DeepgramEngine: pre-recorded transcription with diarization via Deepgram REST.

POST /v1/listen?model=nova-3&smart_format=true&diarize=true&language=..
Body is the raw audio file; words come from results.channels[0].alternatives[0].words.
punctuated_word is preferred over word so segment text keeps casing and punctuation.
Any failure (no key, HTTP error, bad JSON) logs and returns an empty result.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from echolisten.asr.base import ASREngine, ASRResult
from echolisten.config import get_settings
from echolisten.transcript.models import WordTimestamp

logger = logging.getLogger(__name__)

DEEPGRAM_LISTEN_URL = "https://api.deepgram.com/v1/listen"


def parse_deepgram_words(data: dict[str, Any]) -> list[WordTimestamp]:
    """Extract word timings from a Deepgram response. Missing fields become defaults."""
    try:
        raw_words = data["results"]["channels"][0]["alternatives"][0].get("words") or []
    except (KeyError, IndexError, TypeError, AttributeError):
        return []
    words: list[WordTimestamp] = []
    for item in raw_words:
        if not isinstance(item, dict):
            continue
        token = (item.get("punctuated_word") or item.get("word") or "").strip()
        if not token:
            continue
        speaker = item.get("speaker")
        words.append(
            WordTimestamp(
                word=token,
                start=float(item.get("start") or 0.0),
                end=float(item.get("end") or 0.0),
                speaker=speaker if isinstance(speaker, int) else None,
            )
        )
    return words


class DeepgramEngine(ASREngine):
    """Remote diarized ASR. transport is injectable for tests (httpx.MockTransport)."""

    name = "deepgram"

    def __init__(self, api_key: str | None = None, transport: httpx.AsyncBaseTransport | None = None) -> None:
        settings = get_settings()
        self._api_key = (api_key if api_key is not None else settings.DEEPGRAM_API_KEY).strip()
        self._model = settings.DEEPGRAM_MODEL
        self._language = settings.DEEPGRAM_LANGUAGE or "en"
        self._timeout = settings.DEEPGRAM_TIMEOUT_SECONDS
        self._transport = transport

    async def transcribe(self, audio_bytes: bytes, mime_type: str = "audio/mpeg") -> ASRResult:
        if not self._api_key:
            logger.info("DEEPGRAM_API_KEY not set; skipping remote transcription")
            return ASRResult(provider=self.name)

        params = {
            "model": self._model,
            "smart_format": "true",
            "diarize": "true",
            "language": self._language,
        }
        headers = {"Authorization": f"Token {self._api_key}", "Content-Type": mime_type or "audio/mpeg"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(DEEPGRAM_LISTEN_URL, params=params, headers=headers, content=audio_bytes)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Deepgram transcription failed: %s", e)
            return ASRResult(provider=self.name)

        words = parse_deepgram_words(data)
        duration = (data.get("metadata") or {}).get("duration") if isinstance(data, dict) else None
        try:
            transcript = data["results"]["channels"][0]["alternatives"][0].get("transcript") or ""
        except (KeyError, IndexError, TypeError, AttributeError):
            transcript = ""
        return ASRResult(
            text=transcript.strip(),
            words=words,
            duration=float(duration) if isinstance(duration, (int, float)) else None,
            provider=self.name,
        )
