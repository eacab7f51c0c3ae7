"""
Speech engines for pronouncing a tapped word or a transcript sentence.

EdgeTTSEngine uses Microsoft Edge online TTS (free, no API key), slowed a little
by default for learners. A 403 from Microsoft usually means network or region;
set TTS_BACKEND=none to turn pronunciation off.
"""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod

import edge_tts

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "en-US-GuyNeural"
DEFAULT_RATE = "-10%"

_RATE_RE = re.compile(r"^[+-]\d{1,3}%$")


class SpeechEngine(ABC):
    """synthesize(text) returns raw audio bytes in `format`, or b'' when nothing came back."""

    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        ...

    @property
    @abstractmethod
    def format(self) -> str:
        """MIME type of output, e.g. 'audio/mpeg'."""
        ...

    @property
    def cache_key(self) -> str:
        """Identity of the produced audio; same key + same text = same bytes."""
        return type(self).__name__


def normalize_rate(rate: str | None) -> str:
    """edge-tts wants a signed percentage like '-10%' or '+0%'."""
    rate = (rate or "").strip()
    if not rate:
        return "+0%"
    if rate[0].isdigit():
        rate = "+" + rate
    if not _RATE_RE.match(rate):
        logger.warning("Invalid TTS rate %r; using %s", rate, DEFAULT_RATE)
        return DEFAULT_RATE
    return rate


class EdgeTTSEngine(SpeechEngine):
    """Edge TTS, MP3 output."""

    def __init__(self, voice: str | None = None, rate: str | None = None) -> None:
        self._voice = (voice or DEFAULT_VOICE).strip() or DEFAULT_VOICE
        self._rate = normalize_rate(rate if rate is not None else DEFAULT_RATE)

    @property
    def format(self) -> str:
        return "audio/mpeg"

    @property
    def voice(self) -> str:
        return self._voice

    @property
    def rate(self) -> str:
        return self._rate

    @property
    def cache_key(self) -> str:
        return f"edge:{self._voice}:{self._rate}"

    async def synthesize(self, text: str) -> bytes:
        text = " ".join((text or "").split())
        if not text:
            return b""
        communicate = edge_tts.Communicate(text, self._voice, rate=self._rate)
        audio = bytearray()
        try:
            async for chunk in communicate.stream():
                if chunk.get("type") == "audio" and chunk.get("data"):
                    audio.extend(chunk["data"])
        except Exception as e:
            logger.error("Edge TTS stream failed (403 = region/network?): %s", e)
            return b""
        if not audio:
            logger.warning("Edge TTS returned no audio for %r", text[:80])
        return bytes(audio)
