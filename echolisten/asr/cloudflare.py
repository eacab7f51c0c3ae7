"""
CloudflareWhisperEngine: Whisper via Cloudflare Workers AI.

Sends the audio file bytes as a byte list; reads result.words ({word, start, end}).
Workers AI whisper has no diarization, so every word is speaker 0.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from echolisten.asr.base import ASREngine, ASRResult
from echolisten.config import get_settings
from echolisten.transcript.models import WordTimestamp

logger = logging.getLogger(__name__)


def parse_cloudflare_words(result: Any) -> list[WordTimestamp]:
    """Extract words from a Workers AI whisper result dict."""
    if not isinstance(result, dict):
        return []
    words: list[WordTimestamp] = []
    for item in result.get("words") or []:
        if not isinstance(item, dict):
            continue
        token = (item.get("word") or "").strip()
        if not token:
            continue
        words.append(
            WordTimestamp(
                word=token,
                start=float(item.get("start") or 0.0),
                end=float(item.get("end") or 0.0),
                speaker=0,
            )
        )
    return words


class CloudflareWhisperEngine(ASREngine):
    """Remote Whisper via Cloudflare Workers AI. One pass over the whole file."""

    name = "cloudflare"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    async def transcribe(self, audio_bytes: bytes, mime_type: str = "audio/mpeg") -> ASRResult:
        settings = get_settings()
        account_id = settings.CLOUDFLARE_ACCOUNT_ID.strip()
        token = settings.CLOUDFLARE_API_TOKEN.strip()
        if not account_id or not token:
            logger.info("Cloudflare credentials not set; skipping remote transcription")
            return ASRResult(provider=self.name)

        url = f"https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/@cf/openai/whisper"
        headers = {"Authorization": f"Bearer {token}"}
        body = {"audio": list(audio_bytes)}
        try:
            async with httpx.AsyncClient(timeout=120.0, transport=self._transport) as client:
                resp = await client.post(url, headers=headers, json=body)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Cloudflare whisper failed: %s", e)
            return ASRResult(provider=self.name)

        result = data.get("result", data) if isinstance(data, dict) else {}
        text = result.get("text", "") if isinstance(result, dict) else ""
        return ASRResult(
            text=(text or "").strip(),
            words=parse_cloudflare_words(result),
            provider=self.name,
        )
