"""
Schemas for POST /api/tts (word / sentence pronunciation).
"""
from __future__ import annotations

from pydantic import BaseModel, Field


class TTSRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)


class TTSResponse(BaseModel):
    audio: str | None = Field(None, description="Base64 MP3, or null when TTS is disabled or failed")
    mime_type: str = ""
