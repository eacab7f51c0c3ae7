"""Pronunciation of tapped words and sentences (Edge TTS, or none)."""
from __future__ import annotations

from echolisten.tts.engine import EdgeTTSEngine, SpeechEngine
from echolisten.tts.service import get_tts_engine, synthesize_speech

__all__ = ["EdgeTTSEngine", "SpeechEngine", "get_tts_engine", "synthesize_speech"]
