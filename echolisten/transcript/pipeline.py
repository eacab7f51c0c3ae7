"""
Import pipeline: audio bytes -> Segment[] -> stored session.

Two explicit stages instead of exception-driven control flow:
1. try_remote_segmentation: ask the ASR engine for word timings and slice them.
   Any provider problem yields [] (InputUnavailable), never an exception.
2. fallback_if_empty: substitute placeholder windows when stage 1 gave nothing.

The resulting session records whether its transcript is real (asr) or
placeholder, so clients can render the two differently.
"""
from __future__ import annotations

import asyncio
import logging
import os
import time

from echolisten.asr.base import ASREngine, ASRResult
from echolisten.audio.decode import probe_duration
from echolisten.config import get_settings
from echolisten.session_store import Session, generate_session_id, set_session
from echolisten.storage.blob_store import audio_store
from echolisten.transcript.fallback import fallback_slice
from echolisten.transcript.models import Segment, SlicingPolicy
from echolisten.transcript.segmenter import segment

logger = logging.getLogger(__name__)


async def try_remote_segmentation(
    engine: ASREngine,
    audio_bytes: bytes,
    policy: SlicingPolicy,
    mime_type: str = "audio/mpeg",
) -> tuple[list[Segment], ASRResult]:
    """Stage 1. Returns (segments, raw result); segments is [] when no words are available."""
    try:
        result = await engine.transcribe(audio_bytes, mime_type)
    except Exception as e:
        # Engines should not raise; a misbehaving one still must not break the import
        logger.warning("ASR engine %s raised during transcription: %s", engine.name, e)
        return [], ASRResult(provider=engine.name)
    if result.is_empty:
        logger.info("ASR engine %s returned no words", engine.name)
        return [], result
    return segment(result.words, policy), result


def fallback_if_empty(
    segments: list[Segment],
    total_duration: float | None,
    policy: SlicingPolicy,
) -> tuple[list[Segment], bool]:
    """Stage 2. Returns (segments, is_placeholder). Never returns an empty list."""
    if segments:
        return segments, False
    settings = get_settings()
    logger.info("No transcript available; using placeholder segments (duration=%s)", total_duration)
    placeholder = fallback_slice(
        total_duration,
        policy,
        slice_seconds=settings.FALLBACK_SLICE_SECONDS,
        assumed_duration=settings.FALLBACK_ASSUMED_DURATION,
    )
    return placeholder, True


def session_title(filename: str | None) -> str:
    """Title from the uploaded file name without extension."""
    base = os.path.basename((filename or "").strip())
    title = os.path.splitext(base)[0].strip()
    return title or "Untitled session"


def session_subtitle(segment_count: int, placeholder: bool) -> str:
    return f"{segment_count} segments • {'Standard' if placeholder else 'Turn-by-Turn'}"


async def import_session(
    audio_bytes: bytes,
    policy: SlicingPolicy,
    engine: ASREngine,
    filename: str | None = None,
    mime_type: str = "audio/mpeg",
) -> Session:
    """
    Full import: probe duration, segment (or fall back), store audio bytes, store session.
    Raises ValueError for an empty upload; everything else degrades to placeholders.
    """
    if not audio_bytes:
        raise ValueError("Audio upload is empty")

    loop = asyncio.get_event_loop()
    duration = await loop.run_in_executor(None, probe_duration, audio_bytes, mime_type)

    segments, result = await try_remote_segmentation(engine, audio_bytes, policy, mime_type)
    if duration <= 0 and result.duration:
        duration = result.duration
    segments, placeholder = fallback_if_empty(segments, duration, policy)
    if duration <= 0:
        duration = segments[-1].end_time

    session_id = generate_session_id()
    if not audio_store().put(session_id, audio_bytes):
        logger.warning("Audio for session %s was not stored; player will stay not ready", session_id)

    session = Session(
        id=session_id,
        title=session_title(filename),
        subtitle=session_subtitle(len(segments), placeholder),
        segments=tuple(segments),
        duration=duration,
        created_at=time.time(),
        transcript_source="placeholder" if placeholder else "asr",
        audio_mime=mime_type or "audio/mpeg",
    )
    set_session(session)
    logger.info(
        "Imported session %s (%s): %d segments, %.1fs, source=%s",
        session.id, session.title, len(segments), duration, session.transcript_source,
    )
    return session
