"""
Audio decoding for imports: uploaded file bytes -> duration / float32 mono samples.

- WAV is read with the stdlib wave module (no ffmpeg needed).
- Everything else goes through pydub (ffmpeg).
- Decoding failures are not errors for the import: duration falls back to 0.0
  (placeholder slicing then assumes a default length).
"""
from __future__ import annotations

import io
import logging
import wave

import numpy as np

logger = logging.getLogger(__name__)

# Whisper models expect 16kHz mono float32
SAMPLE_RATE = 16000

_MIME_FORMATS = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/ogg": "ogg",
    "audio/webm": "webm",
    "audio/flac": "flac",
    "audio/mp4": "mp4",
    "audio/x-m4a": "mp4",
    "audio/aac": "aac",
}


def format_for_mime(mime_type: str | None) -> str | None:
    """ffmpeg format name for a MIME type, or None to let ffmpeg probe."""
    return _MIME_FORMATS.get((mime_type or "").split(";")[0].strip().lower())


def pcm_bytes_to_float32(pcm_bytes: bytes) -> np.ndarray:
    """Convert PCM 16-bit mono bytes to float32 [-1.0, 1.0]."""
    samples = np.frombuffer(pcm_bytes, dtype=np.int16)
    return samples.astype(np.float32) / 32768.0


def _is_wav(audio_bytes: bytes) -> bool:
    return audio_bytes[:4] == b"RIFF" and audio_bytes[8:12] == b"WAVE"


def _wav_duration(audio_bytes: bytes) -> float:
    with wave.open(io.BytesIO(audio_bytes), "rb") as wav:
        rate = wav.getframerate()
        return wav.getnframes() / float(rate) if rate else 0.0


def probe_duration(audio_bytes: bytes, mime_type: str | None = None) -> float:
    """Duration in seconds, or 0.0 if the audio cannot be decoded."""
    if not audio_bytes:
        return 0.0
    if _is_wav(audio_bytes):
        try:
            return _wav_duration(audio_bytes)
        except (wave.Error, EOFError) as e:
            logger.warning("WAV header unreadable, trying ffmpeg: %s", e)
    try:
        from pydub import AudioSegment

        seg = AudioSegment.from_file(io.BytesIO(audio_bytes), format=format_for_mime(mime_type))
        return len(seg) / 1000.0
    except Exception as e:
        logger.warning("Could not probe audio duration (%s): %s", mime_type or "unknown type", e)
        return 0.0


def decode_to_float32(audio_bytes: bytes, mime_type: str | None = None, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """
    Decode any supported audio to mono float32 at sample_rate. Blocking; run in executor.
    Raises on undecodable input (caller decides how to degrade).
    """
    from pydub import AudioSegment

    seg = AudioSegment.from_file(io.BytesIO(audio_bytes), format=format_for_mime(mime_type))
    seg = seg.set_channels(1).set_frame_rate(sample_rate).set_sample_width(2)
    return pcm_bytes_to_float32(seg.raw_data)
