"""
Speaker attribution for word timings from engines without diarization.

- Gap-based alternation only; no audio separation, no identity inference.
- Labels are session-local (Speaker 1, Speaker 2, ...).
"""
from __future__ import annotations

from echolisten.diarization.speaker_tracker import SpeakerTracker

__all__ = ["SpeakerTracker"]
