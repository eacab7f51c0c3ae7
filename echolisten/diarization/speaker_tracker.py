"""
Speaker tracking for engines without diarization (local faster-whisper).

- Assigns 0-based speaker indices to word timings by gap-based alternation:
  a pause of at least DIARIZATION_SPEAKER_GAP_SEC after the previous word
  switches to the next speaker (mod DIARIZATION_MAX_SPEAKERS).
- No real identity inference; labels are session-local.

Limitations (MUST be kept in sync with product behavior):
- A long pause inside one speaker's turn is read as a speaker change.
- Overlapping speech on single-channel input is not separated.
"""
from __future__ import annotations

import logging

from echolisten.config import get_settings
from echolisten.transcript.models import WordTimestamp

logger = logging.getLogger(__name__)


class SpeakerTracker:
    """Assigns speaker indices to a word stream by gap-based alternation."""

    def __init__(
        self,
        gap_sec: float | None = None,
        max_speakers: int | None = None,
        enabled: bool | None = None,
    ) -> None:
        settings = get_settings()
        self._gap_sec = gap_sec if gap_sec is not None else settings.DIARIZATION_SPEAKER_GAP_SEC
        self._max_speakers = max(1, max_speakers if max_speakers is not None else settings.DIARIZATION_MAX_SPEAKERS)
        self._enabled = enabled if enabled is not None else settings.DIARIZATION_ENABLED

    def assign(self, words: list[WordTimestamp]) -> list[WordTimestamp]:
        """
        Return words with speaker set. Words that already carry a speaker keep it.
        When disabled, every word is speaker 0.
        """
        if not self._enabled:
            return [WordTimestamp(w.word, w.start, w.end, w.speaker if w.speaker is not None else 0) for w in words]

        out: list[WordTimestamp] = []
        current = 0
        last_end: float | None = None
        switches = 0
        for w in words:
            if w.speaker is not None:
                out.append(w)
                current = w.speaker
                last_end = w.end
                continue
            # Gap-based alternation: word starts well after the previous one ended
            if last_end is not None and w.start - last_end >= self._gap_sec:
                current = (current + 1) % self._max_speakers
                switches += 1
            out.append(WordTimestamp(w.word, w.start, w.end, current))
            last_end = w.end
        logger.debug("SpeakerTracker: %d words, %d speaker switches", len(out), switches)
        return out
