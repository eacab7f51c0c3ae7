"""
Segmenter: flat word timings -> dialogue segments.

One walk over the words, accumulating tokens into a pending segment. The split
decision is made BEFORE the incoming word is added, so the boundary word always
opens the next segment and the closed segment ends at the previous word's end.

- Turns(n): count speaker changes since the pending segment started; split when
  the count reaches n.
- Duration(m): split when the pending span, measured to the incoming word's end,
  reaches m*60 seconds. Speaker identity is ignored.

Mixed-speaker segments are attributed to the speaker of their first word.
Empty input returns [] (caller falls back to fallback_slice).
"""
from __future__ import annotations

import logging
import math
from typing import Iterable

from echolisten.transcript.models import Duration, Segment, SlicingPolicy, Turns, WordTimestamp

logger = logging.getLogger(__name__)

# Minimum duration (sec) for a word or segment with end <= start
EPSILON = 0.01


def _sanitize(words: Iterable[WordTimestamp]) -> list[WordTimestamp]:
    """Drop blank words, clamp malformed timings, order by start. Never raises on bad records."""
    cleaned: list[WordTimestamp] = []
    clamped = 0
    for w in words:
        text = (w.word or "").strip()
        if not text:
            continue
        start = float(w.start) if w.start is not None and math.isfinite(w.start) else 0.0
        start = max(0.0, start)
        end = float(w.end) if w.end is not None and math.isfinite(w.end) else start
        if end <= start:
            end = start + EPSILON
            clamped += 1
        speaker = w.speaker if isinstance(w.speaker, int) and w.speaker >= 0 else 0
        cleaned.append(WordTimestamp(word=text, start=start, end=end, speaker=speaker))
    if clamped:
        logger.debug("Segmenter: clamped %d word(s) with end <= start", clamped)
    # Stable: already-ordered input keeps its order
    cleaned.sort(key=lambda w: w.start)
    return cleaned


def _close(segments: list[Segment], pending: list[WordTimestamp]) -> None:
    start = pending[0].start
    if segments:
        start = max(start, segments[-1].end_time)
    end = max(max(w.end for w in pending), start + EPSILON)
    segments.append(
        Segment(
            id=f"seg-{len(segments)}",
            start_time=start,
            end_time=end,
            text=" ".join(w.word for w in pending),
            speaker=(pending[0].speaker or 0) + 1,
        )
    )


def segment(words: Iterable[WordTimestamp], policy: SlicingPolicy) -> list[Segment]:
    """Slice word timings into segments under policy. Pure; returns [] for empty input."""
    timeline = _sanitize(words)
    if not timeline:
        return []

    segments: list[Segment] = []
    pending: list[WordTimestamp] = []
    speaker_changes = 0
    last_speaker = timeline[0].speaker

    for w in timeline:
        should_split = False
        if isinstance(policy, Duration):
            pending_start = pending[0].start if pending else w.start
            should_split = w.end - pending_start >= policy.seconds_per_slice
        elif isinstance(policy, Turns) and w.speaker != last_speaker:
            speaker_changes += 1
            should_split = speaker_changes >= policy.turns_per_slice

        if should_split and pending:
            _close(segments, pending)
            pending = []
            speaker_changes = 0

        pending.append(w)
        last_speaker = w.speaker

    if pending:
        _close(segments, pending)
    return segments
