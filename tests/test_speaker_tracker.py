"""Tests for gap-based speaker alternation."""

from __future__ import annotations

from echolisten.diarization import SpeakerTracker
from echolisten.transcript.models import WordTimestamp


def _words(*spans: tuple[float, float]) -> list[WordTimestamp]:
    return [WordTimestamp(f"w{i}", s, e) for i, (s, e) in enumerate(spans)]


def test_long_pause_switches_speaker() -> None:
    tracker = SpeakerTracker(gap_sec=0.8, max_speakers=2, enabled=True)
    out = tracker.assign(_words((0.0, 0.5), (0.6, 1.0), (2.0, 2.5), (3.5, 4.0)))

    assert [w.speaker for w in out] == [0, 0, 1, 0]


def test_speaker_count_wraps() -> None:
    tracker = SpeakerTracker(gap_sec=0.5, max_speakers=3, enabled=True)
    out = tracker.assign(_words((0, 1), (2, 3), (4, 5), (6, 7)))

    assert [w.speaker for w in out] == [0, 1, 2, 0]


def test_existing_speakers_are_kept() -> None:
    tracker = SpeakerTracker(gap_sec=0.5, max_speakers=2, enabled=True)
    words = [WordTimestamp("a", 0, 1, 1), WordTimestamp("b", 3, 4)]

    assert [w.speaker for w in tracker.assign(words)] == [1, 0]


def test_disabled_tracker_uses_single_speaker() -> None:
    tracker = SpeakerTracker(gap_sec=0.1, enabled=False)
    out = tracker.assign(_words((0, 1), (5, 6)))

    assert [w.speaker for w in out] == [0, 0]
