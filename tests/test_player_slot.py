"""Tests for swapping engines on a session switch."""

from __future__ import annotations

from echolisten.player.clock import RemoteClock
from echolisten.player.slot import PlayerSlot
from echolisten.player.sync_engine import SyncEngine
from echolisten.transcript.models import Segment


def _ready_engine(segments: list[Segment], session_id: str) -> SyncEngine:
    clock = RemoteClock()
    clock.mark_ready()
    return SyncEngine(segments, clock, session_id=session_id)


LONG = [Segment(f"seg-{i}", i * 5.0, i * 5.0 + 5.0, f"line {i}", 1) for i in range(10)]
SHORT = [Segment("seg-0", 0.0, 3.0, "only line", 1), Segment("seg-1", 3.0, 6.0, "last line", 2)]


def test_ticks_after_switch_stay_within_new_session() -> None:
    slot = PlayerSlot(_ready_engine(LONG, "long"))
    slot.engine.jump_to_segment(9)
    slot.engine.tick(45.0)

    old = slot.engine
    slot.swap(_ready_engine(SHORT, "short"))
    slot.engine.play()

    for t in (47.0, 1.0, 4.0, 120.0):
        frame = slot.engine.tick(t)
        assert 0 <= frame.active_segment_index < len(SHORT)
    assert frame.session_id == "short"
    assert old.closed


def test_swap_returns_previous_and_pauses_it() -> None:
    first = _ready_engine(LONG, "a")
    first.play()
    slot = PlayerSlot(first)

    previous = slot.swap(_ready_engine(SHORT, "b"))

    assert previous is first
    assert first.closed
    assert first.state.is_playing is False


def test_close_clears_slot() -> None:
    slot = PlayerSlot(_ready_engine(SHORT, "a"))
    engine = slot.engine

    slot.close()

    assert slot.engine is None
    assert engine.closed
