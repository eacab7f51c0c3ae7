"""
SyncEngine: maps a moving playback clock to an active segment and an active token.

State lives in PlaybackState and is mutated only here, in response to clock
ticks and user actions (jump, seek, skip, play/pause, loop mode, speed).

Tick: if the clock time left the active segment, check the neighbours, then
scan; keep the last index when nothing matches (gap, out of range). Ticks
while paused are ignored, except the one that confirms a pending seek.

Segment end (end-of-media from the clock, or crossing the active segment's end
while playing in REPEAT_SINGLE_SEGMENT / STOP_AT_END):
- ADVANCE_THROUGH_LIST: next segment; after the last one stop (or wrap to 0
  when end_of_list="wrap").
- REPEAT_SINGLE_SEGMENT: seek back to the segment start and keep playing.
- STOP_AT_END: pause.

Seeks are asynchronous on a remote clock: ticks sampled before the client
applied a seek still carry the old position. After every seek the engine
waits for a tick that reflects it (inside the target segment for a jump,
advance or repeat; near the target for a free seek), or SEEK_SETTLE_TICKS
ticks, before trusting the clock again.

Not ready (audio source missing or not loaded): every control is a no-op and
nothing raises.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from echolisten.player.clock import PlaybackClock
from echolisten.transcript.models import Segment

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD_SEC = 0.08  # per 1.0x speed; highlight slightly ahead of the audio
DEFAULT_SEEK_STEP_SEC = 15.0

SPEED_STEP = 0.25
MIN_SPEED = 0.5
MAX_SPEED = 2.0

SEEK_SETTLE_SEC = 0.75
SEEK_SETTLE_TICKS = 30
SEEK_LANDING_SLACK_SEC = 0.05  # client may report a hair before the requested start


class LoopMode(str, Enum):
    ADVANCE_THROUGH_LIST = "advance"
    REPEAT_SINGLE_SEGMENT = "repeat_one"
    STOP_AT_END = "stop"


class EndAction(str, Enum):
    """What on_segment_end did."""

    ADVANCE = "advance"
    WRAP = "wrap"
    REPEAT = "repeat"
    STOP = "stop"
    IGNORED = "ignored"


class TokenState(str, Enum):
    PAST = "past"
    ACTIVE = "active"
    FUTURE = "future"


def next_speed(speed: float) -> float:
    """Speed cycle: +0.25 up to 2.0, then back to 0.5."""
    if speed >= MAX_SPEED:
        return MIN_SPEED
    return round(speed + SPEED_STEP, 2)


def active_token_index(
    segment: Segment | None,
    current_time: float,
    speed: float = 1.0,
    lookahead_per_speed: float = DEFAULT_LOOKAHEAD_SEC,
) -> int | None:
    """
    Karaoke highlight position within a segment when only segment-level timing exists.

    Progress through the segment (shifted by a speed-proportional lookahead) is
    distributed over the tokens weighted by len(token) + 1, so longer words take
    proportionally more of the segment's time. Returns None for a segment with
    no text. Non-decreasing in current_time; always within [0, n-1].
    """
    if segment is None or not segment.text.strip():
        return None
    tokens = segment.text.split()
    duration = segment.end_time - segment.start_time
    if duration <= 0:
        return 0
    lookahead = lookahead_per_speed * speed
    progress = min(1.0, max(0.0, (current_time - segment.start_time + lookahead) / duration))

    weights = [len(t) + 1 for t in tokens]
    total = float(sum(weights))
    cumulative = 0
    for i, w in enumerate(weights):
        cumulative += w
        if progress <= cumulative / total:
            return i
    return len(tokens) - 1


def classify_tokens(token_count: int, active_index: int | None) -> list[TokenState]:
    """past / active / future per token, for styling only."""
    if active_index is None:
        return [TokenState.FUTURE] * token_count
    return [
        TokenState.PAST if i < active_index else TokenState.ACTIVE if i == active_index else TokenState.FUTURE
        for i in range(token_count)
    ]


@dataclass
class PlaybackState:
    active_segment_index: int = 0
    current_time: float = 0.0
    loop_mode: LoopMode = LoopMode.ADVANCE_THROUGH_LIST
    speed: float = 1.0
    is_playing: bool = False


@dataclass(frozen=True)
class SyncFrame:
    """Snapshot for rendering, produced after every tick or action."""

    session_id: str
    ready: bool
    is_playing: bool
    current_time: float
    active_segment_index: int
    active_token_index: int | None
    loop_mode: LoopMode
    speed: float
    token_states: tuple[TokenState, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "state",
            "session_id": self.session_id,
            "ready": self.ready,
            "is_playing": self.is_playing,
            "current_time": self.current_time,
            "active_segment_index": self.active_segment_index,
            "active_token_index": self.active_token_index,
            "loop_mode": self.loop_mode.value,
            "speed": self.speed,
            "token_states": [s.value for s in self.token_states],
        }


class SyncEngine:
    """
    One engine per (session, player). Owns PlaybackState; drives the clock.
    A session switch builds a new engine; the old one is closed (see PlayerSlot).
    """

    def __init__(
        self,
        segments: Sequence[Segment],
        clock: PlaybackClock,
        duration: float | None = None,
        session_id: str = "",
        loop_mode: LoopMode = LoopMode.ADVANCE_THROUGH_LIST,
        speed: float = 1.0,
        lookahead_per_speed: float = DEFAULT_LOOKAHEAD_SEC,
        seek_step: float = DEFAULT_SEEK_STEP_SEC,
        end_of_list: str = "stop",
    ) -> None:
        self._segments: tuple[Segment, ...] = tuple(segments)
        self._clock = clock
        last_end = self._segments[-1].end_time if self._segments else 0.0
        self._duration = duration if duration and duration > 0 else last_end
        self._session_id = session_id
        self._lookahead = lookahead_per_speed
        self._seek_step = seek_step
        self._end_of_list = end_of_list
        self.state = PlaybackState(loop_mode=loop_mode, speed=speed if speed > 0 else 1.0)
        self._pending_seek: float | None = None
        self._pending_segment: int | None = None
        self._settle_ticks = 0
        self._closed = False

    # --- read-only views ---

    @property
    def segments(self) -> tuple[Segment, ...]:
        return self._segments

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def clock(self) -> PlaybackClock:
        return self._clock

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def seek_step(self) -> float:
        return self._seek_step

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def ready(self) -> bool:
        return not self._closed and bool(self._segments) and self._clock.is_ready

    @property
    def active_segment(self) -> Segment | None:
        if not self._segments:
            return None
        return self._segments[self.state.active_segment_index]

    def active_token_index(self) -> int | None:
        return active_token_index(self.active_segment, self.state.current_time, self.state.speed, self._lookahead)

    def token_states(self) -> list[TokenState]:
        seg = self.active_segment
        if seg is None:
            return []
        return classify_tokens(len(seg.tokens()), self.active_token_index())

    def frame(self) -> SyncFrame:
        st = self.state
        return SyncFrame(
            session_id=self._session_id,
            ready=self.ready,
            is_playing=st.is_playing,
            current_time=st.current_time,
            active_segment_index=st.active_segment_index,
            active_token_index=self.active_token_index(),
            loop_mode=st.loop_mode,
            speed=st.speed,
            token_states=tuple(self.token_states()),
        )

    # --- clock-driven transitions ---

    def _locate(self, t: float) -> int | None:
        """Segment containing t: neighbours first, then full scan."""
        idx = self.state.active_segment_index
        for candidate in (idx + 1, idx - 1):
            if 0 <= candidate < len(self._segments):
                seg = self._segments[candidate]
                if seg.start_time <= t < seg.end_time:
                    return candidate
        for i, seg in enumerate(self._segments):
            if seg.start_time <= t < seg.end_time:
                return i
        return None

    def tick(self, current_time: float | None = None) -> SyncFrame:
        """One animation frame. Reads the clock unless current_time is given."""
        if not self.ready:
            return self.frame()
        t = self._clock.get_current_time() if current_time is None else float(current_time)
        st = self.state

        resync = False
        landed = True
        if self._pending_seek is not None:
            landed = self._seek_landed(t)
            if not landed and self._settle_ticks < SEEK_SETTLE_TICKS:
                # Sampled before the seek landed on the client
                self._settle_ticks += 1
                return self.frame()
            targeted = self._pending_segment is not None
            self._pending_seek = None
            self._pending_segment = None
            # A forced settle on a segment seek still honours the segment end
            resync = landed or not targeted
        elif not st.is_playing:
            return self.frame()

        st.current_time = t
        active = self._segments[st.active_segment_index]
        if (
            not resync
            and st.is_playing
            and st.loop_mode in (LoopMode.REPEAT_SINGLE_SEGMENT, LoopMode.STOP_AT_END)
            and t >= active.end_time
        ):
            self.on_segment_end()
            return self.frame()

        if not active.start_time <= t < active.end_time:
            idx = self._locate(t)
            if idx is not None and idx != st.active_segment_index:
                logger.debug("Active segment %d -> %d at %.2fs", st.active_segment_index, idx, t)
                st.active_segment_index = idx
        return self.frame()

    def on_segment_end(self) -> EndAction:
        """End-of-media (or end of the active segment in repeat/stop modes)."""
        if not self.ready:
            return EndAction.IGNORED
        st = self.state
        idx = st.active_segment_index
        if st.loop_mode is LoopMode.ADVANCE_THROUGH_LIST:
            if idx < len(self._segments) - 1:
                self._advance_to(idx + 1)
                return EndAction.ADVANCE
            if self._end_of_list == "wrap":
                self._advance_to(0)
                return EndAction.WRAP
            self.pause()
            return EndAction.STOP
        if st.loop_mode is LoopMode.REPEAT_SINGLE_SEGMENT:
            self._seek_segment(idx)
            self._resume()
            return EndAction.REPEAT
        self.pause()
        return EndAction.STOP

    # --- user actions ---

    def _seek_landed(self, t: float) -> bool:
        """
        Whether tick time t reflects the pending seek. A seek to a segment start
        lands only inside that segment; a free seek lands near its target.
        """
        if self._pending_segment is not None:
            seg = self._segments[self._pending_segment]
            upper = max(seg.end_time, seg.start_time + SEEK_LANDING_SLACK_SEC)
            return seg.start_time - SEEK_LANDING_SLACK_SEC <= t < upper
        tolerance = SEEK_SETTLE_SEC * max(1.0, self.state.speed)
        return abs(t - self._pending_seek) <= tolerance

    def _seek(self, t: float, segment_index: int | None = None) -> None:
        upper = self._duration if self._duration > 0 else t
        t = min(max(0.0, t), upper)
        self._clock.seek(t)
        self.state.current_time = t
        self._pending_seek = t
        self._pending_segment = segment_index
        self._settle_ticks = 0

    def _seek_segment(self, idx: int) -> None:
        self._seek(self._segments[idx].start_time, segment_index=idx)

    def _resume(self) -> None:
        self._clock.play()
        self.state.is_playing = True

    def _advance_to(self, idx: int) -> None:
        # The element is paused after end-of-media, so always resume
        self.state.active_segment_index = idx
        self._seek_segment(idx)
        self._resume()

    def jump_to_segment(self, idx: int) -> bool:
        """Tap on a transcript line: seek to its start, make it active, start playing."""
        if not self.ready or not 0 <= idx < len(self._segments):
            return False
        self.state.active_segment_index = idx
        self._seek_segment(idx)
        if not self.state.is_playing:
            self._resume()
        return True

    def seek_fraction(self, fraction: float) -> bool:
        """Progress-bar tap. Active segment is corrected on the next tick."""
        if not self.ready or self._duration <= 0:
            return False
        self._seek(min(1.0, max(0.0, float(fraction))) * self._duration)
        return True

    def skip(self, seconds: float) -> bool:
        """Relative seek (replay / forward buttons)."""
        if not self.ready:
            return False
        self._seek(self.state.current_time + seconds)
        return True

    def skip_back(self) -> bool:
        return self.skip(-self._seek_step)

    def skip_forward(self) -> bool:
        return self.skip(self._seek_step)

    def play(self) -> bool:
        if not self.ready:
            return False
        st = self.state
        seg = self._segments[st.active_segment_index]
        # Stopped at a segment end: pressing play moves on instead of stopping again immediately
        if st.loop_mode is LoopMode.STOP_AT_END and st.current_time >= seg.end_time:
            if st.active_segment_index < len(self._segments) - 1:
                return self.jump_to_segment(st.active_segment_index + 1)
            self._seek_segment(st.active_segment_index)
        self._resume()
        return True

    def pause(self) -> bool:
        if not self.ready:
            return False
        self._clock.pause()
        self.state.is_playing = False
        return True

    def toggle_play(self) -> bool:
        return self.pause() if self.state.is_playing else self.play()

    def set_loop_mode(self, mode: LoopMode) -> None:
        self.state.loop_mode = LoopMode(mode)

    def toggle_loop_mode(self) -> LoopMode:
        """Repeat button: list <-> single segment."""
        if self.state.loop_mode is LoopMode.REPEAT_SINGLE_SEGMENT:
            self.state.loop_mode = LoopMode.ADVANCE_THROUGH_LIST
        else:
            self.state.loop_mode = LoopMode.REPEAT_SINGLE_SEGMENT
        return self.state.loop_mode

    def cycle_speed(self) -> float:
        self.state.speed = next_speed(self.state.speed)
        if self.ready:
            self._clock.set_rate(self.state.speed)
        return self.state.speed

    def on_source_ready(self) -> None:
        """Audio source loaded: apply the current rate."""
        if self.ready:
            self._clock.set_rate(self.state.speed)

    def close(self) -> None:
        """Stop playback and detach. Later calls are no-ops."""
        if self._closed:
            return
        if self._clock.is_ready and self.state.is_playing:
            self._clock.pause()
        self.state.is_playing = False
        self._closed = True
