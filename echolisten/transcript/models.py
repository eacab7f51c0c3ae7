"""
Transcript data model: word timings in, segments out.

- WordTimestamp: one word from the ASR provider (seconds, 0-based speaker index).
- Segment: contiguous, time-bounded, single-attribution chunk of transcript text.
  Segment.speaker is 1-based. Segments are immutable once produced; a session's
  transcript is only ever replaced as a whole.
- SlicingPolicy: Duration(minutes) or Turns(count), chosen once per import.
- Turn: consecutive segments from the same speaker, for grouped display only.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Union


@dataclass
class WordTimestamp:
    """Single word with start/end in seconds and the provider's speaker index (None = single speaker)."""

    word: str
    start: float
    end: float
    speaker: int | None = None


@dataclass(frozen=True)
class Segment:
    """One playable transcript segment. start_time/end_time in seconds; speaker >= 1."""

    id: str
    start_time: float
    end_time: float
    text: str
    speaker: int = 1

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def tokens(self) -> list[str]:
        return self.text.split()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Segment":
        return cls(
            id=str(data.get("id", "")),
            start_time=float(data.get("start_time", 0.0)),
            end_time=float(data.get("end_time", 0.0)),
            text=str(data.get("text") or ""),
            speaker=int(data.get("speaker") or 1),
        )


@dataclass(frozen=True)
class Duration:
    """Split every N minutes of wall-clock audio, regardless of speaker."""

    minutes_per_slice: int

    def __post_init__(self) -> None:
        if not 1 <= self.minutes_per_slice <= 60:
            raise ValueError(f"minutes_per_slice must be in 1..60, got {self.minutes_per_slice}")

    @property
    def seconds_per_slice(self) -> float:
        return self.minutes_per_slice * 60.0


@dataclass(frozen=True)
class Turns:
    """Split after N speaker changes."""

    turns_per_slice: int

    def __post_init__(self) -> None:
        if not 1 <= self.turns_per_slice <= 100:
            raise ValueError(f"turns_per_slice must be in 1..100, got {self.turns_per_slice}")


SlicingPolicy = Union[Duration, Turns]


def policy_from_method(method: str, value: int) -> SlicingPolicy:
    """Build a policy from the API's (method, value) pair. Raises ValueError on unknown method or range."""
    method = (method or "").strip().lower()
    if method == "duration":
        return Duration(int(value))
    if method == "turns":
        return Turns(int(value))
    raise ValueError(f"Unknown slicing method: {method!r} (expected 'duration' or 'turns')")


@dataclass
class Turn:
    """A maximal run of consecutive segments from one speaker. indices are positions in the session's list."""

    speaker: int
    segments: list[Segment] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)


def group_turns(segments: list[Segment]) -> list[Turn]:
    """Group consecutive same-speaker segments. Recomputed on demand; never persisted."""
    turns: list[Turn] = []
    for idx, seg in enumerate(segments):
        speaker = seg.speaker or 1
        if turns and turns[-1].speaker == speaker:
            turns[-1].segments.append(seg)
            turns[-1].indices.append(idx)
        else:
            turns.append(Turn(speaker=speaker, segments=[seg], indices=[idx]))
    return turns
