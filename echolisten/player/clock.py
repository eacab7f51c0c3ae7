"""
PlaybackClock: the audio element as seen by the sync engine.

The real clock lives on the client (browser audio element). The engine only
needs a scalar time source plus seek/play/pause/rate and a readiness flag;
it never touches audio bytes.

RemoteClock mirrors the client's element: times reported by the client are
recorded, and every control call updates the mirror and queues a command
for the client to apply.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


class PlaybackClock(ABC):
    """Abstract playback clock."""

    @abstractmethod
    def get_current_time(self) -> float:
        ...

    @abstractmethod
    def seek(self, t: float) -> None:
        ...

    @abstractmethod
    def play(self) -> None:
        ...

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def set_rate(self, rate: float) -> None:
        ...

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """True once the audio source is loaded and seekable."""
        ...

    @property
    @abstractmethod
    def is_playing(self) -> bool:
        ...


@dataclass
class ClockCommand:
    """One instruction for the client's audio element."""

    action: str  # "seek" | "play" | "pause" | "rate"
    value: float | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": "command", "action": self.action}
        if self.value is not None:
            payload["value"] = self.value
        return payload


class RemoteClock(PlaybackClock):
    """Mirror of a client-side audio element. Commands are drained by the WebSocket manager."""

    def __init__(self) -> None:
        self._time = 0.0
        self._rate = 1.0
        self._playing = False
        self._ready = False
        self._commands: list[ClockCommand] = []

    def mark_ready(self) -> None:
        self._ready = True

    def mark_not_ready(self) -> None:
        self._ready = False
        self._playing = False

    def report_time(self, t: float) -> None:
        """Client-reported playback position."""
        self._time = max(0.0, float(t))

    def report_ended(self) -> None:
        """Client audio element fired 'ended'; the element is paused."""
        self._playing = False

    def get_current_time(self) -> float:
        return self._time

    def seek(self, t: float) -> None:
        self._time = max(0.0, float(t))
        self._commands.append(ClockCommand("seek", self._time))

    def play(self) -> None:
        self._playing = True
        self._commands.append(ClockCommand("play"))

    def pause(self) -> None:
        self._playing = False
        self._commands.append(ClockCommand("pause"))

    def set_rate(self, rate: float) -> None:
        self._rate = rate
        self._commands.append(ClockCommand("rate", rate))

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_playing(self) -> bool:
        return self._playing

    def drain_commands(self) -> list[ClockCommand]:
        out, self._commands = self._commands, []
        return out
