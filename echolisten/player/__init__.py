"""Playback synchronization: clock abstraction, sync engine, per-connection engine slot."""
from echolisten.player.clock import ClockCommand, PlaybackClock, RemoteClock
from echolisten.player.slot import PlayerSlot
from echolisten.player.sync_engine import (
    EndAction,
    LoopMode,
    PlaybackState,
    SyncEngine,
    SyncFrame,
    TokenState,
    active_token_index,
    classify_tokens,
    next_speed,
)

__all__ = [
    "ClockCommand",
    "EndAction",
    "LoopMode",
    "PlaybackClock",
    "PlaybackState",
    "PlayerSlot",
    "RemoteClock",
    "SyncEngine",
    "SyncFrame",
    "TokenState",
    "active_token_index",
    "classify_tokens",
    "next_speed",
]
