"""
PlayerSocketManager: one WebSocket = one player for one session at a time.

The client owns the audio element and reports its position every animation
frame ("tick"). The server owns playback state (SyncEngine) and answers every
message with zero or more clock commands followed by one state frame:

  {"type": "command", "action": "seek" | "play" | "pause" | "rate", "value": ...}
  {"type": "state", "active_segment_index": ..., "active_token_index": ..., ...}

Client messages (JSON text):
  ready                     audio element loaded (honoured only if the session's audio is stored)
  tick {time}               current playback position
  ended                     audio element fired 'ended'
  jump {index}              tap on a transcript line
  seek {fraction}           progress bar tap, 0..1
  skip {seconds}            relative seek; sign gives direction, absent = one seek step back
  toggle_play
  loop_mode {mode?}         set mode, or toggle list <-> single when absent
  speed                     cycle playback speed
  session {session_id}      switch to another session on the same connection

Malformed or unknown messages are logged and ignored; the connection stays up.
Handlers always read slot.engine at call time (see PlayerSlot).
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any

from fastapi import WebSocket

from echolisten.config import get_settings
from echolisten.player.clock import RemoteClock
from echolisten.player.slot import PlayerSlot
from echolisten.player.sync_engine import LoopMode, SyncEngine
from echolisten.session_store import Session, get_session, update_session
from echolisten.storage.blob_store import audio_store

logger = logging.getLogger(__name__)


def build_engine(session: Session) -> SyncEngine:
    """New engine with a fresh (not ready) remote clock for session."""
    settings = get_settings()
    return SyncEngine(
        session.segments,
        RemoteClock(),
        duration=session.duration,
        session_id=session.id,
        lookahead_per_speed=settings.PLAYER_LOOKAHEAD_SEC,
        seek_step=settings.PLAYER_SEEK_STEP_SEC,
        end_of_list=settings.PLAYER_END_OF_LIST,
    )


def _remote_clock(engine: SyncEngine) -> RemoteClock | None:
    clock = engine.clock
    return clock if isinstance(clock, RemoteClock) else None


class PlayerSocketManager:
    """Drives one SyncEngine per connection from client messages."""

    def __init__(self, websocket: WebSocket, session: Session) -> None:
        self._ws = websocket
        self._slot = PlayerSlot(build_engine(session))
        self._closed = False

    @property
    def slot(self) -> PlayerSlot:
        return self._slot

    async def _send(self, payload: dict[str, Any]) -> None:
        if self._closed:
            return
        try:
            await self._ws.send_text(json.dumps(payload))
        except Exception:
            self._closed = True

    async def _flush(self, engine: SyncEngine | None) -> None:
        """Send queued clock commands, then the current state frame."""
        if engine is None:
            return
        clock = _remote_clock(engine)
        if clock is not None:
            for cmd in clock.drain_commands():
                await self._send(cmd.to_dict())
        await self._send(engine.frame().to_dict())

    async def _error(self, detail: str) -> None:
        await self._send({"type": "error", "detail": detail})

    def _handle_ready(self, engine: SyncEngine) -> bool:
        clock = _remote_clock(engine)
        if clock is None:
            return False
        if not audio_store().exists(engine.session_id):
            logger.info("Audio for session %s is missing; player stays not ready", engine.session_id)
            clock.mark_not_ready()
            return False
        clock.mark_ready()
        engine.on_source_ready()
        update_session(engine.session_id, last_played=time.time())
        return True

    async def _switch_session(self, session_id: str) -> None:
        session = get_session(session_id)
        if session is None:
            await self._error(f"Session not found: {session_id}")
            return
        previous = self._slot.swap(build_engine(session))
        logger.info("Player switched to session %s", session_id)
        # Deliver the pause issued while closing the previous engine
        if previous is not None:
            clock = _remote_clock(previous)
            if clock is not None:
                for cmd in clock.drain_commands():
                    await self._send(cmd.to_dict())

    async def handle_message(self, message: dict[str, Any]) -> None:
        """Apply one client message to the current engine and reply."""
        msg_type = message.get("type")
        if msg_type == "session":
            await self._switch_session(str(message.get("session_id") or ""))
            await self._flush(self._slot.engine)
            return

        engine = self._slot.engine
        if engine is None:
            return
        clock = _remote_clock(engine)

        if msg_type == "ready":
            if not self._handle_ready(engine):
                await self._error("Audio source unavailable")
        elif msg_type == "tick":
            t = float(message["time"])
            if clock is not None:
                clock.report_time(t)
            engine.tick(t)
        elif msg_type == "ended":
            if clock is not None:
                clock.report_ended()
            engine.on_segment_end()
        elif msg_type == "jump":
            engine.jump_to_segment(int(message["index"]))
        elif msg_type == "seek":
            engine.seek_fraction(float(message["fraction"]))
        elif msg_type == "skip":
            seconds = message.get("seconds")
            engine.skip(float(seconds) if seconds is not None else -engine.seek_step)
        elif msg_type == "toggle_play":
            engine.toggle_play()
        elif msg_type == "loop_mode":
            mode = message.get("mode")
            if mode is None:
                engine.toggle_loop_mode()
            else:
                engine.set_loop_mode(LoopMode(mode))
        elif msg_type == "speed":
            engine.cycle_speed()
        else:
            logger.warning("Ignoring unknown player message type: %r", msg_type)
            return
        await self._flush(self._slot.engine)

    async def run(self) -> None:
        """Main loop: receive JSON text messages until disconnect."""
        await self._flush(self._slot.engine)
        try:
            while not self._closed:
                try:
                    msg = await self._ws.receive()
                except Exception:
                    break
                if msg.get("type") == "websocket.disconnect":
                    break
                text = msg.get("text")
                if text is None:
                    continue
                try:
                    payload = json.loads(text)
                    if not isinstance(payload, dict):
                        raise ValueError("message must be a JSON object")
                    await self.handle_message(payload)
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning("Malformed player message %r: %s", text[:200], e)
        finally:
            self._closed = True
            self._slot.close()
