"""
Session store: imported recordings and their transcripts.

In-memory dict keyed by session_id, mirrored to STORAGE_DIR/sessions.json so
sessions survive a restart. Segments are stored verbatim as produced by the
import pipeline; a session's transcript is only ever replaced as a whole.
Audio bytes are NOT stored here (see storage.blob_store).
"""
from __future__ import annotations

import json
import logging
import os
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Literal

from echolisten.config import get_settings
from echolisten.transcript.models import Segment

logger = logging.getLogger(__name__)

SESSIONS_FILE = "sessions.json"


@dataclass(frozen=True)
class Session:
    """One imported recording. transcript_source='placeholder' means fallback labels, not speech."""

    id: str
    title: str
    segments: tuple[Segment, ...]
    duration: float
    subtitle: str = ""
    created_at: float = field(default_factory=time.time)
    last_played: float | None = None
    status: Literal["ready", "processing", "error"] = "ready"
    transcript_source: Literal["asr", "placeholder"] = "asr"
    audio_mime: str = "audio/mpeg"

    @property
    def is_placeholder(self) -> bool:
        return self.transcript_source == "placeholder"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "segments": [s.to_dict() for s in self.segments],
            "duration": self.duration,
            "created_at": self.created_at,
            "last_played": self.last_played,
            "status": self.status,
            "transcript_source": self.transcript_source,
            "audio_mime": self.audio_mime,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            subtitle=str(data.get("subtitle") or ""),
            segments=tuple(Segment.from_dict(s) for s in data.get("segments") or []),
            duration=float(data.get("duration") or 0.0),
            created_at=float(data.get("created_at") or time.time()),
            last_played=data.get("last_played"),
            status=data.get("status") or "ready",
            transcript_source=data.get("transcript_source") or "asr",
            audio_mime=data.get("audio_mime") or "audio/mpeg",
        )


# session_id -> Session
_session_store: dict[str, Session] = {}


def _sessions_path() -> str:
    return os.path.join(get_settings().STORAGE_DIR, SESSIONS_FILE)


def _persist() -> None:
    path = _sessions_path()
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        payload = [s.to_dict() for s in _session_store.values()]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
    except OSError as e:
        logger.warning("Failed to save sessions to %s: %s", path, e)


def generate_session_id() -> str:
    """Generate a new session_id (UUID hex, 12 chars)."""
    return uuid.uuid4().hex[:12]


def load_sessions() -> int:
    """Load sessions.json into memory (startup). Returns number of sessions loaded."""
    path = _sessions_path()
    if not os.path.isfile(path):
        return 0
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not load sessions from %s: %s", path, e)
        return 0
    loaded = 0
    for item in data if isinstance(data, list) else []:
        try:
            session = Session.from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed session record: %s", e)
            continue
        _session_store[session.id] = session
        loaded += 1
    return loaded


def get_session(session_id: str) -> Session | None:
    """Return session or None if not found."""
    return _session_store.get(session_id)


def set_session(session: Session) -> None:
    """Store or overwrite session (whole-session replacement)."""
    _session_store[session.id] = session
    _persist()


def update_session(session_id: str, **changes: Any) -> Session | None:
    """Replace fields of a stored session (e.g. last_played). Return the new session or None."""
    s = _session_store.get(session_id)
    if s is None:
        return None
    updated = replace(s, **changes)
    _session_store[session_id] = updated
    _persist()
    return updated


def delete_session(session_id: str) -> bool:
    """Remove session from store. Return True if it existed."""
    if session_id in _session_store:
        del _session_store[session_id]
        _persist()
        return True
    return False


def list_sessions() -> list[Session]:
    """All sessions, newest first."""
    return sorted(_session_store.values(), key=lambda s: s.created_at, reverse=True)


def session_store() -> dict[str, Session]:
    """Return the underlying store (read-only view for debugging and tests)."""
    return _session_store
