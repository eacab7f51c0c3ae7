"""
Schemas for imported sessions: import parameters, session summaries and detail, grouped turns.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from echolisten.session_store import Session
from echolisten.transcript.models import SlicingPolicy, Turn, policy_from_method


class ImportParams(BaseModel):
    """Query parameters for POST /api/sessions. Raw audio bytes are the request body."""

    title: str | None = Field(None, description="Display title; defaults to the uploaded file name")
    method: Literal["duration", "turns"] = Field("turns", description="Slicing policy")
    value: int = Field(1, description="Minutes per slice (1-60) or speaker turns per slice (1-100)")

    @model_validator(mode="after")
    def _check_range(self) -> "ImportParams":
        limit = 60 if self.method == "duration" else 100
        if not 1 <= self.value <= limit:
            raise ValueError(f"value for method={self.method} must be in 1..{limit}")
        return self

    def policy(self) -> SlicingPolicy:
        return policy_from_method(self.method, self.value)


class SegmentOut(BaseModel):
    id: str
    start_time: float
    end_time: float
    text: str
    speaker: int = 1


class SessionSummary(BaseModel):
    """Library row: no segments."""

    id: str
    title: str
    subtitle: str = ""
    duration: float = 0.0
    segment_count: int = 0
    created_at: float
    last_played: float | None = None
    status: str = "ready"
    transcript_source: str = "asr"

    @classmethod
    def from_session(cls, session: Session) -> "SessionSummary":
        return cls(
            id=session.id,
            title=session.title,
            subtitle=session.subtitle,
            duration=session.duration,
            segment_count=len(session.segments),
            created_at=session.created_at,
            last_played=session.last_played,
            status=session.status,
            transcript_source=session.transcript_source,
        )


class SessionDetail(SessionSummary):
    segments: list[SegmentOut] = Field(default_factory=list)
    audio_mime: str = "audio/mpeg"
    has_audio: bool = False

    @classmethod
    def from_session(cls, session: Session, has_audio: bool = False) -> "SessionDetail":
        summary = SessionSummary.from_session(session)
        return cls(
            **summary.model_dump(),
            segments=[SegmentOut(**s.to_dict()) for s in session.segments],
            audio_mime=session.audio_mime,
            has_audio=has_audio,
        )


class TurnOut(BaseModel):
    speaker: int
    indices: list[int]
    segments: list[SegmentOut]

    @classmethod
    def from_turn(cls, turn: Turn) -> "TurnOut":
        return cls(
            speaker=turn.speaker,
            indices=list(turn.indices),
            segments=[SegmentOut(**s.to_dict()) for s in turn.segments],
        )
