"""Transcript handling: word timings -> segments, placeholder fallback, import pipeline, export."""
from .fallback import fallback_slice
from .models import Duration, Segment, SlicingPolicy, Turn, Turns, WordTimestamp, group_turns, policy_from_method
from .segmenter import segment
from .writer import render_transcript

__all__ = [
    "Duration",
    "Segment",
    "SlicingPolicy",
    "Turn",
    "Turns",
    "WordTimestamp",
    "fallback_slice",
    "group_turns",
    "policy_from_method",
    "render_transcript",
    "segment",
]
