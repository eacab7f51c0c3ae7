"""
Plain-text transcript export: one line per segment.

Line format: [MM:SS.ss] [Speaker N] text
Placeholder transcripts get a header line so exported files are never
mistaken for real speech content.
"""
from __future__ import annotations

from typing import Iterable

from echolisten.transcript.models import Segment

PLACEHOLDER_HEADER = "# Placeholder sections: no transcript was available for this recording."


def speaker_label(index: int) -> str:
    """Display label for a 1-based segment speaker: Speaker 1, Speaker 2, ..."""
    return f"Speaker {index}"


def format_timestamp(seconds: float) -> str:
    """[MM:SS.ss] for a session-relative offset."""
    seconds = max(0.0, seconds)
    mm = int(seconds // 60)
    ss = seconds % 60
    return f"[{mm:02d}:{ss:05.2f}]"


def format_segment_line(segment: Segment, add_timestamps: bool = True, add_speaker: bool = True) -> str:
    """Format one line with optional [MM:SS.ss] and [Speaker N] prefix."""
    parts: list[str] = []
    if add_timestamps:
        parts.append(format_timestamp(segment.start_time))
    if add_speaker:
        parts.append(f"[{speaker_label(segment.speaker or 1)}]")
    parts.append(segment.text.strip())
    return " ".join(parts)


def render_transcript(
    segments: Iterable[Segment],
    placeholder: bool = False,
    add_timestamps: bool = True,
) -> str:
    lines: list[str] = [PLACEHOLDER_HEADER] if placeholder else []
    for seg in segments:
        lines.append(format_segment_line(seg, add_timestamps=add_timestamps, add_speaker=not placeholder))
    return "\n".join(lines) + "\n"
