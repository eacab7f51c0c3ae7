"""
FallbackSlicer: evenly spaced placeholder segments when no transcript is available.

Used when ASR is disabled, offline, failed, or returned no words. The transcript
UI must always have something to render and seek against, so this never returns
an empty list. Text is a synthetic label, not speech content.
"""
from __future__ import annotations

import math

from echolisten.transcript.models import Duration, Segment, SlicingPolicy

# Defaults mirror Settings.FALLBACK_SLICE_SECONDS / FALLBACK_ASSUMED_DURATION
DEFAULT_SLICE_SECONDS = 30.0
DEFAULT_ASSUMED_DURATION = 300.0

PLACEHOLDER_PREFIX = "[Audio Section:"


def placeholder_label(offset_sec: float) -> str:
    """Label for a window starting at offset_sec, e.g. '[Audio Section: 1m 30s]'."""
    return f"{PLACEHOLDER_PREFIX} {int(offset_sec // 60)}m {int(offset_sec % 60)}s]"


def fallback_slice(
    total_duration: float | None,
    policy: SlicingPolicy,
    slice_seconds: float = DEFAULT_SLICE_SECONDS,
    assumed_duration: float = DEFAULT_ASSUMED_DURATION,
) -> list[Segment]:
    """
    Fixed-width windows covering [0, total_duration). Duration policy uses its own width;
    Turns is not time-denominated so slice_seconds is used. Unknown/zero duration uses
    assumed_duration. Last window is clipped to the duration.
    """
    duration = total_duration if total_duration is not None and math.isfinite(total_duration) else 0.0
    if duration <= 0:
        duration = assumed_duration if assumed_duration > 0 else DEFAULT_ASSUMED_DURATION
    width = policy.seconds_per_slice if isinstance(policy, Duration) else slice_seconds
    if width <= 0:
        width = DEFAULT_SLICE_SECONDS

    segments: list[Segment] = []
    count = max(1, math.ceil(duration / width))
    for i in range(count):
        start = i * width
        end = min(start + width, duration)
        if end <= start:
            break
        segments.append(
            Segment(
                id=f"manual-{int(start)}",
                start_time=start,
                end_time=end,
                text=placeholder_label(start),
                speaker=1,
            )
        )
    return segments
