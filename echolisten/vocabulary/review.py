"""
ReviewScheduler: fixed-interval spaced repetition.

Knew it -> next stage (max 7); Forgot -> stage 0. The stage indexes a fixed
table of day intervals (Ebbinghaus-style).
"""
from __future__ import annotations

import time
from dataclasses import dataclass

INTERVAL_DAYS = [0, 1, 2, 4, 7, 15, 30, 90]
MAX_STAGE = len(INTERVAL_DAYS) - 1
DAY_MS = 86_400_000


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ReviewRecord:
    stage: int = 0
    next_review_at: int = 0  # epoch ms


def review(current: ReviewRecord, known: bool, now: int | None = None) -> ReviewRecord:
    now = now_ms() if now is None else now
    stage = min(max(current.stage, 0), MAX_STAGE)
    stage = min(stage + 1, MAX_STAGE) if known else 0
    return ReviewRecord(stage=stage, next_review_at=now + INTERVAL_DAYS[stage] * DAY_MS)


def is_due(record: ReviewRecord, now: int | None = None) -> bool:
    return record.next_review_at <= (now_ms() if now is None else now)
