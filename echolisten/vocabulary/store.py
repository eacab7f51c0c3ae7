"""
Vocabulary store: words saved from transcripts, with their review state.

In-memory dict keyed by lower-cased word, mirrored to STORAGE_DIR/words.json.
Review state changes only through vocabulary.review.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, replace
from typing import Any

from echolisten.config import get_settings
from echolisten.vocabulary.review import DAY_MS, ReviewRecord, is_due, now_ms, review

logger = logging.getLogger(__name__)

WORDS_FILE = "words.json"
UNGROUPED_SESSION = "imported"


@dataclass(frozen=True)
class SavedWord:
    word: str
    session_id: str
    added_at: int
    next_review_at: int
    stage: int = 0
    definition: str | None = None
    translation: str | None = None
    phonetic: str | None = None
    example: str | None = None

    @property
    def record(self) -> ReviewRecord:
        return ReviewRecord(stage=self.stage, next_review_at=self.next_review_at)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# lower-cased word -> SavedWord
_word_store: dict[str, SavedWord] = {}


def _words_path() -> str:
    return os.path.join(get_settings().STORAGE_DIR, WORDS_FILE)


def _persist() -> None:
    path = _words_path()
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump([w.to_dict() for w in _word_store.values()], f, ensure_ascii=False, indent=2)
    except OSError as e:
        logger.warning("Failed to save vocabulary to %s: %s", path, e)


def load_words() -> int:
    """Load words.json into memory (startup). Returns number of words loaded."""
    path = _words_path()
    if not os.path.isfile(path):
        return 0
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not load vocabulary from %s: %s", path, e)
        return 0
    loaded = 0
    for item in data if isinstance(data, list) else []:
        try:
            w = SavedWord(**item)
        except TypeError as e:
            logger.warning("Skipping malformed vocabulary record: %s", e)
            continue
        _word_store[w.word.lower()] = w
        loaded += 1
    return loaded


def get_word(word: str) -> SavedWord | None:
    return _word_store.get((word or "").strip().lower())


def list_words() -> list[SavedWord]:
    return sorted(_word_store.values(), key=lambda w: w.added_at)


def toggle_word(
    word: str,
    session_id: str,
    details: dict[str, Any] | None = None,
    now: int | None = None,
) -> SavedWord | None:
    """
    Save word if absent, remove it if present. Returns the saved word, or None when removed.
    A new word is first due one day after it was saved.
    """
    key = (word or "").strip().lower()
    if not key:
        raise ValueError("word is required")
    if key in _word_store:
        del _word_store[key]
        _persist()
        return None
    now = now_ms() if now is None else now
    details = details or {}
    saved = SavedWord(
        word=word.strip(),
        session_id=session_id or UNGROUPED_SESSION,
        added_at=now,
        next_review_at=now + DAY_MS,
        stage=0,
        definition=details.get("definition"),
        translation=details.get("translation"),
        phonetic=details.get("phonetic"),
        example=details.get("example"),
    )
    _word_store[key] = saved
    _persist()
    return saved


def due_words(now: int | None = None) -> list[SavedWord]:
    """Words whose next_review_at <= now, in the order they were saved."""
    now = now_ms() if now is None else now
    return [w for w in list_words() if is_due(w.record, now)]


def apply_review(word: str, known: bool, now: int | None = None) -> SavedWord | None:
    """Apply a Knew it / Forgot judgment. Returns the updated word or None if not saved."""
    key = (word or "").strip().lower()
    current = _word_store.get(key)
    if current is None:
        return None
    result = review(current.record, known, now)
    updated = replace(current, stage=result.stage, next_review_at=result.next_review_at)
    _word_store[key] = updated
    _persist()
    return updated


def folders() -> dict[str, list[SavedWord]]:
    """Saved words grouped by the session they came from."""
    groups: dict[str, list[SavedWord]] = {}
    for w in list_words():
        groups.setdefault(w.session_id or UNGROUPED_SESSION, []).append(w)
    return groups


def word_store() -> dict[str, SavedWord]:
    """Return the underlying store (read-only view for debugging and tests)."""
    return _word_store
