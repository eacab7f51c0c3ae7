"""Saved vocabulary and its spaced-repetition review schedule."""
from echolisten.vocabulary.review import INTERVAL_DAYS, ReviewRecord, is_due, review
from echolisten.vocabulary.store import SavedWord, apply_review, due_words, toggle_word

__all__ = [
    "INTERVAL_DAYS",
    "ReviewRecord",
    "SavedWord",
    "apply_review",
    "due_words",
    "is_due",
    "review",
    "toggle_word",
]
