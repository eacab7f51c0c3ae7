"""
Schemas for the vocabulary book, review flashcards and word lookup.
"""
from __future__ import annotations

from pydantic import BaseModel, Field


class SavedWordOut(BaseModel):
    word: str
    session_id: str
    added_at: int
    next_review_at: int
    stage: int = 0
    definition: str | None = None
    translation: str | None = None
    phonetic: str | None = None
    example: str | None = None


class ToggleWordRequest(BaseModel):
    """Request body for POST /api/vocabulary/toggle. Saves the word if absent, removes it if present."""

    word: str = Field(..., min_length=1)
    session_id: str | None = Field(None, description="Session the word was tapped in; absent = 'imported'")
    definition: str | None = None
    translation: str | None = None
    phonetic: str | None = None
    example: str | None = None


class ToggleWordResponse(BaseModel):
    saved: bool = Field(..., description="True if the word is now in the vocabulary book")
    word: SavedWordOut | None = None


class ReviewRequest(BaseModel):
    """Request body for POST /api/vocabulary/{word}/review."""

    known: bool = Field(..., description="True = Knew it, False = Forgot")


class VocabularyFolder(BaseModel):
    session_id: str
    title: str
    words: list[SavedWordOut] = Field(default_factory=list)


class WordDefinitionOut(BaseModel):
    word: str
    phonetic: str = ""
    definition: str = ""
    example: str = ""
    translation: str = ""
    offline: bool = Field(False, description="True when served from saved words or the dictionary cache")
