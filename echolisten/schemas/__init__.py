"""Pydantic schemas for API request/response."""
from echolisten.schemas.session import (
    ImportParams,
    SegmentOut,
    SessionDetail,
    SessionSummary,
    TurnOut,
)
from echolisten.schemas.speech import TTSRequest, TTSResponse
from echolisten.schemas.vocabulary import (
    ReviewRequest,
    SavedWordOut,
    ToggleWordRequest,
    ToggleWordResponse,
    VocabularyFolder,
    WordDefinitionOut,
)

__all__ = [
    "ImportParams",
    "ReviewRequest",
    "SavedWordOut",
    "SegmentOut",
    "SessionDetail",
    "SessionSummary",
    "TTSRequest",
    "TTSResponse",
    "ToggleWordRequest",
    "ToggleWordResponse",
    "TurnOut",
    "VocabularyFolder",
    "WordDefinitionOut",
]
