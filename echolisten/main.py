"""
FastAPI app: import recordings into segmented transcripts, play them back in sync,
collect and review vocabulary.

HTTP API: sessions (import / list / detail / audio / turns / transcript export),
vocabulary (toggle / folders / due / review), dictionary lookup, TTS.
WebSocket /ws/player/{session_id}: playback sync (see websocket_manager).
"""
from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse, Response
from pydantic import ValidationError

from echolisten.asr import create_asr_engine, load_whisper_model
from echolisten.config import configure_logging, get_settings
from echolisten.dictionary import clean_word, lookup
from echolisten.schemas import (
    ImportParams,
    ReviewRequest,
    SavedWordOut,
    SessionDetail,
    SessionSummary,
    ToggleWordRequest,
    ToggleWordResponse,
    TTSRequest,
    TTSResponse,
    TurnOut,
    VocabularyFolder,
    WordDefinitionOut,
)
from echolisten.session_store import Session, delete_session, get_session, list_sessions, load_sessions
from echolisten.storage import audio_store
from echolisten.transcript.models import group_turns
from echolisten.transcript.pipeline import import_session
from echolisten.transcript.writer import render_transcript
from echolisten.tts import synthesize_speech
from echolisten.vocabulary.store import (
    UNGROUPED_SESSION,
    SavedWord,
    apply_review,
    due_words,
    folders,
    load_words,
    toggle_word,
)
from echolisten.websocket_manager import PlayerSocketManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    logger.info("Loaded %d sessions, %d saved words", load_sessions(), load_words())
    # Load Whisper model once at startup when using local backend (singleton)
    if settings.ASR_BACKEND == "local":
        app.state.whisper_model = load_whisper_model()
    else:
        app.state.whisper_model = None
    yield
    app.state.whisper_model = None


app = FastAPI(
    title="EchoListen",
    description="Listening practice: segmented transcripts, synced playback, vocabulary review",
    lifespan=lifespan,
)


def _require_session(session_id: str) -> Session:
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _word_out(word: SavedWord) -> SavedWordOut:
    return SavedWordOut(**word.to_dict())


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


# --- sessions ---


@app.post("/api/sessions", response_model=SessionDetail)
async def create_session(
    request: Request,
    title: str | None = Query(None),
    method: str | None = Query(None),
    value: int | None = Query(None),
) -> SessionDetail:
    """
    Import a recording. Body: raw audio bytes; Content-Type gives the format.
    Always produces a playable session: placeholder sections when no transcript is available.
    """
    settings = get_settings()
    try:
        params = ImportParams(
            title=title,
            method=method or settings.DEFAULT_SLICING_METHOD,
            value=value if value is not None else settings.DEFAULT_SLICING_VALUE,
        )
        policy = params.policy()
    except (ValidationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    audio_bytes = await request.body()
    if not audio_bytes:
        raise HTTPException(status_code=400, detail="Request body must contain the audio file")
    mime_type = (request.headers.get("content-type") or "audio/mpeg").split(";")[0].strip()
    if mime_type in ("", "application/octet-stream"):
        mime_type = "audio/mpeg"

    engine = create_asr_engine(getattr(request.app.state, "whisper_model", None))
    try:
        session = await import_session(audio_bytes, policy, engine, filename=params.title, mime_type=mime_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SessionDetail.from_session(session, has_audio=audio_store().exists(session.id))


@app.get("/api/sessions", response_model=list[SessionSummary])
async def get_sessions() -> list[SessionSummary]:
    return [SessionSummary.from_session(s) for s in list_sessions()]


@app.get("/api/sessions/{session_id}", response_model=SessionDetail)
async def get_session_detail(session_id: str) -> SessionDetail:
    session = _require_session(session_id)
    return SessionDetail.from_session(session, has_audio=audio_store().exists(session_id))


@app.delete("/api/sessions/{session_id}")
async def remove_session(session_id: str) -> dict:
    if not delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    audio_store().delete(session_id)
    return {"deleted": session_id}


@app.get("/api/sessions/{session_id}/audio")
async def get_session_audio(session_id: str) -> Response:
    session = _require_session(session_id)
    data = audio_store().get(session_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Audio not found for session")
    return Response(content=data, media_type=session.audio_mime)


@app.get("/api/sessions/{session_id}/turns", response_model=list[TurnOut])
async def get_session_turns(session_id: str) -> list[TurnOut]:
    session = _require_session(session_id)
    return [TurnOut.from_turn(t) for t in group_turns(list(session.segments))]


@app.get("/api/sessions/{session_id}/transcript.txt", response_class=PlainTextResponse)
async def get_session_transcript(session_id: str) -> PlainTextResponse:
    session = _require_session(session_id)
    text = render_transcript(list(session.segments), placeholder=session.is_placeholder)
    return PlainTextResponse(text)


# --- vocabulary ---


@app.get("/api/vocabulary", response_model=list[VocabularyFolder])
async def get_vocabulary() -> list[VocabularyFolder]:
    """Saved words grouped by the session they were saved from."""
    out: list[VocabularyFolder] = []
    for session_id, words in folders().items():
        session = get_session(session_id)
        if session is not None:
            title = session.title
        elif session_id == UNGROUPED_SESSION:
            title = "Imported"
        else:
            title = "Deleted session"
        out.append(VocabularyFolder(session_id=session_id, title=title, words=[_word_out(w) for w in words]))
    return out


@app.post("/api/vocabulary/toggle", response_model=ToggleWordResponse)
async def toggle_vocabulary_word(request: ToggleWordRequest) -> ToggleWordResponse:
    word = clean_word(request.word)
    if not word:
        raise HTTPException(status_code=400, detail="word is required")
    details = request.model_dump(include={"definition", "translation", "phonetic", "example"})
    saved = toggle_word(word, request.session_id or UNGROUPED_SESSION, details)
    if saved is None:
        return ToggleWordResponse(saved=False)
    return ToggleWordResponse(saved=True, word=_word_out(saved))


@app.get("/api/vocabulary/due", response_model=list[SavedWordOut])
async def get_due_words() -> list[SavedWordOut]:
    return [_word_out(w) for w in due_words()]


@app.post("/api/vocabulary/{word}/review", response_model=SavedWordOut)
async def review_word(word: str, request: ReviewRequest) -> SavedWordOut:
    updated = apply_review(word, request.known)
    if updated is None:
        raise HTTPException(status_code=404, detail="Word not in vocabulary")
    return _word_out(updated)


# --- dictionary / tts ---


@app.get("/api/dictionary/{word}", response_model=WordDefinitionOut)
async def get_definition(word: str, sentence: str = Query("")) -> WordDefinitionOut:
    if not clean_word(word):
        raise HTTPException(status_code=400, detail="word is required")
    definition = await lookup(word, sentence)
    return WordDefinitionOut(**definition.to_dict())


@app.post("/api/tts", response_model=TTSResponse)
async def tts(request: TTSRequest) -> TTSResponse:
    audio, mime = await synthesize_speech(request.text)
    return TTSResponse(audio=audio, mime_type=mime)


# --- player ---


@app.websocket("/ws/player/{session_id}")
async def websocket_player(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket: client reports its audio element (ready / tick / ended) and user actions;
    server replies with clock commands and a state frame per message.
    """
    await websocket.accept()
    session = get_session(session_id)
    if session is None:
        await websocket.send_text(json.dumps({"type": "error", "detail": "Session not found"}))
        await websocket.close(code=4404)
        return
    manager = PlayerSocketManager(websocket, session)
    try:
        await manager.run()
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.exception("Player socket for %s failed: %s", session_id, e)
        try:
            await websocket.close()
        except Exception:
            pass
