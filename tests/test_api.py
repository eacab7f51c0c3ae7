"""HTTP API tests via FastAPI TestClient (ASR and TTS disabled)."""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from echolisten.main import app
from echolisten.session_store import update_session
from echolisten.storage import audio_store
from echolisten.transcript.models import Segment
from echolisten.vocabulary import store
from echolisten.vocabulary.review import DAY_MS, now_ms


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


def _import(client: TestClient, body: bytes, **params) -> dict:
    resp = client.post("/api/sessions", params=params, content=body, headers={"Content-Type": "audio/wav"})
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_import_without_asr_produces_placeholder_session(client: TestClient, wav_bytes: bytes) -> None:
    data = _import(client, wav_bytes, title="Episode 1.wav", method="duration", value=1)

    assert data["title"] == "Episode 1"
    assert data["transcript_source"] == "placeholder"
    assert data["subtitle"] == "2 segments • Standard"
    assert [s["id"] for s in data["segments"]] == ["manual-0", "manual-60"]
    assert data["has_audio"] is True
    assert data["duration"] == pytest.approx(65.0)


def test_import_uses_default_policy(client: TestClient, wav_bytes: bytes) -> None:
    data = _import(client, wav_bytes)
    assert data["segment_count"] == 3


@pytest.mark.parametrize(
    "params",
    [{"method": "duration", "value": 0}, {"method": "turns", "value": 101}, {"method": "words", "value": 1}],
)
def test_import_rejects_bad_policy(client: TestClient, wav_bytes: bytes, params: dict) -> None:
    resp = client.post("/api/sessions", params=params, content=wav_bytes)
    assert resp.status_code == 400


def test_import_rejects_empty_body(client: TestClient) -> None:
    assert client.post("/api/sessions", content=b"").status_code == 400


def test_session_listing_detail_audio_and_delete(client: TestClient, wav_bytes: bytes) -> None:
    first = _import(client, wav_bytes, title="first")
    second = _import(client, wav_bytes, title="second")
    update_session(first["id"], created_at=1.0)

    listing = client.get("/api/sessions").json()
    assert [s["id"] for s in listing] == [second["id"], first["id"]]
    assert "segments" not in listing[0]

    detail = client.get(f"/api/sessions/{first['id']}").json()
    assert detail["segment_count"] == len(detail["segments"])

    audio = client.get(f"/api/sessions/{first['id']}/audio")
    assert audio.status_code == 200
    assert audio.content == wav_bytes
    assert audio.headers["content-type"].startswith("audio/wav")

    assert client.delete(f"/api/sessions/{first['id']}").status_code == 200
    assert client.get(f"/api/sessions/{first['id']}").status_code == 404
    assert audio_store().get(first["id"]) is None
    assert client.delete(f"/api/sessions/{first['id']}").status_code == 404


def test_unknown_session_routes_404(client: TestClient) -> None:
    for path in ("/api/sessions/nope", "/api/sessions/nope/audio", "/api/sessions/nope/turns", "/api/sessions/nope/transcript.txt"):
        assert client.get(path).status_code == 404


def test_missing_audio_is_404(client: TestClient, wav_bytes: bytes) -> None:
    data = _import(client, wav_bytes)
    audio_store().delete(data["id"])

    assert client.get(f"/api/sessions/{data['id']}/audio").status_code == 404
    assert client.get(f"/api/sessions/{data['id']}").json()["has_audio"] is False


def test_turns_and_transcript_export(client: TestClient, wav_bytes: bytes) -> None:
    data = _import(client, wav_bytes)
    segments = (
        Segment("seg-0", 0.0, 2.0, "Hello there.", 1),
        Segment("seg-1", 2.0, 3.0, "Hi!", 2),
        Segment("seg-2", 3.0, 4.0, "How are you?", 2),
    )
    update_session(data["id"], segments=segments, transcript_source="asr")

    turns = client.get(f"/api/sessions/{data['id']}/turns").json()
    assert [(t["speaker"], t["indices"]) for t in turns] == [(1, [0]), (2, [1, 2])]

    text = client.get(f"/api/sessions/{data['id']}/transcript.txt").text
    assert text.splitlines()[1] == "[00:02.00] [Speaker 2] Hi!"


def test_placeholder_transcript_export_has_header(client: TestClient, wav_bytes: bytes) -> None:
    data = _import(client, wav_bytes)
    text = client.get(f"/api/sessions/{data['id']}/transcript.txt").text

    assert text.startswith("# Placeholder")
    assert "[Speaker" not in text


def test_vocabulary_toggle_folders_due_and_review(client: TestClient, wav_bytes: bytes) -> None:
    session = _import(client, wav_bytes, title="lesson")

    saved = client.post(
        "/api/vocabulary/toggle",
        json={"word": "Ubiquitous,", "session_id": session["id"], "definition": "everywhere"},
    ).json()
    assert saved["saved"] is True
    assert saved["word"]["word"] == "Ubiquitous"
    assert saved["word"]["stage"] == 0

    client.post("/api/vocabulary/toggle", json={"word": "loose"})
    folders = client.get("/api/vocabulary").json()
    assert {f["title"]: [w["word"] for w in f["words"]] for f in folders} == {
        "lesson": ["Ubiquitous"],
        "Imported": ["loose"],
    }

    assert client.get("/api/vocabulary/due").json() == []
    # Make the word due now
    store.apply_review("ubiquitous", known=False, now=now_ms() - DAY_MS)
    due = client.get("/api/vocabulary/due").json()
    assert [w["word"] for w in due] == ["Ubiquitous"]

    reviewed = client.post("/api/vocabulary/ubiquitous/review", json={"known": True}).json()
    assert reviewed["stage"] == 1
    assert client.post("/api/vocabulary/missing/review", json={"known": True}).status_code == 404

    removed = client.post("/api/vocabulary/toggle", json={"word": "ubiquitous"}).json()
    assert removed == {"saved": False, "word": None}


def test_vocabulary_toggle_rejects_punctuation_only(client: TestClient) -> None:
    assert client.post("/api/vocabulary/toggle", json={"word": "--"}).status_code == 400


def test_dictionary_serves_saved_word_offline(client: TestClient) -> None:
    client.post("/api/vocabulary/toggle", json={"word": "gist", "definition": "main point", "translation": "要点"})

    data = client.get("/api/dictionary/Gist.", params={"sentence": "Get the gist."}).json()

    assert data["offline"] is True
    assert data["definition"] == "main point"
    assert data["example"] == "Get the gist."


def test_dictionary_rejects_blank_word(client: TestClient) -> None:
    assert client.get("/api/dictionary/...").status_code == 400


def test_tts_disabled_returns_null_audio(client: TestClient) -> None:
    assert client.post("/api/tts", json={"text": "hello"}).json() == {"audio": None, "mime_type": ""}
    assert client.post("/api/tts", json={"text": ""}).status_code == 422
