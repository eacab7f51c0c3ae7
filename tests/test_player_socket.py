"""WebSocket player tests: readiness, controls, malformed input, session switch."""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from echolisten.main import app
from echolisten.session_store import get_session
from echolisten.storage import audio_store
from tests.conftest import make_wav


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


def _import(client: TestClient, seconds: float, **params) -> dict:
    resp = client.post("/api/sessions", params=params, content=make_wav(seconds), headers={"Content-Type": "audio/wav"})
    assert resp.status_code == 200, resp.text
    return resp.json()


def _exchange(ws, message: dict) -> tuple[list[dict], dict]:
    """Send one message; return (non-state replies, state frame)."""
    ws.send_json(message)
    others: list[dict] = []
    while True:
        reply = ws.receive_json()
        if reply["type"] == "state":
            return others, reply
        others.append(reply)


def _commands(replies: list[dict]) -> list[tuple[str, float | None]]:
    return [(r["action"], r.get("value")) for r in replies if r["type"] == "command"]


def test_unknown_session_is_rejected(client: TestClient) -> None:
    with client.websocket_connect("/ws/player/nope") as ws:
        assert ws.receive_json() == {"type": "error", "detail": "Session not found"}
        with pytest.raises(WebSocketDisconnect):
            ws.receive_json()


def test_ready_jump_and_tick(client: TestClient) -> None:
    session = _import(client, 65.0)  # three 30 s placeholder sections
    with client.websocket_connect(f"/ws/player/{session['id']}") as ws:
        initial = ws.receive_json()
        assert initial["type"] == "state"
        assert initial["ready"] is False

        replies, state = _exchange(ws, {"type": "ready"})
        assert _commands(replies) == [("rate", 1.0)]
        assert state["ready"] is True

        replies, state = _exchange(ws, {"type": "jump", "index": 2})
        assert _commands(replies) == [("seek", 60.0), ("play", None)]
        assert state["active_segment_index"] == 2
        assert state["is_playing"] is True

        _, state = _exchange(ws, {"type": "tick", "time": 60.5})
        assert state["current_time"] == 60.5
        assert state["active_token_index"] is not None

    assert get_session(session["id"]).last_played is not None


def test_controls_without_audio_are_noops(client: TestClient) -> None:
    session = _import(client, 65.0)
    audio_store().delete(session["id"])
    with client.websocket_connect(f"/ws/player/{session['id']}") as ws:
        ws.receive_json()

        replies, state = _exchange(ws, {"type": "ready"})
        assert replies == [{"type": "error", "detail": "Audio source unavailable"}]
        assert state["ready"] is False

        replies, state = _exchange(ws, {"type": "toggle_play"})
        assert replies == []
        assert state["is_playing"] is False

        replies, state = _exchange(ws, {"type": "jump", "index": 1})
        assert replies == []
        assert state["active_segment_index"] == 0


def test_malformed_messages_are_ignored(client: TestClient) -> None:
    session = _import(client, 65.0)
    with client.websocket_connect(f"/ws/player/{session['id']}") as ws:
        ws.receive_json()
        ws.send_text("not json")
        ws.send_json(["a", "list"])
        ws.send_json({"type": "tick"})
        ws.send_json({"type": "loop_mode", "mode": "shuffle"})

        _, state = _exchange(ws, {"type": "loop_mode"})
        assert state["loop_mode"] == "repeat_one"


def test_unknown_message_type_gets_no_reply(client: TestClient) -> None:
    session = _import(client, 65.0)
    with client.websocket_connect(f"/ws/player/{session['id']}") as ws:
        ws.receive_json()
        ws.send_json({"type": "dance"})

        _, state = _exchange(ws, {"type": "loop_mode", "mode": "stop"})
        assert state["loop_mode"] == "stop"


def test_speed_and_skip(client: TestClient) -> None:
    session = _import(client, 65.0)
    with client.websocket_connect(f"/ws/player/{session['id']}") as ws:
        ws.receive_json()
        _exchange(ws, {"type": "ready"})

        replies, state = _exchange(ws, {"type": "speed"})
        assert _commands(replies) == [("rate", 1.25)]
        assert state["speed"] == 1.25

        replies, _ = _exchange(ws, {"type": "skip", "seconds": 15})
        assert _commands(replies) == [("seek", 15.0)]
        replies, _ = _exchange(ws, {"type": "skip"})
        assert _commands(replies) == [("seek", 0.0)]

        replies, _ = _exchange(ws, {"type": "seek", "fraction": 0.5})
        assert _commands(replies) == [("seek", 32.5)]


def test_session_switch_swaps_engine(client: TestClient) -> None:
    long_session = _import(client, 300.0)  # ten sections
    short_session = _import(client, 40.0)  # two sections
    with client.websocket_connect(f"/ws/player/{long_session['id']}") as ws:
        ws.receive_json()
        _exchange(ws, {"type": "ready"})
        _exchange(ws, {"type": "jump", "index": 9})

        replies, state = _exchange(ws, {"type": "session", "session_id": short_session["id"]})
        assert _commands(replies) == [("pause", None)]
        assert state["session_id"] == short_session["id"]
        assert state["ready"] is False
        assert state["active_segment_index"] == 0

        _exchange(ws, {"type": "ready"})
        _exchange(ws, {"type": "toggle_play"})
        for t in (275.0, 35.0, 5.0):
            _, state = _exchange(ws, {"type": "tick", "time": t})
            assert 0 <= state["active_segment_index"] < 2

        replies, state = _exchange(ws, {"type": "session", "session_id": "missing"})
        assert replies[0] == {"type": "error", "detail": "Session not found: missing"}
        assert state["session_id"] == short_session["id"]


def test_ended_advances_to_next_section(client: TestClient) -> None:
    session = _import(client, 65.0)
    with client.websocket_connect(f"/ws/player/{session['id']}") as ws:
        ws.receive_json()
        _exchange(ws, {"type": "ready"})
        _exchange(ws, {"type": "jump", "index": 0})

        replies, state = _exchange(ws, {"type": "ended"})
        assert _commands(replies) == [("seek", 30.0), ("play", None)]
        assert state["active_segment_index"] == 1
