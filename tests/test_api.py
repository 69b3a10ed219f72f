"""HTTP and WebSocket surface tests (FastAPI TestClient, no recognizer model loaded)."""
from __future__ import annotations

import numpy as np
import pytest
from fastapi.testclient import TestClient

from voicebridge.main import app
from voicebridge.transport.events import encode_pcm


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("ASR_BACKEND", "none")
    monkeypatch.setenv("DEEPL_API_KEY", "")
    monkeypatch.setenv("SUMMARY_API_KEY", "")
    monkeypatch.setenv("RECORD_DIR", str(tmp_path / "recordings"))
    monkeypatch.setenv("PREFERENCES_FILE", str(tmp_path / "prefs.json"))
    with TestClient(app) as c:
        yield c


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_session_lifecycle(client) -> None:
    assert client.get("/api/sessions/g1").json()["active"] is False

    r = client.post("/api/sessions/g1/start", json={"mode": "translating"})
    assert r.status_code == 200
    body = r.json()
    assert body["active"] is True and body["mode"] == "translating" and body["state"] == "active"

    r = client.post("/api/sessions/g1/start", json={"mode": "capturing"})
    assert r.status_code == 409

    r = client.post("/api/sessions/g1/stop")
    assert r.status_code == 200
    assert r.json()["mode"] == "translating"
    assert r.json()["transcript"] is None

    assert client.post("/api/sessions/g1/stop").status_code == 404


def test_invalid_mode_is_rejected(client) -> None:
    assert client.post("/api/sessions/g1/start", json={"mode": "dancing"}).status_code == 422


def test_capture_stop_without_audio(client) -> None:
    client.post("/api/sessions/g2/start", json={"mode": "capturing"})
    body = client.post("/api/sessions/g2/stop").json()
    assert body["artifacts"] == []
    assert body["transcript"] == ""
    assert body["minutes"] is None


def test_preferences_crud(client) -> None:
    assert client.get("/api/preferences/42").status_code == 404

    r = client.put("/api/preferences/42", json={"source_lang": "JA", "target_lang": "ko"})
    assert r.status_code == 200
    assert r.json() == {
        "user_id": "42",
        "source_lang": "ja",
        "target_lang": "ko",
        "source_name": "Japanese",
        "target_name": "Korean",
    }
    assert client.get("/api/preferences/42").json()["target_lang"] == "ko"
    assert [p["user_id"] for p in client.get("/api/preferences").json()] == ["42"]

    assert client.put("/api/preferences/42", json={"source_lang": "fr", "target_lang": "ja"}).status_code == 400

    assert client.delete("/api/preferences/42").status_code == 200
    assert client.delete("/api/preferences/42").status_code == 404


def test_websocket_feed_fills_buffers(client) -> None:
    client.post("/api/sessions/g3/start", json={"mode": "capturing"})
    frame = encode_pcm(np.ones(960, dtype=np.int16))
    with client.websocket_connect("/ws/voice/g3") as ws:
        ws.send_json({"type": "speaking", "stream_id": 11, "speaker_id": "42"})
        ws.send_json({"type": "tick", "frames": {"11": frame, "12": frame}})
        ws.send_json({"type": "bogus"})
        # events are handled in order: the error reply means the first two are in
        reply = ws.receive_json()
        assert reply["type"] == "error"

        assert client.get("/api/sessions/g3").json()["speakers"] == ["42"]

        stop = client.post("/api/sessions/g3/stop").json()
        assert len(stop["artifacts"]) == 1
        messages = [ws.receive_json() for _ in range(3)]
    assert [m["type"] for m in messages] == ["message", "capture_report", "message"]
