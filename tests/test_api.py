"""API tests: HTTP routes and the room websocket."""

import pytest
from fastapi.testclient import TestClient

import api.main as main
from api.connections import ConnectionManager
from api.registry import RoomRegistry
from conftest import SLOW_TIMINGS


@pytest.fixture
def client(monkeypatch):
    manager = ConnectionManager()
    monkeypatch.setattr(main, "manager", manager)
    monkeypatch.setattr(main, "registry", RoomRegistry(manager, timings=SLOW_TIMINGS))
    with TestClient(main.app) as c:
        yield c


def _receive_until(ws, event, limit=30):
    for _ in range(limit):
        message = ws.receive_json()
        if message["type"] == event:
            return message["data"]
    raise AssertionError(f"no {event} message received")


def _join(ws, name, as_host=False):
    ws.send_json({"type": "join", "data": {"display_name": name, "as_host": as_host}})
    return _receive_until(ws, "joined")


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_room_stats_empty(client):
    r = client.get("/api/room-stats")
    assert r.status_code == 200
    data = r.json()
    assert data["total"] == 0
    assert data["waiting"] == 0


def test_get_room_404(client):
    r = client.get("/api/rooms/nonexistent")
    assert r.status_code == 404


def test_websocket_join_and_rooms(client):
    with client.websocket_connect("/ws/room1") as ws:
        joined = _join(ws, "Ann", as_host=True)
        assert joined == {"room_id": "room1", "display_name": "Ann", "is_host": True}

        snap = client.get("/api/rooms/room1").json()
        assert snap["state"] == "waiting"
        assert snap["participants"][0]["display_name"] == "Ann"
        assert "faction" not in snap["participants"][0] or snap["participants"][0]["faction"] is None

        assert client.get("/api/room-stats").json()["waiting"] == 1
        assert client.get("/api/rooms/available", params={"display_name": "Bob"}).json() == {"room_id": "room1"}
        assert client.get("/api/rooms/available", params={"display_name": "Ann"}).json() == {"room_id": None}


def test_websocket_duplicate_name_rejected(client):
    with client.websocket_connect("/ws/room1") as ws1:
        _join(ws1, "Ann", as_host=True)
        with client.websocket_connect("/ws/room1") as ws2:
            ws2.send_json({"type": "join", "data": {"display_name": "Ann"}})
            rejected = _receive_until(ws2, "join_rejected")
            assert rejected["code"] == "nickname_taken"
            # The same socket can still join under a free name
            assert _join(ws2, "Bob")["display_name"] == "Bob"


def test_websocket_requires_join_first(client):
    with client.websocket_connect("/ws/room1") as ws:
        ws.send_json({"type": "start_game", "data": {}})
        msg = _receive_until(ws, "system_message")
        assert msg["code"] == "rejected"


def test_websocket_start_needs_players(client):
    with client.websocket_connect("/ws/room1") as ws:
        _join(ws, "Ann", as_host=True)
        ws.send_json({"type": "start_game", "data": {}})
        msg = _receive_until(ws, "system_message")
        assert msg["code"] == "player_count"


def test_websocket_ping_and_stats(client):
    with client.websocket_connect("/ws/room1") as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong", "data": None}
        ws.send_json({"type": "request_room_stats", "data": {}})
        stats = _receive_until(ws, "room_stats")
        assert stats["total"] == 0
        ws.send_json({"type": "find_available_room", "data": {"display_name": "Ann"}})
        assert _receive_until(ws, "available_room") == {"room_id": None}


def test_websocket_bad_messages(client):
    with client.websocket_connect("/ws/room1") as ws:
        ws.send_text("not json")
        assert _receive_until(ws, "error")["reason"] == "Malformed message"
        ws.send_json({"type": "dance", "data": {}})
        assert "Unknown message type" in _receive_until(ws, "error")["reason"]
        ws.send_json({"type": "join", "data": {}})
        assert "Invalid join payload" == _receive_until(ws, "error")["reason"]


def test_websocket_chat_and_bots(client):
    with client.websocket_connect("/ws/room1") as ws:
        _join(ws, "Ann", as_host=True)
        ws.send_json({"type": "send_chat", "data": {"sender": "Someone", "content": "hi all"}})
        chat = _receive_until(ws, "chat_message")
        assert chat["sender"] == "Ann"
        assert chat["content"] == "hi all"

        ws.send_json({"type": "add_simulated_participant", "data": {}})
        roster = _receive_until(ws, "roster_update")["participants"]
        assert [p["display_name"] for p in roster] == ["Ann", "Bot Farmer"]

        ws.send_json({"type": "remove_simulated_participant", "data": {}})
        roster = _receive_until(ws, "roster_update")["participants"]
        assert [p["display_name"] for p in roster] == ["Ann"]


def test_websocket_leave_destroys_room(client):
    with client.websocket_connect("/ws/room1") as ws:
        _join(ws, "Ann", as_host=True)
        ws.send_json({"type": "leave", "data": {}})
        ws.send_json({"type": "ping"})
        _receive_until(ws, "pong")
        assert client.get("/api/rooms/room1").status_code == 404
