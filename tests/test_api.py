"""
Tests for the REST endpoints and the plain WebSocket route.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from meeting_bingo.main import app
from meeting_bingo.managers.game import GameManager
from meeting_bingo.routers.ws import _dispatch


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def receive(ws, event):
    """Read messages until ``event`` arrives."""
    for _ in range(20):
        message = ws.receive_json()
        if message["type"] == event:
            return message["data"]
    raise AssertionError(f"{event} never arrived")


class TestRest:
    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"

    def test_list_categories(self, client):
        ids = [c["id"] for c in client.get("/categories").json()["categories"]]
        assert ids == ["agile", "corporate", "tech"]

    def test_get_category(self, client):
        body = client.get("/categories/agile").json()
        assert body["name"] == "Agile & Scrum"
        assert "Standup" in body["words"]

    def test_unknown_category_is_404(self, client):
        response = client.get("/categories/knitting")
        assert response.status_code == 404

    def test_fresh_game_state_is_idle(self, client):
        body = client.get("/games/rest-fresh/state").json()
        assert body["status"] == "idle"
        assert body["card"] is None
        assert "rest-fresh" not in app.state.games.games

    def test_share_before_win_is_409(self, client):
        assert client.get("/games/rest-share/share").status_code == 409


class TestWebSocket:
    def test_start_and_toggle(self, client):
        with client.websocket_connect("/ws/ws-play") as ws:
            assert receive(ws, "game:state")["state"]["status"] == "idle"

            ws.send_json({"type": "start", "categoryId": "agile"})
            state = receive(ws, "game:state")["state"]
            assert state["status"] == "playing"
            assert state["category"] == "agile"

            ws.send_json({"type": "toggle", "row": 0, "col": 0})
            state = receive(ws, "game:state")["state"]
            assert state["card"]["squares"][0][0]["isFilled"] is True
            assert state["filledCount"] == 2

        assert client.get("/games/ws-play/state").json()["filledCount"] == 2

    def test_errors_are_reported(self, client):
        with client.websocket_connect("/ws/ws-errors") as ws:
            receive(ws, "game:state")
            ws.send_json({"type": "start", "categoryId": "knitting"})
            assert receive(ws, "game:error")["error"] == "CategoryNotFound"
            ws.send_json({"type": "dance"})
            assert receive(ws, "game:error")["error"] == "ValueError"
            ws.send_json({"type": "toggle", "row": "x"})
            assert receive(ws, "game:error")["error"] == "ValidationError"

    def test_spoken_segment_fills_square(self, client):
        with client.websocket_connect("/ws/ws-speech") as ws:
            receive(ws, "game:state")
            ws.send_json({"type": "start", "categoryId": "tech"})
            state = receive(ws, "game:state")["state"]
            word = state["card"]["squares"][0][0]["word"]

            ws.send_json({"type": "listen", "speechSupported": True})
            assert receive(ws, "transcript:start")["lang"] == "en-US"
            ws.send_json({"type": "segment", "text": f"we talked about {word} today", "isFinal": True})
            assert word in receive(ws, "words:detected")["words"]

    def test_listen_without_speech_support(self, client):
        with client.websocket_connect("/ws/ws-nospeech") as ws:
            receive(ws, "game:state")
            ws.send_json({"type": "start", "categoryId": "corporate"})
            receive(ws, "game:state")
            ws.send_json({"type": "listen", "speechSupported": False})
            assert "message" in receive(ws, "transcript:unavailable")

    def test_invalid_json_is_reported(self, client):
        with client.websocket_connect("/ws/ws-badjson") as ws:
            receive(ws, "game:state")
            ws.send_text("{not json")
            assert receive(ws, "game:error")["error"] == "JSONDecodeError"
            ws.send_json({"type": "start", "categoryId": "agile"})
            assert receive(ws, "game:state")["state"]["status"] == "playing"


class TestDispatch:
    @pytest.mark.asyncio
    async def test_share_replies_to_sender_only(self, fruit_lexicon):
        sio = AsyncMock()
        games = GameManager(sio, lexicon=fruit_lexicon)
        game = games.get_or_create("room-1")
        bystander = AsyncMock()
        game.add_listener(bystander)
        reply = AsyncMock()

        await _dispatch(games, "room-1", {"type": "share"}, reply)

        reply.assert_awaited_once_with("game:shareText", {"text": None})
        bystander.assert_not_awaited()
        sio.emit.assert_not_awaited()
