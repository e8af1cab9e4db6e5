"""
Tests for the FastAPI layer: JSON API, server-rendered page and websocket.
Uses the FastAPI test client against the in-memory game store.
"""

import pytest
from fastapi.testclient import TestClient

from tictactoe import main
from tictactoe.main import app


@pytest.fixture(autouse=True)
def clean_store():
    main.games_db.clear()
    main.game_id_counter = 1
    yield
    main.games_db.clear()


@pytest.fixture
def client():
    return TestClient(app)


def _new_game(client):
    r = client.post("/new_game")
    assert r.status_code == 200
    return r.json()


def test_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json() == {"message": "Healthy"}


def test_new_game_state(client):
    gid = _new_game(client)
    assert gid == 1
    data = client.get(f"/game_state/{gid}").json()
    assert data["board"] == [None] * 9
    assert data["history"] == [[None] * 9]
    assert data["current_move"] == 0
    assert data["status"] == "next player: X"
    assert data["next_player"] == "X"
    assert data["winner"] is None
    assert data["moves"] == ["Go to game start"]
    assert data["accepted"] is True


def test_unknown_game_is_404(client):
    assert client.get("/game_state/42").status_code == 404
    assert client.post("/play", json={"game_id": 42, "cell": 0}).status_code == 404
    assert client.post("/jump_to", json={"game_id": 42, "move": 0}).status_code == 404


def test_malformed_body_is_422(client):
    gid = _new_game(client)
    assert client.post("/play", json={"game_id": gid}).status_code == 422


def test_play_and_win(client):
    gid = _new_game(client)
    for cell in [0, 4, 1, 5]:
        assert client.post("/play", json={"game_id": gid, "cell": cell}).json()["accepted"]
    data = client.post("/play", json={"game_id": gid, "cell": 2}).json()
    assert data["board"][:3] == ["X", "X", "X"]
    assert data["winner"] == "X"
    assert data["status"] == "winner: X"
    assert data["winning_line"] == [0, 1, 2]
    assert data["next_player"] is None
    assert data["moves"][-1] == "Go to move #5"

    refused = client.post("/play", json={"game_id": gid, "cell": 8}).json()
    assert refused["accepted"] is False
    assert len(refused["history"]) == 6


def test_occupied_and_out_of_range_are_ignored(client):
    gid = _new_game(client)
    client.post("/play", json={"game_id": gid, "cell": 4})
    for cell in [4, -1, 9]:
        r = client.post("/play", json={"game_id": gid, "cell": cell})
        assert r.status_code == 200
        assert r.json()["accepted"] is False
        assert r.json()["current_move"] == 1


def test_jump_then_play_truncates(client):
    gid = _new_game(client)
    for cell in [0, 4, 1, 5]:
        client.post("/play", json={"game_id": gid, "cell": cell})
    data = client.post("/jump_to", json={"game_id": gid, "move": 1}).json()
    assert data["current_move"] == 1
    assert len(data["history"]) == 5
    assert data["next_player"] == "O"

    data = client.post("/play", json={"game_id": gid, "cell": 8}).json()
    assert len(data["history"]) == 3
    assert data["history"][2][8] == "O"

    refused = client.post("/jump_to", json={"game_id": gid, "move": 5}).json()
    assert refused["accepted"] is False
    assert refused["current_move"] == 2


def test_oldest_game_is_evicted(client, monkeypatch):
    monkeypatch.setattr(main, "MAX_GAMES", 2)
    first = _new_game(client)
    _new_game(client)
    _new_game(client)
    assert first not in main.games_db
    assert len(main.games_db) == 2


def test_page_renders_board_and_history(client):
    gid = _new_game(client)
    client.post("/play", json={"game_id": gid, "cell": 0})
    client.post("/play", json={"game_id": gid, "cell": 4})
    r = client.get(f"/games/{gid}")
    assert r.status_code == 200
    html = r.text
    assert "next player: X" in html
    assert "Go to game start" in html
    assert "Go to move #2" in html
    assert "x-square" in html
    assert "o-square" in html
    assert f'action="/games/{gid}/play/8"' in html
    assert f'action="/games/{gid}/jump/2"' in html


def test_page_unknown_game_is_404(client):
    assert client.get("/games/7").status_code == 404


def test_page_new_game_redirects(client):
    r = client.get("/games", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/games/1"


def test_page_intents_redirect_back(client):
    gid = _new_game(client)
    r = client.post(f"/games/{gid}/play/4", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == f"/games/{gid}"
    assert main.games_db[gid].current_move == 1

    r = client.post(f"/games/{gid}/jump/0")
    assert r.status_code == 200
    assert "next player: X" in r.text
    assert main.games_db[gid].current_move == 0


def test_page_shows_draw_note(client):
    gid = _new_game(client)
    for cell in [0, 1, 2, 4, 3, 5, 7, 6, 8]:
        client.post(f"/games/{gid}/play/{cell}")
    html = client.get(f"/games/{gid}").text
    assert "next player: O" in html
    assert "Board is full with no winner." in html


def test_ws_ping_and_intents(client):
    gid = _new_game(client)
    with client.websocket_connect(f"/ws/game/{gid}") as ws:
        initial = ws.receive_json()
        assert initial["current_move"] == 0

        ws.send_text("ping")
        assert ws.receive_text() == "pong"

        ws.send_json({"action": "play", "cell": 4})
        data = ws.receive_json()
        assert data["board"][4] == "X"
        assert data["accepted"] is True

        ws.send_json({"action": "play", "cell": 4})
        refused = ws.receive_json()
        assert refused["accepted"] is False
        assert refused["current_move"] == 1

        ws.send_json({"action": "jump_to", "move": 0})
        assert ws.receive_json()["current_move"] == 0

        ws.send_text("not json")
        assert "error" in ws.receive_json()


def test_ws_receives_changes_from_http(client):
    gid = _new_game(client)
    with client.websocket_connect(f"/ws/game/{gid}") as ws:
        ws.receive_json()
        client.post("/play", json={"game_id": gid, "cell": 0})
        data = ws.receive_json()
        assert data["board"][0] == "X"
        assert data["next_player"] == "O"


def test_ws_unknown_game(client):
    with client.websocket_connect("/ws/game/99") as ws:
        assert ws.receive_text() == "Invalid game_id"
