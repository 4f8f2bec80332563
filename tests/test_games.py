# tests/test_games.py

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import ADMIN_HEADERS, PLAYER_HEADERS


def _create_game(client: TestClient, usernames, headers=PLAYER_HEADERS, name="Table 1"):
    return client.post(
        "/api/games",
        json={"name": name, "usernames": usernames},
        headers=headers,
    )


def test_create_game_initializes_roster(client: TestClient, db: Session):
    """ゲームを作成すると、入力順に player_id 1..n の名簿ができること"""
    res = _create_game(client, ["alice", "bob", "carol"])
    assert res.status_code == 200
    game = res.json()
    assert game["player_count"] == 3
    assert game["status"] == "WAITING"

    res = client.get(f"/api/games/{game['id']}/players")
    assert res.status_code == 200
    items = res.json()["items"]

    assert [p["player_id"] for p in items] == [1, 2, 3]
    assert [p["username"] for p in items] == ["alice", "bob", "carol"]
    assert [p["turn_order"] for p in items] == [0, 1, 2]
    assert all(p["balance"] == 1500 for p in items)
    assert all(p["position"] == 0 and p["status"] == "active" for p in items)


def test_get_game(client: TestClient, db: Session):
    created = _create_game(client, ["alice", "bob"], headers=ADMIN_HEADERS).json()

    res = client.get(f"/api/games/{created['id']}")
    assert res.status_code == 200
    body = res.json()
    assert body["id"] == created["id"]
    assert body["name"] == "Table 1"
    assert body["player_count"] == 2


def test_get_nonexistent_game_returns_404(client: TestClient, db: Session):
    res = client.get("/api/games/9999")
    assert res.status_code == 404
    assert res.json()["detail"]["error"] == "not_found"


def test_create_game_requires_token(client: TestClient, db: Session):
    res = client.post("/api/games", json={"name": "x", "usernames": ["a", "b"]})
    assert res.status_code == 401

    res = _create_game(client, ["a", "b"], headers={"Authorization": "Bearer nope"})
    assert res.status_code == 401
    assert res.json()["detail"]["error"] == "unauthenticated"


def test_create_game_rejects_bad_rosters(client: TestClient, db: Session):
    """人数不足・重複名・空文字は 400（usernames を名指し）"""
    for usernames in (["solo"], ["alice", "Alice"], ["alice", "  "], [f"p{i}" for i in range(9)]):
        res = _create_game(client, usernames)
        assert res.status_code == 400, usernames
        detail = res.json()["detail"]
        assert detail["error"] == "invalid_argument"
        assert detail["parameter"] == "usernames"
