#!/usr/bin/env python3
import json
import os
import sys
from urllib import request, error

BASE_URL = os.environ.get("BASE_URL", "http://127.0.0.1:8000")
ADMIN_TOKEN = os.environ.get("ADMIN_TOKEN", "dev-admin-token")
PLAYER_TOKEN = os.environ.get("PLAYER_TOKEN", "dev-player-token")


def api(method, path, body=None, token=None):
    url = BASE_URL + path
    data = None
    headers = {}
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"
    if token is not None:
        headers["Authorization"] = f"Bearer {token}"
    req = request.Request(url, data=data, headers=headers, method=method)
    try:
        with request.urlopen(req, timeout=10) as resp:
            payload = resp.read().decode("utf-8")
            return resp.status, json.loads(payload) if payload else None
    except error.HTTPError as e:
        payload = e.read().decode("utf-8")
        try:
            return e.code, json.loads(payload)
        except ValueError:
            return e.code, {"detail": payload}


def must_ok(status, data, label):
    if status < 200 or status >= 300:
        raise RuntimeError(f"{label} failed: {status} {data}")
    return data


def expect(status, expected, data, label):
    if status != expected:
        raise RuntimeError(f"{label}: expected {expected}, got {status} {data}")
    return data


def main():
    status, game = api(
        "POST",
        "/api/games",
        {"name": "smoke", "usernames": ["alice", "bob", "carol"]},
        token=PLAYER_TOKEN,
    )
    game = must_ok(status, game, "create_game")
    game_id = game["id"]
    print(f"game {game_id} created with {game['player_count']} players")

    status, page = api("GET", f"/api/games/{game_id}/players?page=0&page_size=2")
    page = must_ok(status, page, "players page 0")
    print("page 0:", [p["player_id"] for p in page["items"]], "has_next:", page["has_next"])

    status, data = api(
        "PATCH", f"/api/games/{game_id}/players/3", {"balance": -50}, token=PLAYER_TOKEN
    )
    expect(status, 400, data, "negative balance as player")
    print("player path rejected:", data["detail"]["field"])

    status, data = api(
        "PATCH", f"/api/games/{game_id}/players/3", {"balance": -50}, token=ADMIN_TOKEN
    )
    data = must_ok(status, data, "negative balance as admin")
    print("admin path balance:", data["balance"])

    status, data = api("PATCH", f"/api/games/{game_id}/players/3", {"position": 1})
    expect(status, 401, data, "patch without token")
    print("OK")


if __name__ == "__main__":
    try:
        main()
    except RuntimeError as e:
        print(e, file=sys.stderr)
        sys.exit(1)
