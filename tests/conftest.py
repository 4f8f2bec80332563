# tests/conftest.py
import os

# アプリ本体の DB を汚さないよう、import 前にテスト用 DB を指定しておく
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_tycoon.db")

import pytest
from sqlalchemy.orm import Session
from fastapi.testclient import TestClient

from app.db import Base, engine, SessionLocal
from app.main import app
from app.models.game import Game, GamePlayer


@pytest.fixture(scope="function")
def db() -> Session:
    """
    テストごとにクリーンな DB を用意するフィクスチャ。
    アプリ本体と同じ engine を使う。
    """
    # 既存テーブルを全部削除してから、再作成
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client() -> TestClient:
    """
    通常の FastAPI app をそのまま使う TestClient。
    DI の上書きは行わない。
    """
    with TestClient(app) as c:
        yield c


ADMIN_HEADERS = {"Authorization": "Bearer dev-admin-token"}
PLAYER_HEADERS = {"Authorization": "Bearer dev-player-token"}


def create_game_with_players(db: Session, n_players: int = 3, name: str = "Test Game", **player_fields):
    """
    Game 1件 + GamePlayer n 人（player_id は 1..n）を直接作るヘルパー。
    player_fields は全員に共通で上書きする値。
    """
    game = Game(name=name, status="WAITING")
    db.add(game)
    db.commit()
    db.refresh(game)

    for i in range(n_players):
        fields = dict(
            game_id=game.id,
            player_id=i + 1,
            username=f"player{i + 1}",
            position=0,
            balance=1500,
            properties=[],
            status="active",
            turn_order=i,
        )
        fields.update(player_fields)
        db.add(GamePlayer(**fields))
    db.commit()
    return game
