# app/models/game.py
from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    ForeignKey,
    DateTime,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime

from ..db import Base


PLAYER_STATUSES = ("active", "eliminated")

# 駒（プレイヤーが選ぶトークン）
PLAYER_SYMBOLS = (
    "hat",
    "car",
    "dog",
    "thimble",
    "boot",
    "ship",
    "iron",
    "wheelbarrow",
)


class Game(Base):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    status = Column(String, nullable=False, default="WAITING")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    players = relationship(
        "GamePlayer",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="GamePlayer.player_id",
    )


class GamePlayer(Base):
    __tablename__ = "game_players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False, index=True)
    player_id = Column(Integer, nullable=False)  # ゲーム内で一意

    username = Column(String, nullable=False)
    symbol = Column(String, nullable=True)

    position = Column(Integer, nullable=False, default=0)
    balance = Column(Integer, nullable=False, default=0)
    properties = Column(JSON, nullable=False, default=list)  # 所有マスのID
    status = Column(String, nullable=False, default="active")  # 'active' / 'eliminated'

    # ここから下はゲームエンジンが計算する値（通常プレイヤーは書き換え不可）
    in_jail = Column(Boolean, nullable=False, default=False)
    jail_turns = Column(Integer, nullable=False, default=0)
    consecutive_doubles = Column(Integer, nullable=False, default=0)
    turn_order = Column(Integer, nullable=False, default=0)

    # 楽観ロック用。UPDATE は読んだ version と一致する行にしか当たらない
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    game = relationship("Game", back_populates="players")

    __table_args__ = (
        UniqueConstraint("game_id", "player_id", name="uq_game_player"),
    )

    __mapper_args__ = {"version_id_col": version}
