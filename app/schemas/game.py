# app/schemas/game.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal
from datetime import datetime

PlayerStatusLiteral = Literal["active", "eliminated"]
SortByLiteral = Literal["player_id", "balance", "position", "turn_order"]


class GameCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    usernames: list[str]


class GameOut(BaseModel):
    id: int
    name: str
    status: str
    player_count: int
    created_at: datetime


class GamePlayerOut(BaseModel):
    game_id: int
    player_id: int
    username: str
    symbol: Optional[str] = None
    position: int
    balance: int
    properties: list[int]
    status: PlayerStatusLiteral
    in_jail: bool
    jail_turns: int
    consecutive_doubles: int
    turn_order: int
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GamePlayerUpdate(BaseModel):
    """
    PATCH /games/{game_id}/players/{player_id} 用。
    知らないキー（game_id, player_id を含む）は 422 で弾く。
    値の妥当性・権限はサービス側の書き込みポリシーで判定する。
    """
    position: Optional[int] = None
    balance: Optional[int] = None
    properties: Optional[list[int]] = None
    status: Optional[str] = None
    symbol: Optional[str] = None
    in_jail: Optional[bool] = None
    jail_turns: Optional[int] = None
    consecutive_doubles: Optional[int] = None
    turn_order: Optional[int] = None

    model_config = ConfigDict(extra="forbid")


class GamePlayersQuery(BaseModel):
    """名簿取得のページ指定（リクエスト単位の値オブジェクト）"""
    page: int = 0
    page_size: Optional[int] = None  # None なら settings.DEFAULT_PAGE_SIZE
    status: Optional[str] = None
    in_jail: Optional[bool] = None
    sort_by: str = "player_id"
    order: str = "asc"


class GamePlayerPage(BaseModel):
    items: list[GamePlayerOut]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
