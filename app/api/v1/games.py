# app/api/v1/games.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api.deps import get_caller, get_db_dep
from ...config import settings
from ...errors import InvalidArgument
from ...models.game import Game, GamePlayer
from ...schemas.caller import CallerIdentity
from ...schemas.game import (
    GameCreate,
    GameOut,
    GamePlayerOut,
    GamePlayerPage,
    GamePlayersQuery,
    GamePlayerUpdate,
)
from ...services import game_players
from ...services.player_store import PlayerStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games", tags=["games"])


def _game_out(game: Game) -> GameOut:
    return GameOut(
        id=game.id,
        name=game.name,
        status=game.status,
        player_count=len(game.players),
        created_at=game.created_at,
    )


# -----------------------------
# 🎮 ゲーム作成（名簿の初期化）
# -----------------------------
@router.post("", response_model=GameOut)
def create_game(
    payload: GameCreate,
    caller: CallerIdentity = Depends(get_caller),
    db: Session = Depends(get_db_dep),
):
    names = [n.strip() for n in payload.usernames]
    if not settings.MIN_PLAYERS <= len(names) <= settings.MAX_PLAYERS:
        raise InvalidArgument(
            "usernames",
            f"a game needs {settings.MIN_PLAYERS} to {settings.MAX_PLAYERS} players",
        )
    if any(not n for n in names):
        raise InvalidArgument("usernames", "usernames must not be blank")
    if len({n.lower() for n in names}) != len(names):
        raise InvalidArgument("usernames", "usernames must be unique")

    game = Game(name=payload.name, status="WAITING")
    db.add(game)
    db.flush()  # game.id を使うので flush しておく

    # player_id は 1 始まり、手番は入力順
    for i, name in enumerate(names):
        db.add(
            GamePlayer(
                game_id=game.id,
                player_id=i + 1,
                username=name,
                position=0,
                balance=settings.STARTING_BALANCE,
                properties=[],
                status="active",
                turn_order=i,
            )
        )

    db.commit()
    db.refresh(game)
    logger.info(f"Game {game.id} created by {caller.subject} with {len(names)} players")
    return _game_out(game)


# -----------------------------
# 🔍 ゲーム情報取得
# -----------------------------
@router.get("/{game_id}", response_model=GameOut)
def get_game(
    game_id: int,
    db: Session = Depends(get_db_dep),
):
    game = PlayerStore(db).get_game(game_id)
    return _game_out(game)


# -----------------------------
# 👥 プレイヤー名簿（ページング）
# -----------------------------
@router.get("/{game_id}/players", response_model=GamePlayerPage)
def get_players(
    game_id: int,
    page: int = 0,
    page_size: Optional[int] = None,
    status: Optional[str] = None,
    in_jail: Optional[bool] = None,
    sort_by: str = "player_id",
    order: str = "asc",
    db: Session = Depends(get_db_dep),
):
    """認証なしで読める。プレイヤーがいないゲームは空ページ（404 ではない）"""
    query = GamePlayersQuery(
        page=page,
        page_size=page_size,
        status=status,
        in_jail=in_jail,
        sort_by=sort_by,
        order=order,
    )
    return game_players.find_players_by_game(db, game_id, query)


@router.get("/{game_id}/players/{player_id}", response_model=GamePlayerOut)
def get_player(
    game_id: int,
    player_id: int,
    db: Session = Depends(get_db_dep),
):
    store = PlayerStore(db)
    store.get_game(game_id)
    return store.get(game_id, player_id)


# -----------------------------
# ✏️ プレイヤー更新（管理者は通常ルールを上書きできる）
# -----------------------------
@router.patch("/{game_id}/players/{player_id}", response_model=GamePlayerOut)
def update_player(
    game_id: int,
    player_id: int,
    data: GamePlayerUpdate,
    caller: CallerIdentity = Depends(get_caller),
    db: Session = Depends(get_db_dep),
):
    player = game_players.update(
        db,
        game_id,
        player_id,
        data,
        is_admin=caller.is_admin,
    )
    return GamePlayerOut.model_validate(player)
