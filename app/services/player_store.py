# app/services/player_store.py
"""
プレイヤー記録ストア。

game_players テーブルへのアクセスはここを通す。
- get   : (game_id, player_id) で1件。無ければ NotFound
- list  : ゲーム単位のページ取得（読み取り専用）
- save  : 1レコードを commit。楽観ロック（version）に負けたら StaleDataError
"""
import logging
import math

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..errors import NotFound
from ..models.game import Game, GamePlayer
from ..schemas.game import GamePlayerOut, GamePlayerPage

logger = logging.getLogger(__name__)

# SQL の INTEGER（64bit 符号付き）の上限。これを超える id は存在し得ない
MAX_SQL_INT = 2**63 - 1

SORT_COLUMNS = {
    "player_id": GamePlayer.player_id,
    "balance": GamePlayer.balance,
    "position": GamePlayer.position,
    "turn_order": GamePlayer.turn_order,
}


class PlayerStore:
    def __init__(self, db: Session):
        self.db = db

    def get_game(self, game_id: int) -> Game:
        if game_id > MAX_SQL_INT:
            raise NotFound(f"Game {game_id} not found")
        game = self.db.get(Game, game_id)
        if game is None:
            raise NotFound(f"Game {game_id} not found")
        return game

    def get(self, game_id: int, player_id: int, *, for_update: bool = False) -> GamePlayer:
        if game_id > MAX_SQL_INT or player_id > MAX_SQL_INT:
            raise NotFound(f"Player {player_id} not found in game {game_id}")

        stmt = select(GamePlayer).where(
            GamePlayer.game_id == game_id,
            GamePlayer.player_id == player_id,
        )
        if for_update:
            # SQLite では FOR UPDATE は出力されない（version での比較書き込みが効く）
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        player = self.db.execute(stmt).scalars().one_or_none()
        if player is None:
            raise NotFound(f"Player {player_id} not found in game {game_id}")
        return player

    def list(
        self,
        game_id: int,
        *,
        page: int,
        page_size: int,
        status: str | None = None,
        in_jail: bool | None = None,
        sort_by: str = "player_id",
        order: str = "asc",
    ) -> GamePlayerPage:
        conditions = [GamePlayer.game_id == game_id]
        if status is not None:
            conditions.append(GamePlayer.status == status)
        if in_jail is not None:
            conditions.append(GamePlayer.in_jail == in_jail)

        total = self.db.execute(
            select(func.count(GamePlayer.id)).where(*conditions)
        ).scalar_one()

        column = SORT_COLUMNS[sort_by]
        ordering = [column.desc() if order == "desc" else column.asc()]
        if sort_by != "player_id":
            # 同値のときは player_id 昇順で安定させる
            ordering.append(GamePlayer.player_id.asc())

        rows = (
            self.db.execute(
                select(GamePlayer)
                .where(*conditions)
                .order_by(*ordering)
                .offset(page * page_size)
                .limit(page_size)
            )
            .scalars()
            .all()
        )

        total_pages = math.ceil(total / page_size) if total else 0
        return GamePlayerPage(
            items=[GamePlayerOut.model_validate(p) for p in rows],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_next=page + 1 < total_pages,
        )

    def owned_elsewhere(self, game_id: int, player_id: int) -> set[int]:
        """同じゲームの他プレイヤーが所有しているマス"""
        rows = self.db.execute(
            select(GamePlayer.properties).where(
                GamePlayer.game_id == game_id,
                GamePlayer.player_id != player_id,
            )
        ).scalars()
        owned: set[int] = set()
        for props in rows:
            owned.update(props or [])
        return owned

    def save(self, player: GamePlayer) -> GamePlayer:
        """唯一の確定ポイント。version が食い違えば rollback して StaleDataError を投げ直す"""
        game_id, player_id = player.game_id, player.player_id
        self.db.add(player)
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logger.warning(
                f"Stale write on game={game_id} player={player_id}"
            )
            raise
        self.db.refresh(player)
        return player
