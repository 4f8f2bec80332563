# app/services/game_players.py
"""
ゲーム内プレイヤー名簿のサービス。

- find_players_by_game : 名簿のページ取得（読み取りのみ）
- update               : 権限に応じたポリシーでパッチを検証し、1回の commit で反映
"""
import logging
from typing import Any

from pydantic import BaseModel
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..config import settings
from ..errors import InvalidArgument, WriteConflict
from ..models.game import GamePlayer, PLAYER_STATUSES
from ..schemas.game import GamePlayerPage, GamePlayersQuery
from .player_store import MAX_SQL_INT, PlayerStore, SORT_COLUMNS
from .write_policy import NORMAL_POLICY, WriteContext, select_policy

logger = logging.getLogger(__name__)


def _require_positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidArgument(name, f"{name} must be a positive integer")


def find_players_by_game(
    db: Session,
    game_id: int,
    query: GamePlayersQuery | None = None,
) -> GamePlayerPage:
    query = query or GamePlayersQuery()
    _require_positive("game_id", game_id)

    page_size = query.page_size if query.page_size is not None else settings.DEFAULT_PAGE_SIZE
    if not 1 <= page_size <= settings.MAX_PAGE_SIZE:
        raise InvalidArgument(
            "page_size", f"page_size must be between 1 and {settings.MAX_PAGE_SIZE}"
        )
    if query.page < 0:
        raise InvalidArgument("page", "page must be 0 or greater")
    if query.page * page_size > MAX_SQL_INT:
        raise InvalidArgument("page", "page is too large")
    if query.sort_by not in SORT_COLUMNS:
        raise InvalidArgument("sort_by", f"sort_by must be one of {sorted(SORT_COLUMNS)}")
    if query.order not in ("asc", "desc"):
        raise InvalidArgument("order", "order must be 'asc' or 'desc'")
    if query.status is not None and query.status not in PLAYER_STATUSES:
        raise InvalidArgument("status", f"status must be one of {list(PLAYER_STATUSES)}")

    store = PlayerStore(db)
    store.get_game(game_id)  # 無ければ NotFound

    return store.list(
        game_id,
        page=query.page,
        page_size=page_size,
        status=query.status,
        in_jail=query.in_jail,
        sort_by=query.sort_by,
        order=query.order,
    )


def _as_changes(patch: BaseModel | dict[str, Any]) -> dict[str, Any]:
    if isinstance(patch, BaseModel):
        # 送られてきたキーだけ（省略されたフィールドは触らない）
        return patch.model_dump(exclude_unset=True)
    return dict(patch)


def _merge(player: GamePlayer, changes: dict[str, Any]) -> None:
    for name, value in changes.items():
        if isinstance(value, list):
            value = list(value)
        setattr(player, name, value)


def _context(store: PlayerStore, player: GamePlayer, changes: dict[str, Any]) -> WriteContext:
    # 他プレイヤーの所有マスは行ロックなしで読むだけ。別プレイヤーへの同時更新が
    # 同じマスを取り合った場合、両方通ることがある（原子性は1プレイヤー単位）
    owned = frozenset()
    if "properties" in changes:
        owned = frozenset(store.owned_elsewhere(player.game_id, player.player_id))
    return WriteContext(
        board_size=settings.BOARD_SIZE,
        max_balance=settings.MAX_BALANCE,
        owned_elsewhere=owned,
    )


def update(
    db: Session,
    game_id: int,
    player_id: int,
    patch: BaseModel | dict[str, Any],
    is_admin: bool,
) -> GamePlayer:
    """
    1人分のパッチを反映して更新後のレコードを返す。

    - 対象が無ければ権限に関係なく NotFound
    - 検証はすべて commit 前に終わらせる（途中で失敗したら何も書かない）
    - 同じプレイヤーへの同時更新で version が食い違ったら、読み直して
      検証からやり直す（settings.UPDATE_MAX_RETRIES 回まで）
    """
    _require_positive("game_id", game_id)
    _require_positive("player_id", player_id)

    changes = _as_changes(patch)
    policy = select_policy(is_admin)
    store = PlayerStore(db)
    store.get_game(game_id)

    for attempt in range(1, settings.UPDATE_MAX_RETRIES + 1):
        player = store.get(game_id, player_id, for_update=True)
        ctx = _context(store, player, changes)

        violation = policy.first_violation(player, changes, ctx)
        if violation is not None:
            db.rollback()
            logger.info(
                f"Rejected {policy.name} update on game={game_id} player={player_id}: "
                f"{violation.field} ({violation.detail['message']})"
            )
            raise violation

        if policy is not NORMAL_POLICY:
            rejected = NORMAL_POLICY.first_violation(player, changes, ctx)
            if rejected is not None:
                logger.warning(
                    f"Admin override on game={game_id} player={player_id}: "
                    f"{rejected.field} ({rejected.detail['message']})"
                )

        if not changes:
            db.rollback()
            return player

        _merge(player, changes)
        try:
            return store.save(player)
        except StaleDataError:
            logger.warning(
                f"Concurrent update on game={game_id} player={player_id}, "
                f"retrying ({attempt}/{settings.UPDATE_MAX_RETRIES})"
            )

    logger.error(f"Giving up update on game={game_id} player={player_id}")
    raise WriteConflict(
        f"Player {player_id} in game {game_id} is being updated concurrently; try again"
    )
