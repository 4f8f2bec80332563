# app/services/write_policy.py
"""
プレイヤー更新の書き込みポリシー。

FIELD_PERMISSIONS が「どのフィールドを誰が書けるか」と検証ルールの表。
フィールド追加はこの表に1行足すだけで済むようにしている。

- structural : 型・値域。通常/管理者どちらの経路でも必ずチェック
- domain     : ゲームルール上の制約。通常プレイヤーの経路だけでチェック

リクエストごとに select_policy(is_admin) で NormalWritePolicy か
AdminWritePolicy を1つ選び、パッチ全体に同じように適用する。
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..errors import InvalidOperation
from ..models.game import GamePlayer, PLAYER_STATUSES, PLAYER_SYMBOLS

MAX_JAIL_TURNS = 3
MAX_CONSECUTIVE_DOUBLES = 3


@dataclass(frozen=True)
class WriteContext:
    board_size: int
    max_balance: int
    # 同じゲームの他プレイヤーが持っているマス（properties 更新時だけ埋める）
    owned_elsewhere: frozenset[int] = field(default_factory=frozenset)


# (新しい値, 現在のレコード, コンテキスト) -> エラーメッセージ or None
Validator = Callable[[Any, GamePlayer, WriteContext], Optional[str]]


@dataclass(frozen=True)
class FieldRule:
    normal: bool
    admin: bool
    structural: Validator
    domain: Optional[Validator] = None


def _is_int(value: Any) -> bool:
    # bool は int のサブクラスなので除外
    return isinstance(value, int) and not isinstance(value, bool)


def _int_between(lo: int, hi: int) -> Validator:
    def check(value, player, ctx):
        if not _is_int(value):
            return "must be an integer"
        if not lo <= value <= hi:
            return f"must be between {lo} and {hi}"
        return None
    return check


def _position(value, player, ctx):
    if not _is_int(value):
        return "must be an integer"
    if not 0 <= value < ctx.board_size:
        return f"must be between 0 and {ctx.board_size - 1}"
    return None


def _balance(value, player, ctx):
    if not _is_int(value):
        return "must be an integer"
    if abs(value) > ctx.max_balance:
        return f"magnitude must not exceed {ctx.max_balance}"
    return None


def _non_negative_balance(value, player, ctx):
    if value < 0:
        return "balance cannot go negative"
    return None


def _properties(value, player, ctx):
    if not isinstance(value, list) or not all(_is_int(p) for p in value):
        return "must be a list of integers"
    if len(set(value)) != len(value):
        return "must not contain duplicates"
    for p in value:
        if not 0 <= p < ctx.board_size:
            return f"property {p} is not a board square"
    return None


def _properties_unowned(value, player, ctx):
    taken = sorted(set(value) & ctx.owned_elsewhere)
    if taken:
        return f"properties already owned by another player: {taken}"
    return None


def _status(value, player, ctx):
    if value not in PLAYER_STATUSES:
        return f"must be one of {list(PLAYER_STATUSES)}"
    return None


def _no_revival(value, player, ctx):
    if player.status == "eliminated" and value == "active":
        return "eliminated players cannot be reactivated"
    return None


def _symbol(value, player, ctx):
    if value not in PLAYER_SYMBOLS:
        return f"must be one of {list(PLAYER_SYMBOLS)}"
    return None


def _bool(value, player, ctx):
    if not isinstance(value, bool):
        return "must be a boolean"
    return None


def _turn_order(value, player, ctx):
    if not _is_int(value) or value < 0:
        return "must be a non-negative integer"
    return None


FIELD_PERMISSIONS: dict[str, FieldRule] = {
    "position": FieldRule(normal=True, admin=True, structural=_position),
    "balance": FieldRule(normal=True, admin=True, structural=_balance, domain=_non_negative_balance),
    "properties": FieldRule(normal=True, admin=True, structural=_properties, domain=_properties_unowned),
    "status": FieldRule(normal=True, admin=True, structural=_status, domain=_no_revival),
    "symbol": FieldRule(normal=True, admin=True, structural=_symbol),
    # ゲームエンジンが計算する値。管理者のみ
    "in_jail": FieldRule(normal=False, admin=True, structural=_bool),
    "jail_turns": FieldRule(normal=False, admin=True, structural=_int_between(0, MAX_JAIL_TURNS)),
    "consecutive_doubles": FieldRule(
        normal=False, admin=True, structural=_int_between(0, MAX_CONSECUTIVE_DOUBLES)
    ),
    "turn_order": FieldRule(normal=False, admin=True, structural=_turn_order),
}


class WritePolicy(ABC):
    name = "base"
    enforce_domain = False

    @abstractmethod
    def allows(self, rule: FieldRule) -> bool:
        ...

    def check_record(self, player: GamePlayer) -> None:
        """パッチの中身に関係なく、レコードの状態だけで拒否する場合"""

    def check(self, player: GamePlayer, changes: dict[str, Any], ctx: WriteContext) -> None:
        """
        パッチ全体を検証する。1つでも違反があれば InvalidOperation。
        ここでは何も書き換えない（検証が全部通ってからマージする）。
        """
        self.check_record(player)

        for name, value in changes.items():
            rule = FIELD_PERMISSIONS.get(name)
            if rule is None:
                raise InvalidOperation(name, "unknown field")
            if not self.allows(rule):
                raise InvalidOperation(name, f"{name} cannot be written by {self.name} callers")
            if value is None:
                raise InvalidOperation(name, "must not be null")

            message = rule.structural(value, player, ctx)
            if message is None and self.enforce_domain and rule.domain is not None:
                message = rule.domain(value, player, ctx)
            if message is not None:
                raise InvalidOperation(name, message)

    def first_violation(
        self, player: GamePlayer, changes: dict[str, Any], ctx: WriteContext
    ) -> Optional[InvalidOperation]:
        try:
            self.check(player, changes, ctx)
        except InvalidOperation as exc:
            return exc
        return None


class NormalWritePolicy(WritePolicy):
    """プレイヤー自身の操作として許される更新だけを通す"""

    name = "normal"
    enforce_domain = True

    def allows(self, rule: FieldRule) -> bool:
        return rule.normal

    def check_record(self, player: GamePlayer) -> None:
        if player.status == "eliminated":
            raise InvalidOperation("status", "eliminated players cannot be updated")


class AdminWritePolicy(WritePolicy):
    """管理者による上書き。型・値域だけは通常どおり守らせる"""

    name = "admin"

    def allows(self, rule: FieldRule) -> bool:
        return rule.admin


NORMAL_POLICY = NormalWritePolicy()
ADMIN_POLICY = AdminWritePolicy()


def select_policy(is_admin: bool) -> WritePolicy:
    # True 以外（None や文字列を含む）は通常扱い
    return ADMIN_POLICY if is_admin is True else NORMAL_POLICY
