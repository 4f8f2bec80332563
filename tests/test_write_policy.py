# tests/test_write_policy.py
"""書き込みポリシー単体（DB なし）"""

import pytest

from app.errors import InvalidOperation
from app.models.game import GamePlayer
from app.services.write_policy import (
    ADMIN_POLICY,
    FIELD_PERMISSIONS,
    NORMAL_POLICY,
    AdminWritePolicy,
    NormalWritePolicy,
    WriteContext,
    WritePolicy,
    select_policy,
)

CTX = WriteContext(board_size=40, max_balance=1_000_000_000)


def _player(**overrides) -> GamePlayer:
    fields = dict(
        game_id=1,
        player_id=1,
        username="p1",
        position=0,
        balance=1500,
        properties=[],
        status="active",
        in_jail=False,
        jail_turns=0,
        consecutive_doubles=0,
        turn_order=0,
    )
    fields.update(overrides)
    return GamePlayer(**fields)


def test_select_policy():
    assert isinstance(select_policy(True), AdminWritePolicy)
    assert isinstance(select_policy(False), NormalWritePolicy)
    assert select_policy(None) is NORMAL_POLICY
    assert select_policy(1) is NORMAL_POLICY


def test_engine_fields_are_admin_only():
    engine_fields = {name for name, rule in FIELD_PERMISSIONS.items() if not rule.normal}
    assert engine_fields == {"in_jail", "jail_turns", "consecutive_doubles", "turn_order"}
    assert all(rule.admin for rule in FIELD_PERMISSIONS.values())


@pytest.mark.parametrize("field, value", [
    ("in_jail", True),
    ("jail_turns", 1),
    ("consecutive_doubles", 2),
    ("turn_order", 3),
])
def test_normal_policy_rejects_engine_fields(field, value):
    with pytest.raises(InvalidOperation) as exc_info:
        NORMAL_POLICY.check(_player(), {field: value}, CTX)
    assert exc_info.value.field == field

    ADMIN_POLICY.check(_player(), {field: value}, CTX)


def test_domain_rules_only_on_normal_path():
    player = _player()
    ctx = WriteContext(board_size=40, max_balance=10_000, owned_elsewhere=frozenset({5}))

    assert NORMAL_POLICY.first_violation(player, {"balance": -1}, ctx).field == "balance"
    assert NORMAL_POLICY.first_violation(player, {"properties": [5]}, ctx).field == "properties"
    assert ADMIN_POLICY.first_violation(player, {"balance": -1}, ctx) is None
    assert ADMIN_POLICY.first_violation(player, {"properties": [5]}, ctx) is None

    # 値域は管理者でも守る
    assert ADMIN_POLICY.first_violation(player, {"balance": -10_001}, ctx).field == "balance"


def test_jail_counters_are_bounded():
    assert ADMIN_POLICY.first_violation(_player(), {"jail_turns": 4}, CTX).field == "jail_turns"
    assert ADMIN_POLICY.first_violation(_player(), {"consecutive_doubles": -1}, CTX).field == "consecutive_doubles"
    assert ADMIN_POLICY.first_violation(_player(), {"jail_turns": 3}, CTX) is None


def test_check_does_not_touch_the_record():
    player = _player()

    with pytest.raises(InvalidOperation):
        NORMAL_POLICY.check(player, {"position": 4, "balance": -3}, CTX)

    assert player.position == 0
    assert player.balance == 1500


def test_valid_normal_patch_passes():
    NORMAL_POLICY.check(
        _player(),
        {"position": 39, "balance": 0, "properties": [1, 3], "symbol": "ship", "status": "eliminated"},
        CTX,
    )


def test_base_policy_cannot_be_instantiated():
    with pytest.raises(TypeError):
        WritePolicy()
