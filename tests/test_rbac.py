"""Tests for customer visibility and user-management rights."""
import itertools
from datetime import datetime

from app.crm.rbac import can_manage_users, can_write, visible_customers
from app.crm.records import Customer, Platform, Role, User

NOW = datetime(2026, 1, 1, 12, 0, 0)


def _user(uid, role=Role.ADMIN, can_view_all=False):
    return User(id=uid, username=f"user-{uid}", password_hash="x", role=role, can_view_all=can_view_all, created_at=NOW)


def _customer(cid, creator_id):
    return Customer(id=cid, creator_id=creator_id, name=f"Customer {cid}", platform=Platform.XIANYU, last_tracked_date=NOW)


ALL = [_customer("c1", "u1"), _customer("c2", "u2"), _customer("c3", "u1"), _customer("c4", "gone")]


def test_visibility_rule_holds_for_every_actor_and_customer():
    actors = [
        _user(uid, role=role, can_view_all=flag)
        for uid, role, flag in itertools.product(("u1", "u2", "u9"), list(Role), (False, True))
    ]
    for actor in actors:
        visible_ids = {c.id for c in visible_customers(actor, ALL)}
        for c in ALL:
            expected = actor.role == Role.SUPER_ADMIN or actor.can_view_all or c.creator_id == actor.id
            assert (c.id in visible_ids) == expected


def test_super_admin_ignores_view_all_flag():
    for flag in (False, True):
        actor = _user("1", role=Role.SUPER_ADMIN, can_view_all=flag)
        assert visible_customers(actor, ALL) == ALL


def test_own_records_only_preserves_order():
    assert [c.id for c in visible_customers(_user("u1"), ALL)] == ["c1", "c3"]


def test_view_all_admin_sees_everything():
    assert visible_customers(_user("u2", can_view_all=True), ALL) == ALL


def test_input_list_is_not_mutated():
    customers = list(ALL)
    visible_customers(_user("u2"), customers)
    assert customers == ALL


def test_can_write_matches_visibility():
    admin = _user("u1")
    assert can_write(admin, ALL[0]) is True
    assert can_write(admin, ALL[1]) is False
    assert can_write(_user("u1", can_view_all=True), ALL[1]) is True


def test_only_super_admin_manages_users():
    assert can_manage_users(_user("1", role=Role.SUPER_ADMIN)) is True
    assert can_manage_users(_user("u1", can_view_all=True)) is False
    assert can_manage_users(None) is False
