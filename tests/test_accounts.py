"""Tests for account management."""
from datetime import datetime

import pytest
from werkzeug.security import check_password_hash

from app.crm.auth import authenticate
from app.crm.constants import SEED_SUPER_ADMIN_ID
from app.crm.errors import DuplicateUsername, InvalidCredentials, NotFound, Unauthorized, ValidationError
from app.crm.modules.accounts.service import (
    create_user,
    delete_user,
    ensure_seed_super_admin,
    list_users,
    set_can_view_all,
)
from app.crm.records import Role
from app.crm.store import MemoryRecordStore

NOW = datetime(2026, 1, 1, 12, 0, 0)


@pytest.fixture()
def store():
    return MemoryRecordStore()


@pytest.fixture()
def root(store):
    return ensure_seed_super_admin(store, username="admin", password="admin123", now=NOW)


def test_seed_is_idempotent_and_keeps_password(store, root):
    again = ensure_seed_super_admin(store, username="admin", password="other", now=NOW)
    assert again == root
    assert len(store.list_users()) == 1
    assert check_password_hash(store.get_user(SEED_SUPER_ADMIN_ID).password_hash, "admin123")


def test_new_user_is_plain_admin_without_view_all(store, root):
    user = create_user(store, root, "alice", "pw", now=NOW)
    assert user.role == Role.ADMIN
    assert user.can_view_all is False
    assert user.password_hash != "pw"
    assert store.get_user(user.id) == user


def test_duplicate_username_rejected(store, root):
    create_user(store, root, "alice", "pw", now=NOW)
    with pytest.raises(DuplicateUsername):
        create_user(store, root, "alice", "different", now=NOW)
    with pytest.raises(DuplicateUsername):
        create_user(store, root, "admin", "pw", now=NOW)


def test_duplicate_check_is_case_sensitive(store, root):
    create_user(store, root, "alice", "pw", now=NOW)
    other = create_user(store, root, "Alice", "pw", now=NOW)
    assert other.username == "Alice"
    assert len(store.list_users()) == 3


def test_blank_username_rejected(store, root):
    with pytest.raises(ValidationError):
        create_user(store, root, "  ", "pw", now=NOW)


def test_non_manager_cannot_touch_users(store, root):
    alice = create_user(store, root, "alice", "pw", now=NOW)
    before = len(store.list_users())
    with pytest.raises(Unauthorized):
        create_user(store, alice, "bob", "pw", now=NOW)
    with pytest.raises(Unauthorized):
        delete_user(store, alice, root.id + "x", now=NOW)
    with pytest.raises(Unauthorized):
        set_can_view_all(store, alice, alice.id, True, now=NOW)
    with pytest.raises(Unauthorized):
        list_users(store, alice)
    assert len(store.list_users()) == before


def test_deleting_seed_super_admin_is_always_a_noop(store, root):
    alice = create_user(store, root, "alice", "pw", now=NOW)
    delete_user(store, root, SEED_SUPER_ADMIN_ID, now=NOW)
    delete_user(store, alice, SEED_SUPER_ADMIN_ID, now=NOW)
    assert store.get_user(SEED_SUPER_ADMIN_ID) is not None


def test_delete_user_and_missing_id(store, root):
    alice = create_user(store, root, "alice", "pw", now=NOW)
    delete_user(store, root, alice.id, now=NOW)
    assert store.get_user(alice.id) is None
    delete_user(store, root, alice.id, now=NOW)


def test_grant_view_all(store, root):
    alice = create_user(store, root, "alice", "pw", now=NOW)
    updated = set_can_view_all(store, root, alice.id, True, now=NOW)
    assert updated.can_view_all is True
    assert store.get_user(alice.id).can_view_all is True
    with pytest.raises(NotFound):
        set_can_view_all(store, root, "missing", True, now=NOW)


def test_authenticate_fails_generically(store, root):
    assert authenticate(store, "admin", "admin123").id == root.id
    with pytest.raises(InvalidCredentials) as unknown:
        authenticate(store, "nobody", "admin123")
    with pytest.raises(InvalidCredentials) as wrong:
        authenticate(store, "admin", "nope")
    assert unknown.value.public_message == wrong.value.public_message
    assert str(unknown.value) == str(wrong.value)


def test_user_actions_are_audited(store, root):
    alice = create_user(store, root, "alice", "pw", now=NOW)
    set_can_view_all(store, root, alice.id, True, now=NOW)
    actions = [e.action for e in store.list_audit_events()]
    assert actions == ["user.visibility", "user.create"]
