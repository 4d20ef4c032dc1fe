"""
User management. Only the SuperAdmin may create, delete, or re-scope accounts;
every check runs before the store is touched.
"""
from __future__ import annotations

from datetime import datetime

from werkzeug.security import generate_password_hash

from app.crm.audit import record_event
from app.crm.constants import SEED_SUPER_ADMIN_ID
from app.crm.errors import DuplicateUsername, NotFound, Unauthorized, ValidationError
from app.crm.rbac import can_manage_users
from app.crm.records import Role, User, new_id
from app.crm.store import RecordStore


def _require_manager(actor: User) -> None:
    if not can_manage_users(actor):
        raise Unauthorized("Only the super admin can manage users")


def list_users(store: RecordStore, actor: User) -> list[User]:
    _require_manager(actor)
    return store.list_users()


def create_user(store: RecordStore, actor: User, username: str, password: str, *, now: datetime) -> User:
    """
    New accounts always start as a plain admin limited to their own customers.
    Broader visibility is a separate grant via set_can_view_all.
    """
    _require_manager(actor)
    if not username.strip():
        raise ValidationError("Username is required.")
    if not password:
        raise ValidationError("Password is required.")
    # Case-sensitive exact match.
    if store.find_user_by_username(username) is not None:
        raise DuplicateUsername(username)

    user = User(
        id=new_id(),
        username=username,
        password_hash=generate_password_hash(password),
        role=Role.ADMIN,
        can_view_all=False,
        created_at=now,
    )
    store.insert_user(user)
    record_event(
        store,
        actor=actor,
        action="user.create",
        now=now,
        entity_type="User",
        entity_id=user.id,
        metadata={"username": username},
    )
    return user


def delete_user(store: RecordStore, actor: User, user_id: str, *, now: datetime) -> None:
    # The seed account is permanently protected; deleting it is a silent no-op for anyone.
    if user_id == SEED_SUPER_ADMIN_ID:
        return
    _require_manager(actor)
    if store.get_user(user_id) is None:
        return
    store.delete_user(user_id)
    record_event(store, actor=actor, action="user.delete", now=now, entity_type="User", entity_id=user_id)


def set_can_view_all(store: RecordStore, actor: User, user_id: str, can_view_all: bool, *, now: datetime) -> User:
    _require_manager(actor)
    target = store.get_user(user_id)
    if target is None:
        raise NotFound(f"User {user_id} not found")
    if target.is_super_admin:
        # Super admin visibility is implicit and cannot be narrowed.
        return target
    before = target.can_view_all
    updated = store.update_user(user_id, can_view_all=bool(can_view_all))
    record_event(
        store,
        actor=actor,
        action="user.visibility",
        now=now,
        entity_type="User",
        entity_id=user_id,
        metadata={"before": before, "after": updated.can_view_all},
    )
    return updated


def ensure_seed_super_admin(store: RecordStore, *, username: str, password: str, now: datetime) -> User:
    """
    Idempotent. Does NOT overwrite an existing seed account's password.
    """
    existing = store.get_user(SEED_SUPER_ADMIN_ID)
    if existing is not None:
        return existing
    user = User(
        id=SEED_SUPER_ADMIN_ID,
        username=username,
        password_hash=generate_password_hash(password),
        role=Role.SUPER_ADMIN,
        can_view_all=True,
        created_at=now,
    )
    store.insert_user(user)
    return user
