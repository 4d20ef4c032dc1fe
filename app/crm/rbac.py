from __future__ import annotations

from collections.abc import Callable, Iterable
from functools import wraps
from typing import Any

from flask import g, jsonify

from app.crm.records import Customer, User


def sees_everything(actor: User) -> bool:
    # SuperAdmin visibility is implicit; the stored flag is ignored for that role.
    return actor.is_super_admin or actor.can_view_all


def visible_customers(actor: User, customers: Iterable[Customer]) -> list[Customer]:
    """
    The only access rule for reads. Platform/search refinements run downstream
    on this result, never before it.
    """
    if sees_everything(actor):
        return list(customers)
    return [c for c in customers if c.creator_id == actor.id]


def can_write(actor: User, customer: Customer) -> bool:
    # Anyone who can see a record may overwrite or delete it (last write wins).
    return bool(visible_customers(actor, [customer]))


def can_manage_users(actor: User | None) -> bool:
    return bool(actor and actor.is_super_admin)


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        if not user:
            return jsonify({"error": "Login required."}), 401
        return fn(*args, **kwargs)

    return wrapped


def require_super_admin(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        if not user:
            return jsonify({"error": "Login required."}), 401
        if not can_manage_users(user):
            return jsonify({"error": "Not allowed."}), 403
        return fn(*args, **kwargs)

    return wrapped
