from __future__ import annotations

import uuid

from flask import Blueprint, current_app, g, jsonify, request, session
from werkzeug.security import check_password_hash, generate_password_hash

from app.crm.audit import record_event
from app.crm.context import clock, record_store
from app.crm.errors import InvalidCredentials
from app.crm.rbac import require_login
from app.crm.records import User
from app.crm.security import ensure_csrf_token
from app.crm.store import RecordStore

bp = Blueprint("auth", __name__)

# Compared against when the username is unknown so both failure paths cost the same.
_DUMMY_HASH = generate_password_hash("not-a-real-password")


def authenticate(store: RecordStore, username: str, password: str) -> User:
    """
    Single synchronous challenge. Unknown user and wrong password fail the same way.
    """
    user = store.find_user_by_username(username)
    if user is None:
        check_password_hash(_DUMMY_HASH, password)
        raise InvalidCredentials()
    if not check_password_hash(user.password_hash, password):
        raise InvalidCredentials()
    return user


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/health", "/healthz")):
        g.current_user = None
        return

    user_id = session.get("user_id")
    if not user_id:
        g.current_user = None
        return

    try:
        user = record_store().get_user(str(user_id))
    except Exception as e:
        current_app.logger.error("load_current_user store error (clearing session): %s", e)
        user = None
    if not user:
        session.pop("user_id", None)
        g.current_user = None
        return
    g.current_user = user


def _credentials() -> tuple[str, str]:
    data = request.get_json(silent=True) if request.is_json else None
    if isinstance(data, dict):
        return str(data.get("username") or "").strip(), str(data.get("password") or "")
    return (request.form.get("username") or "").strip(), request.form.get("password") or ""


@bp.post("/login")
def login_post():
    username, password = _credentials()
    store = record_store()
    try:
        user = authenticate(store, username, password)
    except InvalidCredentials:
        record_event(
            store,
            actor=None,
            action="auth.login_failed",
            now=clock().now(),
            entity_type="User",
            entity_id=username or None,
        )
        current_app.logger.info("Login failed (request_id=%s)", getattr(g, "request_id", None))
        raise

    session.clear()
    session["user_id"] = user.id
    record_event(store, actor=user, action="auth.login", now=clock().now(), entity_type="User", entity_id=user.id)
    return jsonify({"user": user.to_dict(), "csrf_token": ensure_csrf_token()})


@bp.post("/logout")
def logout():
    user = getattr(g, "current_user", None)
    if user:
        record_event(record_store(), actor=user, action="auth.logout", now=clock().now(), entity_type="User", entity_id=user.id)
    session.clear()
    return jsonify({"ok": True})


@bp.get("/me")
@require_login
def me():
    return jsonify({"user": g.current_user.to_dict(), "csrf_token": ensure_csrf_token()})
