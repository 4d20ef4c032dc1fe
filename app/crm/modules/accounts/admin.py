from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.crm.context import clock, current_user, record_store
from app.crm.modules.accounts.service import create_user, delete_user, list_users, set_can_view_all
from app.crm.rbac import require_login, require_super_admin
from app.crm.utils import parse_bool, request_payload

bp = Blueprint("accounts", __name__)


# ============================================================================
# ACCOUNT MANAGEMENT (Super admin only)
# ============================================================================

@bp.get("/accounts")
@require_super_admin
def accounts_list():
    users = list_users(record_store(), current_user())
    return jsonify({"users": [u.to_dict() for u in users]})


@bp.post("/accounts")
@require_super_admin
def accounts_create():
    data = request_payload()
    user = create_user(
        record_store(),
        current_user(),
        str(data.get("username") or "").strip(),
        str(data.get("password") or ""),
        now=clock().now(),
    )
    return jsonify({"user": user.to_dict()}), 201


@bp.delete("/accounts/<user_id>")
@require_login
def accounts_delete(user_id: str):
    delete_user(record_store(), current_user(), user_id, now=clock().now())
    return "", 204


@bp.post("/accounts/<user_id>/visibility")
@require_super_admin
def accounts_visibility(user_id: str):
    data = request_payload()
    user = set_can_view_all(
        record_store(),
        current_user(),
        user_id,
        parse_bool(data.get("can_view_all")),
        now=clock().now(),
    )
    return jsonify({"user": user.to_dict()})


@bp.get("/audit")
@require_super_admin
def audit_list():
    try:
        limit = int(request.args.get("limit") or "100")
    except ValueError:
        limit = 100
    limit = max(1, min(limit, 500))
    events = record_store().list_audit_events(limit=limit)
    return jsonify({"events": [e.to_dict() for e in events]})
