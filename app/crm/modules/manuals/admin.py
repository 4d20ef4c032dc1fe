from __future__ import annotations

from flask import Blueprint, jsonify

from app.crm.context import record_store
from app.crm.modules.manuals.service import delete_manual, list_manuals, save_manual
from app.crm.rbac import require_login
from app.crm.utils import parse_platform, request_payload

bp = Blueprint("manuals", __name__)


@bp.get("/manuals/<platform>")
@require_login
def manuals_list(platform: str):
    sections = list_manuals(record_store(), parse_platform(platform))
    return jsonify({"sections": [m.to_dict() for m in sections]})


@bp.post("/manuals/<platform>")
@require_login
def manuals_save(platform: str):
    data = request_payload()
    section = save_manual(
        record_store(),
        parse_platform(platform),
        title=str(data.get("title") or ""),
        content=str(data.get("content") or ""),
        type=data.get("type"),
        section_id=(str(data.get("id") or "").strip() or None),
    )
    return jsonify({"section": section.to_dict()})


@bp.delete("/manuals/<platform>/<section_id>")
@require_login
def manuals_delete(platform: str, section_id: str):
    delete_manual(record_store(), parse_platform(platform), section_id)
    return "", 204
