import json
from datetime import datetime
from typing import Any

from flask import g, has_request_context

from app.crm.records import AuditEvent, User
from app.crm.store import RecordStore


def record_event(
    store: RecordStore,
    *,
    actor: User | None,
    action: str,
    now: datetime,
    entity_type: str | None = None,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> AuditEvent:
    """
    Append-only audit event helper.
    """
    rid = request_id or (getattr(g, "request_id", None) if has_request_context() else None)
    ev = AuditEvent(
        action=action,
        created_at=now,
        request_id=rid,
        actor_user_id=actor.id if actor else None,
        actor_username=actor.username if actor else None,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=json.dumps(metadata, sort_keys=True) if metadata else None,
    )
    store.append_audit_event(ev)
    return ev
