from __future__ import annotations

from flask import current_app

from app.crm.clock import Clock
from app.crm.records import User
from app.crm.storage import Storage
from app.crm.store import RecordStore


def record_store() -> RecordStore:
    return current_app.extensions["record_store"]


def clock() -> Clock:
    return current_app.extensions["clock"]


def blob_storage() -> Storage:
    return current_app.extensions["blob_storage"]


def current_user() -> User:
    from flask import g

    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u
