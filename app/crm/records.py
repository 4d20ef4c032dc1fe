"""
Plain record values passed between the store, the access policy and the services.

Records are frozen; changes are made with `dataclasses.replace` so nothing
downstream can mutate a list another caller is holding.
"""
from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class Role(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"


class Platform(str, enum.Enum):
    XIAOHONGSHU = "xiaohongshu"
    XIANYU = "xianyu"


class ManualType(str, enum.Enum):
    TIP = "tip"
    GUIDE = "guide"


def new_id() -> str:
    return uuid.uuid4().hex


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class User:
    id: str
    username: str
    password_hash: str
    role: Role
    can_view_all: bool
    created_at: datetime

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    def to_dict(self) -> dict[str, Any]:
        # Never expose the password hash.
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role.value,
            "can_view_all": self.can_view_all,
            "created_at": _iso(self.created_at),
        }


@dataclass(frozen=True)
class ImageAsset:
    id: str
    url: str
    created_at: datetime
    is_ai_generated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "created_at": _iso(self.created_at),
            "is_ai_generated": self.is_ai_generated,
        }


@dataclass(frozen=True)
class Copywriting:
    id: str
    content: str
    created_at: datetime
    is_ai_generated: bool = False
    model_used: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "created_at": _iso(self.created_at),
            "is_ai_generated": self.is_ai_generated,
            "model_used": self.model_used,
        }


@dataclass(frozen=True)
class Customer:
    id: str
    creator_id: str
    name: str
    platform: Platform
    last_tracked_date: datetime
    contact_info: str = ""
    deal_date: datetime | None = None
    expiry_date: datetime | None = None
    images: tuple[ImageAsset, ...] = field(default_factory=tuple)
    copywritings: tuple[Copywriting, ...] = field(default_factory=tuple)
    notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "creator_id": self.creator_id,
            "name": self.name,
            "contact_info": self.contact_info,
            "platform": self.platform.value,
            "deal_date": _iso(self.deal_date),
            "expiry_date": _iso(self.expiry_date),
            "last_tracked_date": _iso(self.last_tracked_date),
            "images": [i.to_dict() for i in self.images],
            "copywritings": [c.to_dict() for c in self.copywritings],
            "notes": self.notes,
        }


@dataclass(frozen=True)
class ManualSection:
    id: str
    platform: Platform
    title: str
    content: str
    type: ManualType = ManualType.GUIDE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "platform": self.platform.value,
            "title": self.title,
            "content": self.content,
            "type": self.type.value,
        }


@dataclass(frozen=True)
class AuditEvent:
    action: str
    created_at: datetime
    id: str = field(default_factory=new_id)
    request_id: str | None = None
    actor_user_id: str | None = None
    actor_username: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    metadata_json: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": _iso(self.created_at),
            "request_id": self.request_id,
            "actor_user_id": self.actor_user_id,
            "actor_username": self.actor_username,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "metadata_json": self.metadata_json,
        }
