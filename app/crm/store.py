"""
Record store: the CRUD surface behind the access policy.

Two interchangeable backends, picked once at startup by `store_from_config`:

- MemoryRecordStore: in-process dicts, for local runs and tests.
- SqlRecordStore: SQLAlchemy, for sqlite/Postgres deployments.

Stores never filter by actor. `list_customers` is unfiltered on purpose; the
access policy decides visibility. Writes are last-write-wins with no version
check.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from sqlalchemy.orm import sessionmaker

from app.crm.db import make_engine, make_sessionmaker, session_scope
from app.crm.errors import NotFound
from app.crm.models import (
    AuditEventRow,
    CustomerCopywritingRow,
    CustomerImageRow,
    CustomerRow,
    ManualSectionRow,
    UserRow,
)
from app.crm.records import (
    AuditEvent,
    Copywriting,
    Customer,
    ImageAsset,
    ManualSection,
    ManualType,
    Platform,
    Role,
    User,
)

logger = logging.getLogger(__name__)

_USER_PATCHABLE = frozenset({"username", "password_hash", "role", "can_view_all"})


class RecordStore:
    # Users
    def list_users(self) -> list[User]:
        raise NotImplementedError

    def get_user(self, user_id: str) -> User | None:
        raise NotImplementedError

    def find_user_by_username(self, username: str) -> User | None:
        raise NotImplementedError

    def insert_user(self, user: User) -> None:
        raise NotImplementedError

    def delete_user(self, user_id: str) -> None:
        raise NotImplementedError

    def update_user(self, user_id: str, **patch: Any) -> User:
        raise NotImplementedError

    # Customers
    def list_customers(self) -> list[Customer]:
        raise NotImplementedError

    def get_customer(self, customer_id: str) -> Customer | None:
        raise NotImplementedError

    def upsert_customer(self, customer: Customer) -> None:
        raise NotImplementedError

    def delete_customer(self, customer_id: str) -> None:
        raise NotImplementedError

    # Manuals
    def list_manuals(self, platform: Platform) -> list[ManualSection]:
        raise NotImplementedError

    def upsert_manual(self, section: ManualSection) -> None:
        raise NotImplementedError

    def delete_manual(self, section_id: str) -> None:
        raise NotImplementedError

    # Audit
    def append_audit_event(self, event: AuditEvent) -> None:
        raise NotImplementedError

    def list_audit_events(self, *, limit: int = 100) -> list[AuditEvent]:
        raise NotImplementedError


def _check_patch(patch: dict[str, Any]) -> None:
    unknown = set(patch) - _USER_PATCHABLE
    if unknown:
        raise ValueError(f"Cannot patch user fields: {', '.join(sorted(unknown))}")


class MemoryRecordStore(RecordStore):
    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._customers: dict[str, Customer] = {}
        self._manuals: dict[str, ManualSection] = {}
        self._audit: list[AuditEvent] = []

    def list_users(self) -> list[User]:
        return list(self._users.values())

    def get_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    def find_user_by_username(self, username: str) -> User | None:
        for u in self._users.values():
            if u.username == username:
                return u
        return None

    def insert_user(self, user: User) -> None:
        self._users[user.id] = user

    def delete_user(self, user_id: str) -> None:
        self._users.pop(user_id, None)

    def update_user(self, user_id: str, **patch: Any) -> User:
        _check_patch(patch)
        user = self._users.get(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")
        user = replace(user, **patch)
        self._users[user_id] = user
        return user

    def list_customers(self) -> list[Customer]:
        return list(self._customers.values())

    def get_customer(self, customer_id: str) -> Customer | None:
        return self._customers.get(customer_id)

    def upsert_customer(self, customer: Customer) -> None:
        self._customers[customer.id] = customer

    def delete_customer(self, customer_id: str) -> None:
        self._customers.pop(customer_id, None)

    def list_manuals(self, platform: Platform) -> list[ManualSection]:
        return [m for m in self._manuals.values() if m.platform == platform]

    def upsert_manual(self, section: ManualSection) -> None:
        self._manuals[section.id] = section

    def delete_manual(self, section_id: str) -> None:
        self._manuals.pop(section_id, None)

    def append_audit_event(self, event: AuditEvent) -> None:
        self._audit.append(event)

    def list_audit_events(self, *, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._audit))[:limit]


def _user_from_row(row: UserRow) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        role=Role(row.role),
        can_view_all=bool(row.can_view_all),
        created_at=row.created_at,
    )


def _customer_from_row(row: CustomerRow) -> Customer:
    return Customer(
        id=row.id,
        creator_id=row.creator_id,
        name=row.name,
        contact_info=row.contact_info or "",
        platform=Platform(row.platform),
        deal_date=row.deal_date,
        expiry_date=row.expiry_date,
        last_tracked_date=row.last_tracked_date,
        images=tuple(
            ImageAsset(id=i.id, url=i.url, created_at=i.created_at, is_ai_generated=bool(i.is_ai_generated))
            for i in row.images
        ),
        copywritings=tuple(
            Copywriting(
                id=c.id,
                content=c.content,
                created_at=c.created_at,
                is_ai_generated=bool(c.is_ai_generated),
                model_used=c.model_used,
            )
            for c in row.copywritings
        ),
        notes=row.notes or "",
    )


def _manual_from_row(row: ManualSectionRow) -> ManualSection:
    return ManualSection(
        id=row.id,
        platform=Platform(row.platform),
        title=row.title,
        content=row.content,
        type=ManualType(row.type),
    )


def _audit_from_row(row: AuditEventRow) -> AuditEvent:
    return AuditEvent(
        id=row.id,
        created_at=row.created_at,
        request_id=row.request_id,
        actor_user_id=row.actor_user_id,
        actor_username=row.actor_username,
        action=row.action,
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        metadata_json=row.metadata_json,
    )


class SqlRecordStore(RecordStore):
    def __init__(self, sm: sessionmaker) -> None:
        self.sm = sm

    def list_users(self) -> list[User]:
        with session_scope(self.sm) as s:
            rows = s.query(UserRow).order_by(UserRow.created_at.asc()).all()
            return [_user_from_row(r) for r in rows]

    def get_user(self, user_id: str) -> User | None:
        with session_scope(self.sm) as s:
            row = s.get(UserRow, user_id)
            return _user_from_row(row) if row else None

    def find_user_by_username(self, username: str) -> User | None:
        with session_scope(self.sm) as s:
            row = s.query(UserRow).filter(UserRow.username == username).one_or_none()
            return _user_from_row(row) if row else None

    def insert_user(self, user: User) -> None:
        with session_scope(self.sm) as s:
            s.add(
                UserRow(
                    id=user.id,
                    username=user.username,
                    password_hash=user.password_hash,
                    role=user.role.value,
                    can_view_all=user.can_view_all,
                    created_at=user.created_at,
                )
            )

    def delete_user(self, user_id: str) -> None:
        with session_scope(self.sm) as s:
            s.query(UserRow).filter(UserRow.id == user_id).delete(synchronize_session=False)

    def update_user(self, user_id: str, **patch: Any) -> User:
        _check_patch(patch)
        with session_scope(self.sm) as s:
            row = s.get(UserRow, user_id)
            if row is None:
                raise NotFound(f"User {user_id} not found")
            for key, value in patch.items():
                setattr(row, key, value.value if isinstance(value, Role) else value)
            s.flush()
            return _user_from_row(row)

    def list_customers(self) -> list[Customer]:
        with session_scope(self.sm) as s:
            rows = s.query(CustomerRow).order_by(CustomerRow.last_tracked_date.asc(), CustomerRow.id.asc()).all()
            return [_customer_from_row(r) for r in rows]

    def get_customer(self, customer_id: str) -> Customer | None:
        with session_scope(self.sm) as s:
            row = s.get(CustomerRow, customer_id)
            return _customer_from_row(row) if row else None

    def upsert_customer(self, customer: Customer) -> None:
        with session_scope(self.sm) as s:
            row = s.get(CustomerRow, customer.id)
            if row is None:
                row = CustomerRow(id=customer.id)
                s.add(row)
            row.creator_id = customer.creator_id
            row.name = customer.name
            row.contact_info = customer.contact_info
            row.platform = customer.platform.value
            row.deal_date = customer.deal_date
            row.expiry_date = customer.expiry_date
            row.last_tracked_date = customer.last_tracked_date
            row.notes = customer.notes

            # Assets are immutable: reuse rows by id, only their position moves.
            existing_images = {i.id: i for i in row.images}
            images = []
            for pos, asset in enumerate(customer.images):
                img = existing_images.get(asset.id) or CustomerImageRow(
                    id=asset.id,
                    url=asset.url,
                    is_ai_generated=asset.is_ai_generated,
                    created_at=asset.created_at,
                )
                img.position = pos
                images.append(img)
            row.images = images

            existing_copy = {c.id: c for c in row.copywritings}
            copies = []
            for pos, copy in enumerate(customer.copywritings):
                cw = existing_copy.get(copy.id) or CustomerCopywritingRow(
                    id=copy.id,
                    content=copy.content,
                    is_ai_generated=copy.is_ai_generated,
                    model_used=copy.model_used,
                    created_at=copy.created_at,
                )
                cw.position = pos
                copies.append(cw)
            row.copywritings = copies

    def delete_customer(self, customer_id: str) -> None:
        with session_scope(self.sm) as s:
            row = s.get(CustomerRow, customer_id)
            if row is not None:
                s.delete(row)

    def list_manuals(self, platform: Platform) -> list[ManualSection]:
        with session_scope(self.sm) as s:
            rows = (
                s.query(ManualSectionRow)
                .filter(ManualSectionRow.platform == platform.value)
                .order_by(ManualSectionRow.position.asc(), ManualSectionRow.id.asc())
                .all()
            )
            return [_manual_from_row(r) for r in rows]

    def upsert_manual(self, section: ManualSection) -> None:
        with session_scope(self.sm) as s:
            row = s.get(ManualSectionRow, section.id)
            if row is None:
                count = s.query(ManualSectionRow).filter(ManualSectionRow.platform == section.platform.value).count()
                row = ManualSectionRow(id=section.id, position=count)
                s.add(row)
            row.platform = section.platform.value
            row.title = section.title
            row.content = section.content
            row.type = section.type.value

    def delete_manual(self, section_id: str) -> None:
        with session_scope(self.sm) as s:
            s.query(ManualSectionRow).filter(ManualSectionRow.id == section_id).delete(synchronize_session=False)

    def append_audit_event(self, event: AuditEvent) -> None:
        with session_scope(self.sm) as s:
            s.add(
                AuditEventRow(
                    id=event.id,
                    created_at=event.created_at,
                    request_id=event.request_id,
                    actor_user_id=event.actor_user_id,
                    actor_username=event.actor_username,
                    action=event.action,
                    entity_type=event.entity_type,
                    entity_id=event.entity_id,
                    metadata_json=event.metadata_json,
                )
            )

    def list_audit_events(self, *, limit: int = 100) -> list[AuditEvent]:
        with session_scope(self.sm) as s:
            rows = s.query(AuditEventRow).order_by(AuditEventRow.created_at.desc()).limit(limit).all()
            return [_audit_from_row(r) for r in rows]


def store_from_config(config: dict, *, engine=None) -> RecordStore:
    backend = (config.get("RECORD_STORE") or "sql").strip().lower()
    if backend == "memory":
        logger.info("Record store: in-memory (data is lost on restart)")
        return MemoryRecordStore()
    if engine is None:
        engine = make_engine(config["DATABASE_URL"], env=config.get("ENV") or "")
    logger.info("Record store: sql (%s)", engine.url.get_backend_name())
    return SqlRecordStore(make_sessionmaker(engine))