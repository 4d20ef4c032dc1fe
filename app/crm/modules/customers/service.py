"""
CUSTOMER RECORDS
================

Every read goes through `visible_customers` first; platform tabs and search
text only narrow what the actor could already see.

Writes are check-then-act: the access policy is evaluated against the stored
record (and the record being written) before the store is called, so a
rejected write never reaches the store.

KNOWN LIMITATION:
- Saves are full-record overwrites with no version check. Two actors who can
  both see a customer can overwrite each other's changes (last write wins).
"""
from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from app.crm.audit import record_event
from app.crm.constants import MAX_IMAGE_UPLOAD_BYTES
from app.crm.errors import NotFound, ServiceUnavailable, Unauthorized, ValidationError
from app.crm.modules.generation.client import GenerationService
from app.crm.modules.generation.prompts import ImageStyle, TextPersona
from app.crm.rbac import can_write, visible_customers
from app.crm.records import Copywriting, Customer, ImageAsset, Platform, User, new_id
from app.crm.status import (
    FollowUpStatus,
    LifecycleStatus,
    expiry_countdown,
    follow_up_urgency,
    lifecycle_stage,
)
from app.crm.storage import Storage, storage_ref
from app.crm.store import RecordStore
from app.crm.utils import parse_datetime, parse_platform

logger = logging.getLogger(__name__)

_ALLOWED_IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/gif", "image/webp"})


@dataclass(frozen=True)
class CustomerView:
    customer: Customer
    lifecycle: LifecycleStatus
    follow_up: FollowUpStatus
    expires_in_days: int | None

    def to_dict(self) -> dict[str, Any]:
        d = self.customer.to_dict()
        d["lifecycle"] = self.lifecycle.to_dict()
        d["follow_up"] = self.follow_up.to_dict()
        d["expires_in_days"] = self.expires_in_days
        return d


def annotate(customer: Customer, now: datetime) -> CustomerView:
    return CustomerView(
        customer=customer,
        lifecycle=lifecycle_stage(customer.deal_date, now),
        follow_up=follow_up_urgency(customer.last_tracked_date, now),
        expires_in_days=expiry_countdown(customer.expiry_date, now),
    )


def _matches(customer: Customer, q: str) -> bool:
    return any(q in (field or "").lower() for field in (customer.name, customer.contact_info, customer.notes))


def list_customers(
    store: RecordStore,
    actor: User,
    *,
    now: datetime,
    platform: Platform | None = None,
    q: str | None = None,
) -> list[CustomerView]:
    """
    Visible customers for `actor`, least recently contacted first.
    """
    result = visible_customers(actor, store.list_customers())
    if platform is not None:
        result = [c for c in result if c.platform == platform]
    needle = (q or "").strip().lower()
    if needle:
        result = [c for c in result if _matches(c, needle)]
    result.sort(key=lambda c: c.last_tracked_date)
    return [annotate(c, now) for c in result]


def get_customer(store: RecordStore, actor: User, customer_id: str) -> Customer:
    # Invisible records look exactly like missing ones.
    customer = store.get_customer(customer_id)
    if customer is None or not can_write(actor, customer):
        raise NotFound(f"Customer {customer_id} not found")
    return customer


def new_customer(actor: User, platform: Platform, *, now: datetime, name: str = "") -> Customer:
    return Customer(
        id=new_id(),
        creator_id=actor.id,
        name=name,
        platform=platform,
        last_tracked_date=now,
    )


def customer_from_payload(data: dict[str, Any], *, base: Customer) -> Customer:
    """
    Overwrite the editable fields of `base` from a request payload.
    Ownership and the asset lists are not editable here.
    """
    name = str((data.get("name") if "name" in data else base.name) or "").strip()
    if not name:
        raise ValidationError("Name is required.")
    platform = parse_platform(data["platform"]) if data.get("platform") else base.platform
    return replace(
        base,
        name=name,
        contact_info=str(data.get("contact_info") or "").strip(),
        platform=platform,
        deal_date=parse_datetime(data.get("deal_date"), field="deal_date"),
        expiry_date=parse_datetime(data.get("expiry_date"), field="expiry_date"),
        notes=str(data.get("notes") or ""),
    )


def save_customer(store: RecordStore, actor: User, customer: Customer, *, now: datetime) -> Customer:
    """
    Full-record upsert. Refreshes last_tracked_date, the follow-up heartbeat.
    """
    if not customer.creator_id:
        customer = replace(customer, creator_id=actor.id)

    existing = store.get_customer(customer.id)
    if existing is not None and not can_write(actor, existing):
        raise Unauthorized(f"Customer {customer.id} is not writable by {actor.id}")
    if not can_write(actor, customer):
        raise Unauthorized(f"Customer {customer.id} would not be visible to {actor.id}")

    saved = replace(customer, last_tracked_date=now)
    store.upsert_customer(saved)
    record_event(
        store,
        actor=actor,
        action="customer.create" if existing is None else "customer.save",
        now=now,
        entity_type="Customer",
        entity_id=saved.id,
    )
    return saved


def delete_customer(store: RecordStore, actor: User, customer_id: str, *, now: datetime) -> None:
    existing = store.get_customer(customer_id)
    if existing is None:
        return
    if not can_write(actor, existing):
        raise Unauthorized(f"Customer {customer_id} is not writable by {actor.id}")
    store.delete_customer(customer_id)
    record_event(store, actor=actor, action="customer.delete", now=now, entity_type="Customer", entity_id=customer_id)


def add_copywriting(
    store: RecordStore,
    actor: User,
    customer_id: str,
    content: str,
    *,
    now: datetime,
    is_ai_generated: bool = False,
    model_used: str | None = None,
) -> Copywriting:
    if not content.strip():
        raise ValidationError("Content is required.")
    customer = get_customer(store, actor, customer_id)
    copy = Copywriting(
        id=new_id(),
        content=content,
        created_at=now,
        is_ai_generated=is_ai_generated,
        model_used=model_used,
    )
    save_customer(store, actor, replace(customer, copywritings=(copy,) + customer.copywritings), now=now)
    return copy


def remove_copywriting(store: RecordStore, actor: User, customer_id: str, copywriting_id: str, *, now: datetime) -> None:
    customer = get_customer(store, actor, customer_id)
    remaining = tuple(c for c in customer.copywritings if c.id != copywriting_id)
    if len(remaining) == len(customer.copywritings):
        return
    save_customer(store, actor, replace(customer, copywritings=remaining), now=now)


def add_image(
    store: RecordStore,
    actor: User,
    customer_id: str,
    url: str,
    *,
    now: datetime,
    is_ai_generated: bool = False,
) -> ImageAsset:
    customer = get_customer(store, actor, customer_id)
    image = ImageAsset(id=new_id(), url=url, created_at=now, is_ai_generated=is_ai_generated)
    save_customer(store, actor, replace(customer, images=(image,) + customer.images), now=now)
    return image


def remove_image(store: RecordStore, actor: User, customer_id: str, image_id: str, *, now: datetime) -> None:
    customer = get_customer(store, actor, customer_id)
    remaining = tuple(i for i in customer.images if i.id != image_id)
    if len(remaining) == len(customer.images):
        return
    save_customer(store, actor, replace(customer, images=remaining), now=now)


def upload_image(
    store: RecordStore,
    storage: Storage,
    actor: User,
    customer_id: str,
    *,
    data: bytes,
    filename: str,
    content_type: str | None,
    now: datetime,
) -> ImageAsset:
    # Access check first: nothing is written to blob storage for an invisible customer.
    get_customer(store, actor, customer_id)
    if not data:
        raise ValidationError("File is empty.")
    if len(data) > MAX_IMAGE_UPLOAD_BYTES:
        raise ValidationError("File too large. Maximum size is 10MB.")
    ctype = (content_type or mimetypes.guess_type(filename)[0] or "").lower()
    if ctype not in _ALLOWED_IMAGE_TYPES:
        raise ValidationError("Only PNG, JPEG, GIF or WebP images are accepted.")

    ext = mimetypes.guess_extension(ctype) or ""
    key = f"customers/{customer_id}/images/{new_id()}{ext}"
    storage.put_bytes(key, data, content_type=ctype)
    try:
        return add_image(store, actor, customer_id, storage_ref(key), now=now)
    except Exception:
        # The record never referenced the blob.
        logger.warning("Image save failed, removing stored blob (key=%s)", key)
        storage.delete(key)
        raise


def generate_copywriting(
    store: RecordStore,
    generator: GenerationService,
    actor: User,
    customer_id: str,
    prompt: str,
    persona: TextPersona,
    *,
    now: datetime,
) -> Copywriting:
    """
    Nothing is written unless generation succeeds.
    """
    if not prompt.strip():
        raise ValidationError("Prompt is required.")
    customer = get_customer(store, actor, customer_id)
    try:
        text = generator.generate_text(prompt, persona, customer.platform)
    except ServiceUnavailable:
        raise
    except Exception as e:
        logger.exception("Copy generation failed (customer=%s)", customer_id)
        raise ServiceUnavailable("Copy generation failed") from e
    # Re-read so a slow call does not overwrite edits made meanwhile.
    return add_copywriting(
        store,
        actor,
        customer_id,
        text,
        now=now,
        is_ai_generated=True,
        model_used=persona.value,
    )


def generate_image(
    store: RecordStore,
    generator: GenerationService,
    actor: User,
    customer_id: str,
    prompt: str,
    style: ImageStyle,
    *,
    now: datetime,
) -> ImageAsset:
    if not prompt.strip():
        raise ValidationError("Prompt is required.")
    get_customer(store, actor, customer_id)
    try:
        url = generator.generate_image(prompt, style)
    except ServiceUnavailable:
        raise
    except Exception as e:
        logger.exception("Image generation failed (customer=%s)", customer_id)
        raise ServiceUnavailable("Image generation failed") from e
    return add_image(store, actor, customer_id, url, now=now, is_ai_generated=True)
