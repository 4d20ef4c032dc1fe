from __future__ import annotations

import mimetypes

from flask import Blueprint, current_app, jsonify, request, send_file

from app.crm.context import blob_storage, clock, current_user, record_store
from app.crm.errors import NotFound, ValidationError
from app.crm.modules.customers.service import (
    add_copywriting,
    annotate,
    customer_from_payload,
    delete_customer,
    generate_copywriting,
    generate_image,
    get_customer,
    list_customers,
    new_customer,
    remove_copywriting,
    remove_image,
    save_customer,
    upload_image,
)
from app.crm.modules.generation.prompts import parse_persona, parse_style
from app.crm.rbac import require_login
from app.crm.storage import key_from_ref
from app.crm.utils import parse_platform, request_payload

bp = Blueprint("customers", __name__)


def _generator():
    return current_app.extensions["generation"]


@bp.get("/customers")
@require_login
def customers_list():
    platform_raw = (request.args.get("platform") or "").strip()
    platform = parse_platform(platform_raw) if platform_raw and platform_raw != "all" else None
    views = list_customers(
        record_store(),
        current_user(),
        now=clock().now(),
        platform=platform,
        q=request.args.get("q"),
    )
    return jsonify({"customers": [v.to_dict() for v in views], "total": len(views)})


@bp.post("/customers")
@require_login
def customers_create():
    data = request_payload()
    now = clock().now()
    actor = current_user()
    base = new_customer(actor, parse_platform(data.get("platform")), now=now)
    saved = save_customer(record_store(), actor, customer_from_payload(data, base=base), now=now)
    return jsonify({"customer": annotate(saved, now).to_dict()}), 201


@bp.get("/customers/<customer_id>")
@require_login
def customers_detail(customer_id: str):
    customer = get_customer(record_store(), current_user(), customer_id)
    return jsonify({"customer": annotate(customer, clock().now()).to_dict()})


@bp.put("/customers/<customer_id>")
@require_login
def customers_update(customer_id: str):
    s = record_store()
    actor = current_user()
    now = clock().now()
    existing = get_customer(s, actor, customer_id)
    saved = save_customer(s, actor, customer_from_payload(request_payload(), base=existing), now=now)
    return jsonify({"customer": annotate(saved, now).to_dict()})


@bp.delete("/customers/<customer_id>")
@require_login
def customers_delete(customer_id: str):
    delete_customer(record_store(), current_user(), customer_id, now=clock().now())
    return "", 204


@bp.post("/customers/<customer_id>/copywritings")
@require_login
def copywritings_add(customer_id: str):
    data = request_payload()
    copy = add_copywriting(
        record_store(),
        current_user(),
        customer_id,
        str(data.get("content") or ""),
        now=clock().now(),
    )
    return jsonify({"copywriting": copy.to_dict()}), 201


@bp.post("/customers/<customer_id>/copywritings/generate")
@require_login
def copywritings_generate(customer_id: str):
    data = request_payload()
    copy = generate_copywriting(
        record_store(),
        _generator(),
        current_user(),
        customer_id,
        str(data.get("prompt") or ""),
        parse_persona(data.get("model")),
        now=clock().now(),
    )
    return jsonify({"copywriting": copy.to_dict()}), 201


@bp.delete("/customers/<customer_id>/copywritings/<copywriting_id>")
@require_login
def copywritings_remove(customer_id: str, copywriting_id: str):
    remove_copywriting(record_store(), current_user(), customer_id, copywriting_id, now=clock().now())
    return "", 204


@bp.post("/customers/<customer_id>/images")
@require_login
def images_upload(customer_id: str):
    f = request.files.get("file")
    if f is None or not f.filename:
        raise ValidationError("No file selected.")
    image = upload_image(
        record_store(),
        blob_storage(),
        current_user(),
        customer_id,
        data=f.read(),
        filename=f.filename,
        content_type=f.mimetype,
        now=clock().now(),
    )
    return jsonify({"image": image.to_dict()}), 201


@bp.post("/customers/<customer_id>/images/generate")
@require_login
def images_generate(customer_id: str):
    data = request_payload()
    image = generate_image(
        record_store(),
        _generator(),
        current_user(),
        customer_id,
        str(data.get("prompt") or ""),
        parse_style(data.get("style")),
        now=clock().now(),
    )
    return jsonify({"image": image.to_dict()}), 201


@bp.delete("/customers/<customer_id>/images/<image_id>")
@require_login
def images_remove(customer_id: str, image_id: str):
    remove_image(record_store(), current_user(), customer_id, image_id, now=clock().now())
    return "", 204


@bp.get("/customers/<customer_id>/images/<image_id>/file")
@require_login
def images_download(customer_id: str, image_id: str):
    customer = get_customer(record_store(), current_user(), customer_id)
    image = next((i for i in customer.images if i.id == image_id), None)
    key = key_from_ref(image.url) if image else None
    if not key:
        # Inline data URIs are served with the record itself.
        raise NotFound(f"Image {image_id} has no stored file")
    storage = blob_storage()
    if not storage.exists(key):
        current_app.logger.warning("Stored image missing (key=%s)", key)
        raise NotFound(f"Image {image_id} file missing")
    mimetype = mimetypes.guess_type(key)[0] or "application/octet-stream"
    return send_file(storage.open(key), mimetype=mimetype, max_age=0)
