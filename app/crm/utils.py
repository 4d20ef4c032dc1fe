from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from flask import request

from app.crm.errors import ValidationError
from app.crm.records import Platform


def request_payload() -> dict[str, Any]:
    """JSON body when present, otherwise form fields."""
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object.")
        return data
    return request.form.to_dict()


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


def _from_epoch_ms(value: float, *, field: str) -> datetime:
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
    except (OverflowError, OSError, ValueError):
        raise ValidationError(f"{field} is out of range.") from None


def parse_datetime(value: Any, *, field: str) -> datetime | None:
    """
    ISO 8601 date or datetime, or epoch milliseconds; blank means unset.
    Aware values are converted to naive UTC to match the clock.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an ISO 8601 date.")
    if isinstance(value, (int, float)):
        return _from_epoch_ms(value, field=field)
    if isinstance(value, datetime):
        dt = value
    else:
        raw = str(value).strip()
        if not raw:
            return None
        if raw.isdigit():
            return _from_epoch_ms(int(raw), field=field)
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO 8601 date.") from None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_platform(value: Any) -> Platform:
    try:
        return Platform(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown platform: {value!r}") from None
