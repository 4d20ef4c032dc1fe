from __future__ import annotations

from app.crm.errors import NotFound, ValidationError
from app.crm.records import ManualSection, ManualType, Platform, new_id
from app.crm.store import RecordStore

DEFAULT_MANUALS: dict[Platform, list[ManualSection]] = {
    Platform.XIAOHONGSHU: [
        ManualSection(
            id="m1",
            platform=Platform.XIAOHONGSHU,
            title="Getting leads on Xiaohongshu",
            content=(
                "1. The cover image should show the vehicle exterior or the premium interior.\n"
                "2. Put the place and the occasion in the title, e.g. \"Shanghai Disney charter\".\n"
                "3. Reply to comments quickly and steer people to private messages."
            ),
            type=ManualType.GUIDE,
        ),
        ManualSection(
            id="m2",
            platform=Platform.XIAOHONGSHU,
            title="Avoiding violations",
            content=(
                "1. Never post a WeChat id in a note; use a picture or a nickname instead.\n"
                "2. Do not send the same private message repeatedly or the account gets muted."
            ),
            type=ManualType.TIP,
        ),
    ],
    Platform.XIANYU: [
        ManualSection(
            id="xm1",
            platform=Platform.XIANYU,
            title="Closing deals fast on Xianyu",
            content=(
                "1. Stress \"private owner\" or \"first-hand price\".\n"
                "2. Pick \"meet in person, same city\" when publishing for more exposure.\n"
                "3. Credit score matters; show an excellent rating."
            ),
            type=ManualType.GUIDE,
        ),
        ManualSection(
            id="xm2",
            platform=Platform.XIANYU,
            title="Transaction safety",
            content=(
                "1. Always talk and trade inside the platform.\n"
                "2. Take deposits through a platform link, never by direct transfer."
            ),
            type=ManualType.TIP,
        ),
    ],
}


def seed_default_manuals(store: RecordStore) -> int:
    """Idempotent: only seeds a platform that has no sections yet."""
    added = 0
    for platform, sections in DEFAULT_MANUALS.items():
        if store.list_manuals(platform):
            continue
        for section in sections:
            store.upsert_manual(section)
            added += 1
    return added


def _find_section(store: RecordStore, section_id: str) -> ManualSection | None:
    for platform in Platform:
        for section in store.list_manuals(platform):
            if section.id == section_id:
                return section
    return None


def list_manuals(store: RecordStore, platform: Platform) -> list[ManualSection]:
    return store.list_manuals(platform)


def save_manual(
    store: RecordStore,
    platform: Platform,
    *,
    title: str,
    content: str,
    type: str | None = None,
    section_id: str | None = None,
) -> ManualSection:
    title = (title or "").strip()
    if not title or not (content or "").strip():
        raise ValidationError("Title and content are required.")
    if section_id is not None:
        owner = _find_section(store, section_id)
        if owner is not None and owner.platform != platform:
            raise NotFound(f"Manual section {section_id} not found")
    try:
        manual_type = ManualType(str(type or "guide").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown manual type: {type!r}") from None
    section = ManualSection(
        id=section_id or new_id(),
        platform=platform,
        title=title,
        content=content,
        type=manual_type,
    )
    store.upsert_manual(section)
    return section


def delete_manual(store: RecordStore, platform: Platform, section_id: str) -> None:
    # Sections are addressed per platform; an id from another platform is left alone.
    if any(m.id == section_id for m in store.list_manuals(platform)):
        store.delete_manual(section_id)
