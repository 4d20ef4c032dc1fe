"""Both record store backends behave the same."""
from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from app.crm.db import make_engine, make_sessionmaker
from app.crm.errors import NotFound
from app.crm.models import Base
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
from app.crm.store import MemoryRecordStore, SqlRecordStore, store_from_config

NOW = datetime(2026, 1, 1, 12, 0, 0, 123456)


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryRecordStore()
        return
    engine = make_engine(f"sqlite:///{tmp_path/'store.db'}")
    Base.metadata.create_all(bind=engine)
    yield SqlRecordStore(make_sessionmaker(engine))
    engine.dispose()


def _user(uid, username, role=Role.ADMIN):
    return User(id=uid, username=username, password_hash="hash", role=role, can_view_all=False, created_at=NOW)


def _customer(cid="c1", **fields):
    base = Customer(
        id=cid,
        creator_id="u1",
        name="Zhang",
        platform=Platform.XIAOHONGSHU,
        last_tracked_date=NOW,
        contact_info="wx: zhang",
        deal_date=NOW - timedelta(days=10),
        expiry_date=NOW + timedelta(days=80),
        images=(
            ImageAsset(id="i1", url="storage://customers/c1/images/a.png", created_at=NOW),
            ImageAsset(id="i2", url="data:image/png;base64,AAAA", created_at=NOW, is_ai_generated=True),
        ),
        copywritings=(Copywriting(id="w1", content="Hello", created_at=NOW, is_ai_generated=True, model_used="Qwen"),),
        notes="likes vans",
    )
    return replace(base, **fields)


def test_user_crud(store):
    store.insert_user(_user("1", "admin", role=Role.SUPER_ADMIN))
    store.insert_user(_user("u1", "alice"))
    assert store.get_user("u1") == _user("u1", "alice")
    assert store.find_user_by_username("alice").id == "u1"
    assert store.find_user_by_username("Alice") is None
    assert {u.id for u in store.list_users()} == {"1", "u1"}

    updated = store.update_user("u1", can_view_all=True)
    assert updated.can_view_all is True
    assert store.get_user("u1").can_view_all is True

    store.delete_user("u1")
    assert store.get_user("u1") is None
    store.delete_user("u1")


def test_update_missing_user_raises(store):
    with pytest.raises(NotFound):
        store.update_user("nobody", can_view_all=True)


def test_update_rejects_unknown_fields(store):
    store.insert_user(_user("u1", "alice"))
    with pytest.raises(ValueError):
        store.update_user("u1", id="u2")


def test_customer_round_trip_is_verbatim(store):
    c = _customer()
    store.upsert_customer(c)
    assert store.get_customer("c1") == c
    assert store.list_customers() == [c]


def test_upsert_reorders_and_drops_assets(store):
    c = _customer()
    store.upsert_customer(c)
    extra = ImageAsset(id="i3", url="data:image/png;base64,BBBB", created_at=NOW, is_ai_generated=True)
    changed = replace(c, name="Zhang Wei", images=(extra, c.images[1]), copywritings=())
    store.upsert_customer(changed)
    assert store.get_customer("c1") == changed


def test_list_customers_is_unfiltered(store):
    store.upsert_customer(_customer("c1"))
    store.upsert_customer(_customer("c2", creator_id="u2", images=(), copywritings=()))
    assert {c.id for c in store.list_customers()} == {"c1", "c2"}


def test_delete_customer(store):
    store.upsert_customer(_customer())
    store.delete_customer("c1")
    assert store.get_customer("c1") is None
    store.delete_customer("c1")


def test_manuals(store):
    tip = ManualSection(id="m1", platform=Platform.XIANYU, title="Safety", content="Trade in-app", type=ManualType.TIP)
    store.upsert_manual(tip)
    store.upsert_manual(ManualSection(id="m2", platform=Platform.XIAOHONGSHU, title="Leads", content="Reply fast"))
    assert store.list_manuals(Platform.XIANYU) == [tip]

    store.upsert_manual(replace(tip, content="Never transfer directly"))
    assert store.list_manuals(Platform.XIANYU)[0].content == "Never transfer directly"

    store.delete_manual("m1")
    assert store.list_manuals(Platform.XIANYU) == []


def test_audit_events_newest_first(store):
    for i in range(3):
        store.append_audit_event(AuditEvent(action=f"a{i}", created_at=NOW + timedelta(seconds=i), actor_user_id="1"))
    assert [e.action for e in store.list_audit_events()] == ["a2", "a1", "a0"]
    assert [e.action for e in store.list_audit_events(limit=1)] == ["a2"]


def test_store_from_config_picks_backend(tmp_path):
    assert isinstance(store_from_config({"RECORD_STORE": "memory"}), MemoryRecordStore)
    sql = store_from_config({"RECORD_STORE": "sql", "DATABASE_URL": f"sqlite:///{tmp_path/'x.db'}"})
    assert isinstance(sql, SqlRecordStore)
