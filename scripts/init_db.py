import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.crm.clock import SystemClock
from app.crm.db import make_engine, make_sessionmaker
from app.crm.modules.accounts.service import ensure_seed_super_admin
from app.crm.modules.manuals.service import seed_default_manuals
from app.crm.store import SqlRecordStore


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed the super admin and the default manuals in an idempotent way.
    Does NOT overwrite an existing super admin's password.
    """
    admin_username = (os.environ.get("SEED_ADMIN_USERNAME") or "admin").strip()
    admin_password = os.environ.get("SEED_ADMIN_PASSWORD") or "admin123"

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///crm.db").strip()

    # Direct engine/store so this can run in release without building the Flask app.
    engine = make_engine(db_url)
    try:
        store = SqlRecordStore(make_sessionmaker(engine))
        admin = ensure_seed_super_admin(store, username=admin_username, password=admin_password, now=SystemClock().now())
        added = seed_default_manuals(store)
    finally:
        engine.dispose()

    print("Initialized database (seed_only).")
    print(f"Super admin username: {admin.username}")
    print("Super admin password: (from SEED_ADMIN_PASSWORD)")
    print(f"Manual sections added: {added}")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
