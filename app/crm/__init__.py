import logging
import os
from datetime import timedelta

from flask import Flask, g, jsonify, request, session
from dotenv import load_dotenv
from sqlalchemy import inspect as sa_inspect

from app.crm.clock import Clock, SystemClock
from app.crm.config import load_config
from app.crm.db import init_db
from app.crm.errors import CrmError, ValidationError
from app.crm.routes import bp as routes_bp
from app.crm.auth import bp as auth_bp, load_current_user
from app.crm.modules.accounts.admin import bp as accounts_bp
from app.crm.modules.customers.admin import bp as customers_bp
from app.crm.modules.manuals.admin import bp as manuals_bp
from app.crm.modules.generation.client import GenerationService, generation_from_config
from app.crm.storage import storage_from_config
from app.crm.store import RecordStore, store_from_config

REQUIRED_TABLES = (
    "users",
    "customers",
    "customer_images",
    "customer_copywritings",
    "manual_sections",
    "audit_events",
)


def create_app(
    *,
    clock: Clock | None = None,
    generation: GenerationService | None = None,
    record_store: RecordStore | None = None,
) -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True

    from app.crm.security import ensure_csrf_token, validate_csrf

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(("/health", "/healthz")):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # Login/logout establish or drop the session, so they carry no token yet.
            if (request.endpoint or "").startswith("auth."):
                return None
            if not validate_csrf(request):
                return jsonify({"error": "CSRF token missing or invalid."}), 400

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if app.config.get("RECORD_STORE") != "memory":
            if not str(app.config.get("DATABASE_URL") or "").strip():
                raise RuntimeError("DATABASE_URL is required in production.")
            if str(app.config["DATABASE_URL"]).startswith("sqlite"):
                raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if app.config.get("SEED_ADMIN_PASSWORD") == "admin123":
            app.logger.warning("SEED_ADMIN_PASSWORD is the default; change it before going live.")

    app.extensions["clock"] = clock or SystemClock()
    app.extensions["generation"] = generation or generation_from_config(app.config)
    app.extensions["blob_storage"] = storage_from_config(app.config)

    if record_store is None:
        engine = None
        if (app.config.get("RECORD_STORE") or "sql").strip().lower() != "memory":
            init_db(app)
            engine = app.extensions["sqlalchemy_engine"]

            def _dispose_engine_on_fork() -> None:
                if hasattr(os, "register_at_fork"):
                    def _after_fork_child():
                        engine.dispose()
                        app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

                    os.register_at_fork(after_in_child=_after_fork_child)

            _dispose_engine_on_fork()
        record_store = store_from_config(app.config, engine=engine)
    app.extensions["record_store"] = record_store

    if not app.config.get("GOOGLE_API_KEY") and generation is None:
        app.logger.warning("GOOGLE_API_KEY not set; copy and image generation will fail.")

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(customers_bp)
    app.register_blueprint(manuals_bp)
    app.register_blueprint(accounts_bp, url_prefix="/admin")

    # Schema health (lean): only meaningful for the SQL store. Re-checked while
    # unhealthy so a migration run after boot is picked up without a restart.
    app.config["_schema_health_ok"] = True
    app.config["_schema_health_missing"] = []

    def _run_schema_health_check() -> None:
        engine = app.extensions.get("sqlalchemy_engine")
        if engine is None:
            return
        try:
            insp = sa_inspect(engine)
            missing = [t for t in REQUIRED_TABLES if not insp.has_table(t)]
        except Exception as e:
            app.logger.exception("Schema health check failed: %s", e)
            missing = []
        if missing:
            if app.config["_schema_health_ok"] or app.config["_schema_health_missing"] != missing:
                app.logger.error("DB schema out of date; run `alembic upgrade head`. Missing: %s", ", ".join(missing))
            app.config["_schema_health_ok"] = False
            app.config["_schema_health_missing"] = missing
            return
        app.config["_schema_health_ok"] = True
        app.config["_schema_health_missing"] = []

    _run_schema_health_check()
    if app.config["_schema_health_ok"]:
        _seed_defaults(app)

    @app.before_request
    def _schema_health_guardrail():  # type: ignore[no-redef]
        if app.config.get("_schema_health_ok") or request.path.startswith(("/health", "/healthz")):
            return None
        _run_schema_health_check()
        if app.config["_schema_health_ok"]:
            _seed_defaults(app)
            return None
        return jsonify({"error": "Database schema out of date.", "missing": app.config["_schema_health_missing"]}), 503

    app.before_request(load_current_user)

    @app.errorhandler(CrmError)
    def _err_crm(e: CrmError):  # type: ignore[no-redef]
        # Terse, non-diagnostic messages; details stay in the logs.
        message = str(e) if isinstance(e, ValidationError) and str(e) else e.public_message
        if e.status_code >= 500:
            app.logger.warning("%s (request_id=%s): %s", type(e).__name__, getattr(g, "request_id", None), e)
        return jsonify({"error": message}), e.status_code

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return jsonify({"error": "Not found."}), 404

    @app.errorhandler(405)
    def _err_405(e):  # type: ignore[no-redef]
        return jsonify({"error": "Method not allowed."}), 405

    @app.errorhandler(413)
    def _err_413(e):  # type: ignore[no-redef]
        return jsonify({"error": "File too large."}), 413

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "Internal error."}), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app


def _seed_defaults(app: Flask) -> None:
    from app.crm.modules.accounts.service import ensure_seed_super_admin
    from app.crm.modules.manuals.service import seed_default_manuals

    store = app.extensions["record_store"]
    now = app.extensions["clock"].now()
    try:
        ensure_seed_super_admin(
            store,
            username=app.config["SEED_ADMIN_USERNAME"],
            password=app.config["SEED_ADMIN_PASSWORD"],
            now=now,
        )
        seed_default_manuals(store)
    except Exception:
        app.logger.exception("Seeding defaults failed")
        raise
