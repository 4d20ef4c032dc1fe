import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    record_store: str

    storage_backend: str
    local_storage_root: str
    s3_endpoint: str
    s3_region: str
    s3_bucket: str
    s3_access_key_id: str
    s3_secret_access_key: str

    google_api_key: str
    genai_text_model: str
    genai_image_model: str

    seed_admin_username: str
    seed_admin_password: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///crm.db"),
        record_store=_getenv("RECORD_STORE", "sql"),
        storage_backend=_getenv("STORAGE_BACKEND", "local"),
        local_storage_root=_getenv("LOCAL_STORAGE_ROOT", ""),
        s3_endpoint=_getenv("S3_ENDPOINT", ""),
        s3_region=_getenv("S3_REGION", "nyc3"),
        s3_bucket=_getenv("S3_BUCKET", ""),
        s3_access_key_id=_getenv("S3_ACCESS_KEY_ID", ""),
        s3_secret_access_key=_getenv("S3_SECRET_ACCESS_KEY", ""),
        google_api_key=_getenv("GOOGLE_API_KEY", ""),
        genai_text_model=_getenv("GENAI_TEXT_MODEL", "gemini-2.5-flash"),
        genai_image_model=_getenv("GENAI_IMAGE_MODEL", "gemini-2.5-flash-image"),
        seed_admin_username=_getenv("SEED_ADMIN_USERNAME", "admin"),
        seed_admin_password=_getenv("SEED_ADMIN_PASSWORD", "admin123"),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "RECORD_STORE": s.record_store,
        "STORAGE_BACKEND": s.storage_backend,
        "LOCAL_STORAGE_ROOT": s.local_storage_root,
        "S3_ENDPOINT": s.s3_endpoint,
        "S3_REGION": s.s3_region,
        "S3_BUCKET": s.s3_bucket,
        "S3_ACCESS_KEY_ID": s.s3_access_key_id,
        "S3_SECRET_ACCESS_KEY": s.s3_secret_access_key,
        "GOOGLE_API_KEY": s.google_api_key,
        "GENAI_TEXT_MODEL": s.genai_text_model,
        "GENAI_IMAGE_MODEL": s.genai_image_model,
        "SEED_ADMIN_USERNAME": s.seed_admin_username,
        "SEED_ADMIN_PASSWORD": s.seed_admin_password,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
        # image uploads (10MB each, checked in the route)
        "MAX_CONTENT_LENGTH": 25 * 1024 * 1024,
    }
