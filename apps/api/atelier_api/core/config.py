"""
Runtime settings, read from the environment at call time.

Defaults mirror local development (sqlite + local storage); production
deployments set the S3 / CloudFront / Gemini variables.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_IMAGE_MODEL = "gemini-3-pro-image-preview"
DEFAULT_JWT_SECRET = "dev-secret"


def _int_from_env(key: str, fallback: int) -> int:
    raw = os.getenv(key)
    if not raw:
        return fallback
    try:
        return int(raw)
    except ValueError:
        return fallback


def _bool_from_env(key: str, fallback: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return fallback
    return raw.strip().lower() not in ("0", "false", "no", "off", "")


def _first_env(*keys: str) -> Optional[str]:
    for k in keys:
        v = os.getenv(k)
        if v:
            return v
    return None


def normalize_private_key(raw: Optional[str]) -> Optional[str]:
    # single-line env values carry literal "\n" sequences
    if not raw:
        return None
    if "\\n" in raw and "\n" not in raw:
        return raw.replace("\\n", "\n")
    return raw


@dataclass(frozen=True)
class Settings:
    app_version: str
    database_url: str
    db_auto_create: bool
    storage_root: str
    log_level: str

    google_api_key: Optional[str]
    image_model: str
    image_size: str
    generation_timeout_seconds: int
    image_provider: str

    jwt_secret: str

    s3_region: Optional[str]
    s3_bucket: Optional[str]

    cf_domain: Optional[str]
    cf_key_pair_id: Optional[str]
    cf_private_key: Optional[str]
    signed_url_ttl_seconds: int

    @property
    def s3_configured(self) -> bool:
        return bool(self.s3_region and self.s3_bucket)

    @property
    def cloudfront_configured(self) -> bool:
        return bool(self.cf_domain and self.cf_key_pair_id and self.cf_private_key)


def get_settings() -> Settings:
    return Settings(
        app_version=os.getenv("APP_VERSION", "0.1.0"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./data/app.db"),
        db_auto_create=_bool_from_env("DB_AUTO_CREATE", True),
        storage_root=os.getenv("STORAGE_ROOT", "./data/storage"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        google_api_key=_first_env("GOOGLE_API_KEY", "GEMINI_API_KEY"),
        image_model=os.getenv("GEMINI_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
        image_size=os.getenv("GEMINI_IMAGE_SIZE", "1K"),
        generation_timeout_seconds=_int_from_env("GENERATION_TIMEOUT_SECONDS", 120),
        image_provider=(os.getenv("IMAGE_PROVIDER") or "gemini").strip().lower(),
        jwt_secret=os.getenv("JWT_SECRET") or DEFAULT_JWT_SECRET,
        s3_region=_first_env("AWS_REGION", "AWS_DEFAULT_REGION"),
        s3_bucket=_first_env("AWS_S3_BUCKET", "ARGUS_S3_BUCKET"),
        cf_domain=os.getenv("CF_DOMAIN") or None,
        cf_key_pair_id=os.getenv("CF_KEY_PAIR_ID") or None,
        cf_private_key=normalize_private_key(os.getenv("CF_PRIVATE_KEY_PEM")),
        signed_url_ttl_seconds=_int_from_env("SIGNED_URL_TTL_SECONDS", 600),
    )
