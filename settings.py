from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_DATABASE_URL_ENV = "DATABASE_URL"
_PUBLIC_BASE_URL_ENV = "PUBLIC_BASE_URL"
_CLOUD_NAME_ENV = "CLOUDINARY_CLOUD_NAME"
_CLOUD_API_KEY_ENV = "CLOUDINARY_API_KEY"
_CLOUD_API_SECRET_ENV = "CLOUDINARY_API_SECRET"
_CLOUD_UPLOAD_PRESET_ENV = "CLOUDINARY_UPLOAD_PRESET"
_MAIL_USER_ENV = "GMAIL_USER"
_MAIL_PASSWORD_ENV = "GMAIL_APP_PASSWORD"
_DEFAULT_RECIPIENTS_ENV = "DEFAULT_NOTIFICATION_RECIPIENTS"
_LIST_LIMIT_ENV = "RECORD_LIST_LIMIT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    database_url: str
    public_base_url: str
    cloudinary_cloud_name: Optional[str]
    cloudinary_api_key: Optional[str]
    cloudinary_api_secret: Optional[str]
    cloudinary_upload_preset: Optional[str]
    mail_user: Optional[str]
    mail_password: Optional[str]
    default_recipients: tuple[str, ...]
    record_list_limit: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(part.strip() for part in value.split(",") if part.strip())
    return items or default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        database_url=_read_str_env(_DATABASE_URL_ENV, "sqlite:///./tmp/maintenance.db"),
        public_base_url=_read_str_env(_PUBLIC_BASE_URL_ENV, "http://localhost:3000").rstrip("/"),
        cloudinary_cloud_name=_read_optional_env(_CLOUD_NAME_ENV),
        cloudinary_api_key=_read_optional_env(_CLOUD_API_KEY_ENV),
        cloudinary_api_secret=_read_optional_env(_CLOUD_API_SECRET_ENV),
        cloudinary_upload_preset=_read_optional_env(_CLOUD_UPLOAD_PRESET_ENV),
        mail_user=_read_optional_env(_MAIL_USER_ENV),
        mail_password=_read_optional_env(_MAIL_PASSWORD_ENV),
        default_recipients=_read_list_env(
            _DEFAULT_RECIPIENTS_ENV, ("maintenance@example.com",)
        ),
        record_list_limit=_read_positive_int(_LIST_LIMIT_ENV, 10),
        log_level=_read_log_level("INFO"),
    )
