from __future__ import annotations

import os
from datetime import timezone, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

APP_VERSION = "1.0.0"
REPO_ROOT = Path(__file__).resolve().parents[3]
load_dotenv(REPO_ROOT / ".env")

SECRET_KEY = os.getenv("SERENITY_SECRET_KEY", "CHANGE_ME")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24

DEFAULT_HF_API_URL = "https://api-inference.huggingface.co/models"
DEFAULT_STREAK_SCAN_DAYS = 30


def resolve_db_path() -> str:
    db_env = (os.getenv("SERENITY_DB_PATH") or os.getenv("DB_PATH") or "").strip()
    db_path = Path(db_env) if db_env else (REPO_ROOT / "serenity.db")
    if not db_path.is_absolute():
        db_path = REPO_ROOT / db_path
    return str(db_path)


def is_dev_mode() -> bool:
    value = os.getenv("SERENITY_DEV_MODE", "").strip().lower()
    alt = os.getenv("DEV_MODE", "").strip().lower()
    return value in {"1", "true", "yes", "on"} or alt in {"1", "true", "yes", "on"}


def hugging_face_api_key() -> str:
    return (os.getenv("HUGGING_FACE_API_KEY") or os.getenv("HF_TOKEN") or "").strip()


def hugging_face_api_url() -> str:
    return (os.getenv("HUGGING_FACE_API_URL") or DEFAULT_HF_API_URL).rstrip("/")


def inference_timeout() -> float:
    raw = os.getenv("SERENITY_INFERENCE_TIMEOUT", "").strip()
    try:
        return float(raw) if raw else 20.0
    except ValueError:
        return 20.0


def app_timezone() -> tzinfo:
    name = os.getenv("SERENITY_TIMEZONE", "").strip()
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def streak_scan_days() -> int:
    raw = os.getenv("SERENITY_STREAK_SCAN_DAYS", "").strip()
    if not raw.isdigit() or int(raw) < 1:
        return DEFAULT_STREAK_SCAN_DAYS
    return int(raw)


def log_level() -> str:
    return (os.getenv("SERENITY_LOG_LEVEL") or "INFO").strip().upper()
