from __future__ import annotations

from pathlib import Path
from typing import List
import logging
import os


BASE_DIR = Path(__file__).resolve().parents[1]
OUT_DIR = Path(os.getenv("LOGOSTUDIO_OUT_DIR", str(BASE_DIR / "out")))
DB_PATH = OUT_DIR / "logostudio.db"
LOCAL_DB_PATH = OUT_DIR / "local.db"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# sessions / auth
SESSION_COOKIE_NAME = "logostudio_session"
SESSION_TTL_HOURS = int(os.getenv("LOGOSTUDIO_SESSION_TTL_HOURS", "168"))
COOKIE_SECURE = os.getenv("LOGOSTUDIO_COOKIE_SECURE", "0") == "1"
RESET_TOKEN_TTL_MINUTES = 60
ALLOWED_LOGIN_STATUSES = {"active", "pending"}
SUPERUSER_EMAILS: List[str] = [
    email.strip().lower()
    for email in os.getenv("LOGOSTUDIO_SUPERUSERS", "").split(",")
    if email.strip()
]

# logo quota / revisions
DEFAULT_LOGOS_LIMIT = int(os.getenv("LOGOSTUDIO_DEFAULT_LOGOS_LIMIT", "5"))
MAX_REVISIONS_PER_LOGO = 3
MIN_LOGO_BYTES = 64
LEGACY_USER_ID = "legacy_user"

# image provider
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
IMAGE_MODEL = os.getenv("LOGOSTUDIO_IMAGE_MODEL", "gpt-image-1")
IMAGE_TIMEOUT_SECONDS = 120.0

# catalog
CATALOG_CODE_PREFIX = "CAT"
CATALOG_PAGE_LIMIT = 30
CATALOG_MAX_PAGE_LIMIT = 100
SEARCH_DEBOUNCE_SECONDS = 0.4

# business cards (Avery 8371, US Letter)
LAYOUTS_PER_PAGE = 12
CARDS_PER_SHEET = 10
CAPTURE_SCALE = 3.0

# certificates
CERTIFICATE_SECRET = os.getenv("CERTIFICATE_SECRET", "change-me")
CERTIFICATE_MAX_AGE_DAYS = 365
PUBLIC_BASE_URL = os.getenv("LOGOSTUDIO_PUBLIC_URL", "http://localhost:8000")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def is_superuser(email: str | None) -> bool:
    if not email:
        return False
    return email.lower() in SUPERUSER_EMAILS


def set_out_dir(path: Path) -> None:
    global OUT_DIR, DB_PATH, LOCAL_DB_PATH
    OUT_DIR = path
    DB_PATH = OUT_DIR / "logostudio.db"
    LOCAL_DB_PATH = OUT_DIR / "local.db"
