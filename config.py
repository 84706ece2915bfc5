# config.py
from __future__ import annotations
import logging
import os
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv, find_dotenv

# Load .env once, globally
load_dotenv(find_dotenv() or (Path(__file__).parent / ".env"))

def _clean(val: Optional[str], default: Optional[str] = None) -> Optional[str]:
    if val is None:
        return default
    v = val.strip()
    if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
        v = v[1:-1].strip()
    return v if v != "" else default

def _must(name: str) -> str:
    v = _clean(os.getenv(name))
    if not v:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return v

def _maybe_int(name: str, default: Optional[int] = None) -> Optional[int]:
    v = _clean(os.getenv(name))
    try:
        return int(v) if v is not None else default
    except ValueError:
        return default

def _maybe_float(name: str, default: Optional[float] = None) -> Optional[float]:
    v = _clean(os.getenv(name))
    try:
        return float(v) if v is not None else default
    except ValueError:
        return default

def _flag(name: str, default: bool = False) -> bool:
    v = _clean(os.getenv(name))
    if v is None:
        return default
    return v.lower() in {"1", "true", "yes", "y", "on"}

# ----- App -----
APP_TZ    = _clean(os.getenv("APP_TZ"), "Asia/Kuala_Lumpur")
LOG_LEVEL = _clean(os.getenv("LOG_LEVEL"), "INFO")
ORG_NAME  = _clean(os.getenv("ORG_NAME"), "Badan Warisan Malaysia")
ORG_SHORT = _clean(os.getenv("ORG_SHORT"), "BWM")
CURRENCY  = "RM"

# ----- Database -----
# Postgres when DB_HOST is set, otherwise DATABASE_URL (SQLite for local dev)
DB_HOST = _clean(os.getenv("DB_HOST"))
DB_PORT = _maybe_int("DB_PORT", 5432) or 5432
DB_NAME = _clean(os.getenv("DB_NAME"), "warisan")
DB_USER = _clean(os.getenv("DB_USER"))
DB_PASSWORD = _clean(os.getenv("DB_PASSWORD"))

if DB_HOST:
    DATABASE_URL = f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
else:
    DATABASE_URL = _clean(os.getenv("DATABASE_URL"), "sqlite:///warisan.db")

# ----- AWS / storage -----
AWS_ACCESS_KEY_ID     = _clean(os.getenv("AWS_ACCESS_KEY_ID"))
AWS_SECRET_ACCESS_KEY = _clean(os.getenv("AWS_SECRET_ACCESS_KEY"))
AWS_DEFAULT_REGION    = _clean(os.getenv("AWS_DEFAULT_REGION"), "ap-southeast-1")

STORAGE_BACKEND   = (_clean(os.getenv("STORAGE_BACKEND"), "local") or "local").lower()  # "s3" | "local"
LOCAL_STORAGE_DIR = _clean(os.getenv("LOCAL_STORAGE_DIR"), str(Path(__file__).parent / "storage"))

S3_BUCKET        = _clean(os.getenv("S3_BUCKET"))
S3_POSTER_PREFIX = _clean(os.getenv("S3_POSTER_PREFIX"), "event_poster/")
S3_REPORT_PREFIX = _clean(os.getenv("S3_REPORT_PREFIX"), "reports/")

# ExtraArgs passed to S3 upload (headers, etc.)
S3_EXTRA_ARGS = {
    "CacheControl": "no-store, no-cache, must-revalidate, max-age=0",
}
S3_USE_PRESIGNED   = _flag("S3_USE_PRESIGNED", False)
S3_PRESIGN_EXPIRES = 900  # seconds

# QR image rendering options
from qrcode.constants import ERROR_CORRECT_M
QR_IMAGE_OPTS = {
    "version": None,                 # let qrcode fit automatically
    "error_correction": ERROR_CORRECT_M,
    "box_size": 10,
    "border": 4,
}

# ----- SMS (phone verification) -----
SMS_DRY_RUN      = _flag("SMS_DRY_RUN", True)   # True → log the code instead of sending
SMS_SENDER_ID    = _clean(os.getenv("SMS_SENDER_ID"), "BWM")
OTP_LENGTH       = _maybe_int("OTP_LENGTH", 6) or 6
OTP_TTL_SECONDS  = _maybe_int("OTP_TTL_SECONDS", 300) or 300
OTP_MAX_ATTEMPTS = _maybe_int("OTP_MAX_ATTEMPTS", 5) or 5

# ── SMTP / Email config ───────────────────────────────────────
SMTP_HOST     = _clean(os.getenv("SMTP_HOST"), "smtp.gmail.com")
SMTP_PORT     = _maybe_int("SMTP_PORT", 465) or 465
SMTP_SECURITY = _clean(os.getenv("SMTP_SECURITY"), "ssl")  # "ssl" | "starttls" | "none"

SMTP_USERNAME = _clean(os.getenv("SMTP_USERNAME"))
SMTP_PASSWORD = _clean(os.getenv("SMTP_PASSWORD"))

SENDER_EMAIL  = _clean(os.getenv("SENDER_EMAIL"), SMTP_USERNAME)
SENDER_NAME   = _clean(os.getenv("SENDER_NAME"), "Badan Warisan Malaysia")
REPLY_TO      = _clean(os.getenv("REPLY_TO"))
EMAIL_SUBJECT_PREFIX = _clean(os.getenv("EMAIL_SUBJECT_PREFIX"))
EMAIL_ENABLED = _flag("EMAIL_ENABLED", False)  # ticket confirmation e-mails
EMAIL_DRY_RUN = _flag("EMAIL_DRY_RUN", True)   # True → log instead of sending

# ----- Admin / API -----
ADMIN_ACCESS_KEY = _clean(os.getenv("ADMIN_ACCESS_KEY"))
VERIFIER_API_KEY = _clean(os.getenv("VERIFIER_API_KEY"))
API_ALLOWED_ORIGINS = [
    o.strip() for o in (_clean(os.getenv("API_ALLOWED_ORIGINS"), "http://localhost:3000,http://localhost:8501") or "").split(",")
    if o.strip()
]

# ----- Simulated payments -----
# Multiplies every fake processing delay; 0 disables waiting entirely.
PAYMENT_DELAY_SCALE = _maybe_float("PAYMENT_DELAY_SCALE", 1.0)

# ----- Reports -----
REPORT_RETENTION_DAYS = _maybe_int("REPORT_RETENTION_DAYS", 90) or 90

# ----- Membership -----
MEMBERSHIP_TERM_DAYS = 365


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once; later calls are no-ops."""
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(
        level=(level or LOG_LEVEL or "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def validate_config() -> None:
    if STORAGE_BACKEND not in {"s3", "local"}:
        raise RuntimeError("STORAGE_BACKEND must be 's3' or 'local'")
    if STORAGE_BACKEND == "s3" and not S3_BUCKET:
        raise RuntimeError("Missing required environment variable: S3_BUCKET")
    for name, prefix in (("S3_POSTER_PREFIX", S3_POSTER_PREFIX),
                         ("S3_REPORT_PREFIX", S3_REPORT_PREFIX)):
        if not prefix.endswith("/"):
            raise RuntimeError(f"{name} should end with '/' for clean key joins")
    if SMTP_SECURITY not in {"ssl", "starttls", "none"}:
        raise RuntimeError("SMTP_SECURITY must be 'ssl', 'starttls', or 'none'")
    if EMAIL_ENABLED and not EMAIL_DRY_RUN:
        _must("SMTP_USERNAME")
        _must("SMTP_PASSWORD")
    if DB_HOST and not (DB_USER and DB_PASSWORD):
        raise RuntimeError("DB_USER/DB_PASSWORD must be set when DB_HOST is used")
