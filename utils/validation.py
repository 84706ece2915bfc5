# utils/validation.py
import re
import unicodedata
from typing import Any

EMAIL_RE    = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE    = re.compile(r"^[\d\s\-+()]+$")
POSTCODE_RE = re.compile(r"^\d{5}$")
DATE_RE     = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE     = re.compile(r"^\d{2}:\d{2}$")

PHONE_MIN_LEN = 8
PASSWORD_MIN_LEN = 6

STATES = [
    "Johor", "Kedah", "Kelantan", "Melaka", "Negeri Sembilan", "Pahang",
    "Perak", "Perlis", "Pulau Pinang", "Sabah", "Sarawak", "Selangor",
    "Terengganu", "W.P. Kuala Lumpur", "W.P. Labuan", "W.P. Putrajaya",
]


def clean_text(s: Any) -> str:
    """Normalize unicode, kill NBSP, strip; None/'nan' become ''."""
    if s is None:
        return ""
    s = unicodedata.normalize("NFC", str(s).replace("\xa0", " ")).strip()
    if s.lower() in {"nan", "none", "null"}:
        return ""
    return s


def clean_email(e: Any) -> str:
    return re.sub(r"\s+", "", clean_text(e)).lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def is_valid_phone(phone: str) -> bool:
    p = (phone or "").strip()
    return bool(PHONE_RE.match(p)) and len(p) >= PHONE_MIN_LEN


def is_valid_postcode(postcode: str) -> bool:
    return bool(POSTCODE_RE.match((postcode or "").strip()))


def normalize_phone(phone: str) -> str:
    """Collapse formatting so '+60 12-345 6789' and '+60123456789' compare equal."""
    return re.sub(r"[\s\-()]", "", phone or "")
