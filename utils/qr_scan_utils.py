# utils/qr_scan_utils.py
import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse, parse_qs, unquote

MEMBERSHIP = "membership"
EVENT_REGISTRATION = "event_registration"

# Keys that may carry a registration id (case-insensitive)
REGISTRATION_KEYS_LOWER = {"registration_id", "registrationid", "ticket_id"}


@dataclass
class ScanResult:
    kind: str   # "membership" | "event_registration"
    id: str


def _b64_try(s: str) -> Optional[str]:
    """Base64/URL-safe base64 decode; return None on failure."""
    s = (s or "").strip()
    if not s:
        return None
    s2 = s.replace("-", "+").replace("_", "/")
    pad = "=" * ((4 - len(s2) % 4) % 4)
    try:
        return base64.b64decode(s2 + pad, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return None


def _json_try(s: Optional[str]) -> Any:
    if not s:
        return None
    try:
        return json.loads(s)
    except ValueError:
        return None


def _from_obj(obj: Any) -> Optional[ScanResult]:
    """Read a QR JSON payload, looking one level into 'data' when present."""
    if not isinstance(obj, dict):
        return None
    if isinstance(obj.get("data"), dict) and "type" not in obj:
        obj = obj["data"]

    kind = str(obj.get("type") or "").strip().lower()
    for k, v in obj.items():
        if str(k).strip().lower() in REGISTRATION_KEYS_LOWER and v:
            return ScanResult(EVENT_REGISTRATION, str(v))
    if obj.get("id"):
        if kind == EVENT_REGISTRATION:
            return ScanResult(EVENT_REGISTRATION, str(obj["id"]))
        return ScanResult(MEMBERSHIP, str(obj["id"]))
    return None


def _from_url(url: str) -> Optional[ScanResult]:
    u = urlparse(url)
    q = parse_qs(u.query or "")

    # base64/json under common payload params
    for k in ("data", "payload", "qr", "p"):
        if k in q and q[k]:
            raw = unquote(q[k][0])
            found = _from_obj(_json_try(_b64_try(raw)) or _json_try(raw))
            if found:
                return found

    # direct query params
    for k, vals in q.items():
        if k.lower() in REGISTRATION_KEYS_LOWER and vals:
            return ScanResult(EVENT_REGISTRATION, vals[0])
    if q.get("id"):
        return ScanResult(MEMBERSHIP, q["id"][0])
    return None


def parse_scanned_text(text: str) -> Optional[ScanResult]:
    """
    Accept raw QR text and work out what it points at.
    - JSON payload ({"type": ..., "id"/"registration_id": ...})
    - URL with ?data=/payload/qr/p params (possibly base64url)
    - raw base64-encoded JSON
    - plain token → treated as a membership id
    """
    if not text:
        return None
    s = text.strip()

    if s.startswith("{") and s.endswith("}"):
        return _from_obj(_json_try(s))

    if s.startswith(("http://", "https://")):
        return _from_url(s)

    found = _from_obj(_json_try(_b64_try(s)))
    if found:
        return found

    if re.fullmatch(r"[A-Za-z0-9\-_]{6,}", s):
        return ScanResult(MEMBERSHIP, s)
    return None
