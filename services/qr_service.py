# services/qr_service.py
import base64
import io
import json
from typing import Union

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from config import QR_IMAGE_OPTS
from utils.json_utils import to_jsonable
from utils.qr_scan_utils import EVENT_REGISTRATION, MEMBERSHIP

__all__ = [
    "membership_payload", "registration_payload", "encode_payload",
    "render_qr_png", "qr_data_uri",
]


# ──────────────────────────────────────────────────────────────
# Payloads (plain JSON; no signing)
# ──────────────────────────────────────────────────────────────
def membership_payload(membership_id: str, user_id: str) -> dict:
    return {"type": MEMBERSHIP, "id": membership_id, "user": user_id}


def registration_payload(registration_id: str) -> dict:
    return {"type": EVENT_REGISTRATION, "registration_id": registration_id}


def encode_payload(payload: Union[dict, str]) -> str:
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, default=to_jsonable, separators=(",", ":"))


# ──────────────────────────────────────────────────────────────
# Rendering
# ──────────────────────────────────────────────────────────────
def render_qr_png(payload: Union[dict, str]) -> bytes:
    """Render a payload (dict → compact JSON, str → as-is) into PNG bytes."""
    qr = qrcode.QRCode(
        version=QR_IMAGE_OPTS.get("version", None),
        error_correction=QR_IMAGE_OPTS.get("error_correction", ERROR_CORRECT_M),
        box_size=QR_IMAGE_OPTS.get("box_size", 10),
        border=QR_IMAGE_OPTS.get("border", 4),
    )
    qr.add_data(encode_payload(payload))
    qr.make(fit=True)
    img = qr.make_image()
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def qr_data_uri(payload: Union[dict, str]) -> str:
    """data: URI for inline <img> use in HTML snippets."""
    b64 = base64.b64encode(render_qr_png(payload)).decode("ascii")
    return f"data:image/png;base64,{b64}"
