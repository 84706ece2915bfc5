# services/checkin_service.py
"""Door-side verification of membership cards and event tickets."""
from __future__ import annotations

import logging
from typing import Optional

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine

from domain.models import CheckResult, Membership
from services.membership_service import membership_state
from utils.db import now_iso
from utils.json_utils import jsonable_record
from utils.qr_scan_utils import EVENT_REGISTRATION, MEMBERSHIP, parse_scanned_text

logger = logging.getLogger(__name__)

UNREADABLE = "Could not read a membership or ticket id from this code."


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────
def _fetch_registration_for_update(conn, registration_id: str) -> Optional[dict]:
    row = conn.execute(
        text("""
            SELECT id, event_id, event_title, event_date, event_location,
                   registrant_name, registrant_email, status, checked_in_at, checked_in_by
            FROM event_registrations
            WHERE id = :id
        """),
        {"id": registration_id},
    ).mappings().first()
    return dict(row) if row else None


# ─────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────
def verify_membership(engine: Engine, code: str) -> CheckResult:
    parsed = parse_scanned_text(code)
    if parsed is None or parsed.kind != MEMBERSHIP:
        return CheckResult(False, "Invalid Membership or ID not found.", MEMBERSHIP)

    with engine.connect() as conn:
        row = conn.execute(
            text("SELECT * FROM memberships WHERE id = :id"),
            {"id": parsed.id},
        ).mappings().first()
    if not row:
        return CheckResult(False, "Invalid Membership or ID not found.", MEMBERSHIP)

    membership = Membership.from_row(row)
    record = {
        "id": membership.id,
        "full_name": membership.full_name,
        "tier": membership.tier,
        "status": membership.status,
        "expires_at": membership.expires_at,
    }
    state = membership_state(membership)
    if state != "active":
        status = membership.status if (membership.status or "").lower() != "active" else "expired"
        return CheckResult(False, f"Membership found but status is {status.upper()}", MEMBERSHIP, record)

    logger.info("Verified membership %s", membership.id)
    return CheckResult(True, f"Valid {membership.tier}: {membership.full_name}", MEMBERSHIP, record)


def check_in_registration(engine: Engine, code: str, verifier_id: Optional[str] = None) -> CheckResult:
    parsed = parse_scanned_text(code)
    if parsed is None or parsed.kind != EVENT_REGISTRATION:
        return CheckResult(False, "Ticket not found.", EVENT_REGISTRATION)

    with engine.begin() as conn:
        reg = _fetch_registration_for_update(conn, parsed.id)
        if not reg:
            return CheckResult(False, "Ticket not found.", EVENT_REGISTRATION)

        status = (reg["status"] or "").lower()
        if status == "cancelled":
            return CheckResult(False, "This registration was cancelled.", EVENT_REGISTRATION, jsonable_record(reg))
        if status == "attended":
            return CheckResult(
                False,
                f"Already checked in at {reg['checked_in_at'] or 'an earlier scan'}",
                EVENT_REGISTRATION,
                jsonable_record(reg),
            )

        stamp = now_iso()
        res = conn.execute(
            text("""
                UPDATE event_registrations
                   SET status = 'attended', checked_in_at = :ts, checked_in_by = :by
                 WHERE id = :id AND status NOT IN ('attended', 'cancelled')
            """),
            {"ts": stamp, "by": verifier_id, "id": reg["id"]},
        )
        if res.rowcount == 0:
            # another scan got there first
            latest = _fetch_registration_for_update(conn, reg["id"]) or reg
            return CheckResult(
                False,
                f"Already checked in at {latest['checked_in_at'] or 'an earlier scan'}",
                EVENT_REGISTRATION,
                jsonable_record(latest),
            )
        reg.update(status="attended", checked_in_at=stamp, checked_in_by=verifier_id)

    logger.info("Checked in registration %s (verifier=%s)", reg["id"], verifier_id)
    return CheckResult(
        True,
        f"Checked in {reg['registrant_name']} for {reg['event_title'] or 'the event'}",
        EVENT_REGISTRATION,
        jsonable_record(reg),
    )


def scan(engine: Engine, code: str, verifier_id: Optional[str] = None) -> CheckResult:
    """Dispatch on payload type: tickets are checked in, cards verified."""
    parsed = parse_scanned_text(code)
    if parsed is None:
        return CheckResult(False, UNREADABLE)
    if parsed.kind == EVENT_REGISTRATION:
        return check_in_registration(engine, code, verifier_id)
    return verify_membership(engine, code)


def search_registrations(engine: Engine, q: str, event_id: Optional[str] = None) -> pd.DataFrame:
    """Search tickets by registrant name or e-mail for manual check-in."""
    q_like = f"%{(q or '').strip().lower()}%"
    sql = """
        SELECT id, event_title, event_date, registrant_name, registrant_email,
               registrant_phone, status, checked_in_at
        FROM event_registrations
        WHERE (LOWER(registrant_name) LIKE :q OR LOWER(registrant_email) LIKE :q)
    """
    params = {"q": q_like}
    if event_id:
        sql += " AND event_id = :eid"
        params["eid"] = event_id
    sql += " ORDER BY registrant_name ASC LIMIT 25"
    with engine.connect() as conn:
        rows = conn.execute(text(sql), params).mappings().all()
    return pd.DataFrame([dict(r) for r in rows])


# ─────────────────────────────────────────────────────────────
# Dashboard
# ─────────────────────────────────────────────────────────────
def attendance_summary(engine: Engine, event_id: Optional[str] = None) -> dict:
    """Headcount for one event (or all): tickets issued, checked in, outstanding."""
    where, params = "", {}
    if event_id:
        where = " WHERE event_id = :eid"
        params["eid"] = event_id
    with engine.connect() as conn:
        rows = conn.execute(
            text(f"SELECT status, COUNT(*) AS n FROM event_registrations{where} GROUP BY status"),
            params,
        ).mappings().all()
    counts = {r["status"]: int(r["n"]) for r in rows}
    checked = counts.get("attended", 0)
    cancelled = counts.get("cancelled", 0)
    total = sum(counts.values()) - cancelled
    return {
        "total": total,
        "checked_in": checked,
        "remaining": total - checked,
        "cancelled": cancelled,
        "completion_pct": (checked / total * 100) if total > 0 else 0.0,
    }


def recent_checkins(engine: Engine, limit: int = 10, event_id: Optional[str] = None) -> pd.DataFrame:
    sql = """
        SELECT registrant_name, event_title, checked_in_at, checked_in_by
        FROM event_registrations
        WHERE status = 'attended'
    """
    params: dict = {"limit": int(limit)}
    if event_id:
        sql += " AND event_id = :eid"
        params["eid"] = event_id
    sql += " ORDER BY checked_in_at DESC LIMIT :limit"
    with engine.connect() as conn:
        return pd.read_sql(text(sql), conn, params=params)
