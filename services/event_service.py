# services/event_service.py
"""
Events posted by the back office, and registrations (tickets) against them.

A registration snapshots the event's title, date, location and poster so a
ticket still reads correctly if the event is edited or removed later.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from config import CURRENCY, EMAIL_ENABLED, S3_POSTER_PREFIX
from domain.errors import NotFoundError, PaymentError, ValidationError
from domain.models import Event, EventRegistration, PaymentResult
from services.qr_service import registration_payload, render_qr_png
from utils.db import local_today, new_id, now_iso
from utils.validation import (
    DATE_RE,
    TIME_RE,
    clean_email,
    clean_text,
    is_valid_email,
    is_valid_phone,
)

logger = logging.getLogger(__name__)

__all__ = [
    "fetch_events", "fetch_event_by_id", "create_event", "delete_event",
    "applicable_fee", "display_fee", "validate_registration_form",
    "check_registration", "register_for_event", "fetch_user_registrations",
    "fetch_registration", "cancel_registration",
]

_EVENT_COLS = "id, title, date, time, location, description, image_url, fee, member_fee, status, created_at"


# ──────────────────────────────────────────────────────────────
# Events
# ──────────────────────────────────────────────────────────────
def fetch_events(engine: Engine, upcoming_only: bool = False) -> list[Event]:
    sql = f"SELECT {_EVENT_COLS} FROM events"
    params: dict = {}
    if upcoming_only:
        sql += " WHERE date >= :today"
        params["today"] = local_today().isoformat()
    sql += " ORDER BY date ASC, time ASC"
    with engine.connect() as conn:
        rows = conn.execute(text(sql), params).mappings().all()
    return [Event.from_row(r) for r in rows]


def fetch_event_by_id(engine: Engine, event_id: str) -> Event:
    with engine.connect() as conn:
        row = conn.execute(
            text(f"SELECT {_EVENT_COLS} FROM events WHERE id = :id"),
            {"id": event_id},
        ).mappings().first()
    if not row:
        raise NotFoundError("Event not found")
    return Event.from_row(row)


def _parse_fee(raw, label: str, errors: list[str]) -> Optional[float]:
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        errors.append(f"{label} must be a number")
        return None
    if value < 0:
        errors.append(f"{label} cannot be negative")
        return None
    return round(value, 2)


def _safe_filename(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name or "poster.png")


def create_event(
    engine: Engine,
    form: dict,
    poster: Optional[bytes] = None,
    *,
    poster_filename: str = "poster.png",
    content_type: str = "image/png",
    storage=None,
) -> Event:
    title = clean_text(form.get("title"))
    date = clean_text(form.get("date"))
    time = clean_text(form.get("time"))
    location = clean_text(form.get("location"))
    description = clean_text(form.get("description"))

    errors: list[str] = []
    if not title:
        errors.append("Event title is required")
    if not date or not DATE_RE.match(date):
        errors.append("Event date is required (YYYY-MM-DD)")
    if not time or not TIME_RE.match(time):
        errors.append("Event time is required (HH:MM)")
    if not location:
        errors.append("Location is required")
    if not description:
        errors.append("Description is required")
    fee = _parse_fee(form.get("fee"), "Fee", errors)
    member_fee = _parse_fee(form.get("member_fee"), "Member fee", errors)
    if errors:
        raise ValidationError(errors)

    eid = new_id()
    image_url = None
    if poster:
        if storage is None:
            from services.storage_service import get_storage
            storage = get_storage()
        key = f"{S3_POSTER_PREFIX}{eid}_{_safe_filename(poster_filename)}"
        image_url = storage.upload_bytes(key, poster, content_type=content_type)

    with engine.begin() as conn:
        conn.execute(
            text("""
                INSERT INTO events (id, title, date, time, location, description,
                                    image_url, fee, member_fee, status, created_at)
                VALUES (:id, :title, :date, :time, :loc, :desc,
                        :img, :fee, :mfee, 'upcoming', :now)
            """),
            {"id": eid, "title": title, "date": date, "time": time, "loc": location,
             "desc": description, "img": image_url, "fee": fee, "mfee": member_fee,
             "now": now_iso()},
        )
    logger.info("Created event %s (%s on %s)", eid, title, date)
    return fetch_event_by_id(engine, eid)


def delete_event(engine: Engine, event_id: str) -> None:
    with engine.begin() as conn:
        res = conn.execute(text("DELETE FROM events WHERE id = :id"), {"id": event_id})
    if res.rowcount == 0:
        raise NotFoundError("Event not found")
    logger.info("Deleted event %s", event_id)


# ──────────────────────────────────────────────────────────────
# Pricing
# ──────────────────────────────────────────────────────────────
def applicable_fee(event: Event, is_member: bool = False) -> float:
    """Members pay member_fee when one is set; everyone else pays fee."""
    if is_member and event.member_fee is not None:
        return float(event.member_fee)
    return float(event.fee or 0)


def display_fee(event: Event, is_member: bool = False) -> str:
    fee = applicable_fee(event, is_member)
    if fee <= 0:
        return "Free"
    return f"{CURRENCY}{fee:,.2f}"


# ──────────────────────────────────────────────────────────────
# Registrations
# ──────────────────────────────────────────────────────────────
def validate_registration_form(form: dict) -> list[str]:
    errors: list[str] = []
    name = clean_text(form.get("name"))
    email = clean_email(form.get("email"))
    phone = clean_text(form.get("phone")).replace(" ", "")

    if not name:
        errors.append("Name is required")
    if not email:
        errors.append("Email is required")
    elif not is_valid_email(email):
        errors.append("Invalid email format")
    if not phone:
        errors.append("Phone number is required")
    elif not is_valid_phone(phone):
        errors.append("Invalid phone number")
    return errors


def check_registration(engine: Engine, event_id: str, email: str) -> bool:
    with engine.connect() as conn:
        row = conn.execute(
            text("""
                SELECT 1 FROM event_registrations
                WHERE event_id = :eid AND registrant_email = :email AND status <> 'cancelled'
                LIMIT 1
            """),
            {"eid": event_id, "email": clean_email(email)},
        ).first()
    return row is not None


def fetch_registration(engine: Engine, registration_id: str) -> EventRegistration:
    with engine.connect() as conn:
        row = conn.execute(
            text("SELECT * FROM event_registrations WHERE id = :id"),
            {"id": registration_id},
        ).mappings().first()
    if not row:
        raise NotFoundError("Registration not found")
    return EventRegistration.from_row(row)


def _send_ticket(registration: EventRegistration) -> None:
    if not EMAIL_ENABLED:
        return
    from services.email_service import send_ticket_confirmation
    try:
        qr_png = render_qr_png(registration_payload(registration.id))
        send_ticket_confirmation(registration, qr_png)
    except Exception as e:
        logger.warning("Ticket e-mail for %s failed: %s", registration.id, e)


def register_for_event(
    engine: Engine,
    event_id: str,
    form: dict,
    user_id: Optional[str] = None,
    is_member: bool = False,
    payment: Optional[PaymentResult] = None,
) -> EventRegistration:
    errors = validate_registration_form(form)
    if errors:
        raise ValidationError(errors)

    event = fetch_event_by_id(engine, event_id)
    email = clean_email(form.get("email"))

    if check_registration(engine, event_id, email):
        raise ValidationError("You are already registered for this event")

    fee = applicable_fee(event, is_member)
    if fee > 0:
        if payment is None:
            raise PaymentError(f"Payment of {display_fee(event, is_member)} is required")
        if round(payment.amount, 2) < round(fee, 2):
            raise PaymentError(f"Payment of {display_fee(event, is_member)} is required")

    rid = new_id()
    with engine.begin() as conn:
        conn.execute(
            text("""
                INSERT INTO event_registrations (
                    id, event_id, user_id, event_title, event_date, event_location,
                    event_image_url, registrant_name, registrant_email, registrant_phone,
                    is_member, status, payment_method, amount_paid, created_at
                ) VALUES (
                    :id, :eid, :uid, :title, :date, :loc,
                    :img, :name, :email, :phone,
                    :member, 'registered', :method, :amount, :now
                )
            """),
            {
                "id": rid, "eid": event.id, "uid": user_id,
                "title": event.title, "date": event.date, "loc": event.location,
                "img": event.image_url,
                "name": clean_text(form.get("name")), "email": email,
                "phone": clean_text(form.get("phone")),
                "member": bool(is_member),
                "method": payment.method if (payment and fee > 0) else None,
                "amount": fee if fee > 0 else 0.0,
                "now": now_iso(),
            },
        )
    logger.info("Registered %s for event %s", email, event.id)

    registration = fetch_registration(engine, rid)
    _send_ticket(registration)
    return registration


def fetch_user_registrations(engine: Engine, user_id: str) -> list[EventRegistration]:
    with engine.connect() as conn:
        rows = conn.execute(
            text("""
                SELECT * FROM event_registrations
                WHERE user_id = :uid
                ORDER BY created_at DESC
            """),
            {"uid": user_id},
        ).mappings().all()
    return [EventRegistration.from_row(r) for r in rows]


def cancel_registration(engine: Engine, registration_id: str, user_id: str) -> EventRegistration:
    reg = fetch_registration(engine, registration_id)
    if reg.user_id != user_id:
        raise NotFoundError("Registration not found")
    if reg.status == "attended":
        raise ValidationError("This ticket has already been used")
    if reg.status == "cancelled":
        return reg
    with engine.begin() as conn:
        conn.execute(
            text("UPDATE event_registrations SET status = 'cancelled' WHERE id = :id"),
            {"id": registration_id},
        )
    logger.info("Cancelled registration %s", registration_id)
    return fetch_registration(engine, registration_id)
