# services/auth_service.py
from __future__ import annotations

import hmac
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from werkzeug.security import generate_password_hash, check_password_hash

from config import ADMIN_ACCESS_KEY
from domain.errors import AuthError, NotFoundError, ValidationError
from domain.models import UserProfile
from utils.db import new_id, now_iso
from utils.validation import (
    PASSWORD_MIN_LEN,
    STATES,
    clean_email,
    clean_text,
    is_valid_email,
    is_valid_phone,
    is_valid_postcode,
)

logger = logging.getLogger(__name__)

__all__ = [
    "sign_up", "sign_in", "get_user", "update_profile", "update_address",
    "is_address_complete", "next_onboarding_step", "check_admin_access",
]

_USER_COLS = """
    id, email, full_name, phone_number, phone_verified, phone_change_count,
    address_line1, address_line2, postcode, city, state, address_complete,
    is_admin, created_at, updated_at
"""


def _fetch_user(conn, user_id: str) -> Optional[UserProfile]:
    row = conn.execute(
        text(f"SELECT {_USER_COLS} FROM users WHERE id = :id"),
        {"id": user_id},
    ).mappings().first()
    return UserProfile.from_row(row) if row else None


def validate_sign_up(email: str, password: str, confirm_password: str,
                     full_name: str, phone: str) -> list[str]:
    errors: list[str] = []
    if not email:
        errors.append("Email is required")
    elif not is_valid_email(email):
        errors.append("Please enter a valid email address")
    if not full_name:
        errors.append("Full name is required")
    if not phone:
        errors.append("Phone number is required")
    elif not is_valid_phone(phone):
        errors.append("Please enter a valid phone number")
    if password != confirm_password:
        errors.append("Passwords do not match")
    elif len(password or "") < PASSWORD_MIN_LEN:
        errors.append(f"Password must be at least {PASSWORD_MIN_LEN} characters")
    return errors


def sign_up(engine: Engine, email: str, password: str, confirm_password: str,
            full_name: str, phone: str) -> UserProfile:
    email = clean_email(email)
    full_name = clean_text(full_name)
    phone = clean_text(phone)

    errors = validate_sign_up(email, password, confirm_password, full_name, phone)
    if errors:
        raise ValidationError(errors)

    now = now_iso()
    uid = new_id()
    with engine.begin() as conn:
        exists = conn.execute(
            text("SELECT 1 FROM users WHERE email = :email"), {"email": email}
        ).first()
        if exists:
            raise ValidationError("An account with this email already exists")
        conn.execute(
            text("""
                INSERT INTO users (id, email, password_hash, full_name, phone_number,
                                   phone_verified, phone_change_count, address_complete,
                                   is_admin, created_at, updated_at)
                VALUES (:id, :email, :pw, :name, :phone,
                        FALSE, 0, FALSE, FALSE, :now, :now)
            """),
            {"id": uid, "email": email, "pw": generate_password_hash(password),
             "name": full_name, "phone": phone, "now": now},
        )
        user = _fetch_user(conn, uid)
    logger.info("Signed up user %s", uid)
    return user


def sign_in(engine: Engine, email: str, password: str) -> UserProfile:
    email = clean_email(email)
    if not email or not is_valid_email(email):
        raise ValidationError("Please enter a valid email address")
    with engine.connect() as conn:
        row = conn.execute(
            text("SELECT id, password_hash FROM users WHERE email = :email"),
            {"email": email},
        ).mappings().first()
        if not row or not check_password_hash(row["password_hash"], password or ""):
            raise AuthError("Invalid email or password")
        return _fetch_user(conn, row["id"])


def get_user(engine: Engine, user_id: str) -> UserProfile:
    with engine.connect() as conn:
        user = _fetch_user(conn, user_id)
    if not user:
        raise NotFoundError("User is not authenticated. Please sign in again.")
    return user


def update_profile(engine: Engine, user_id: str, *, full_name: Optional[str] = None,
                   phone_number: Optional[str] = None) -> UserProfile:
    """
    Merge profile changes. A new phone number has to be verified again, and a
    verified number may only be changed once.
    """
    user = get_user(engine, user_id)
    updates: dict = {}

    if full_name is not None:
        name = clean_text(full_name)
        if not name:
            raise ValidationError("Full name is required")
        updates["full_name"] = name

    if phone_number is not None:
        phone = clean_text(phone_number)
        if not is_valid_phone(phone):
            raise ValidationError("Please enter a valid phone number")
        if phone != (user.phone_number or ""):
            if user.phone_verified and user.phone_change_count >= 1:
                raise ValidationError(
                    "You can only edit your phone number once. "
                    "Please contact support if you need to change it again."
                )
            updates["phone_number"] = phone
            updates["phone_verified"] = False
            if user.phone_verified:
                updates["phone_change_count"] = user.phone_change_count + 1

    if not updates:
        return user

    updates["updated_at"] = now_iso()
    sets = ", ".join(f"{k} = :{k}" for k in updates)
    with engine.begin() as conn:
        conn.execute(text(f"UPDATE users SET {sets} WHERE id = :id"), {**updates, "id": user_id})
        return _fetch_user(conn, user_id)


def validate_address(address_line1: str, postcode: str, city: str, state: str) -> list[str]:
    errors: list[str] = []
    if not address_line1:
        errors.append("Address Line 1 is required")
    if not postcode:
        errors.append("Postcode is required")
    elif not is_valid_postcode(postcode):
        errors.append("Postcode must be 5 digits")
    if not city:
        errors.append("City is required")
    if not state:
        errors.append("State is required")
    elif state not in STATES:
        errors.append("Please select a valid state")
    return errors


def update_address(engine: Engine, user_id: str, *, address_line1: str, postcode: str,
                   city: str, state: str, address_line2: Optional[str] = None) -> UserProfile:
    line1 = clean_text(address_line1)
    line2 = clean_text(address_line2) or None
    postcode = clean_text(postcode)
    city = clean_text(city)
    state = clean_text(state)

    errors = validate_address(line1, postcode, city, state)
    if errors:
        raise ValidationError(errors)

    get_user(engine, user_id)
    with engine.begin() as conn:
        conn.execute(
            text("""
                UPDATE users
                   SET address_line1 = :l1, address_line2 = :l2, postcode = :pc,
                       city = :city, state = :state, address_complete = TRUE,
                       updated_at = :now
                 WHERE id = :id
            """),
            {"l1": line1, "l2": line2, "pc": postcode, "city": city,
             "state": state, "now": now_iso(), "id": user_id},
        )
        return _fetch_user(conn, user_id)


def is_address_complete(user: Optional[UserProfile]) -> bool:
    if not user:
        return False
    return bool(user.address_line1 and user.postcode and user.city and user.state)


def next_onboarding_step(user: UserProfile) -> str:
    """New accounts complete their address first, then verify the phone."""
    if not is_address_complete(user):
        return "address"
    if not user.phone_verified:
        return "phone"
    return "done"


def check_admin_access(key: str) -> None:
    if not ADMIN_ACCESS_KEY:
        raise AuthError("Admin access is not configured")
    if not hmac.compare_digest((key or "").encode(), ADMIN_ACCESS_KEY.encode()):
        raise AuthError("Access Denied: Incorrect Password")
