# services/phone_verification.py
"""
SMS one-time codes for phone verification.

Codes are random digits, stored hashed with an expiry and an attempt
counter. A successful check consumes the code and, for a signed-in user,
marks the phone number verified.
"""
from __future__ import annotations

import datetime
import logging
import secrets
from typing import Callable, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from werkzeug.security import generate_password_hash, check_password_hash

from config import OTP_LENGTH, OTP_TTL_SECONDS, OTP_MAX_ATTEMPTS, ORG_SHORT
from domain.models import VerificationResult
from services.sms_service import send_sms
from utils.db import new_id, now_iso, to_iso, utcnow
from utils.validation import is_valid_phone, normalize_phone

logger = logging.getLogger(__name__)


def _generate_code(length: int = OTP_LENGTH) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


def send_verification_code(
    engine: Engine,
    phone_number: str,
    *,
    sender: Callable[[str, str], None] = send_sms,
) -> VerificationResult:
    if not is_valid_phone(phone_number):
        return VerificationResult(False, "Please enter a valid phone number")

    phone = normalize_phone(phone_number)
    code = _generate_code()
    expires = to_iso(utcnow() + datetime.timedelta(seconds=OTP_TTL_SECONDS))

    with engine.begin() as conn:
        # Only the newest code is usable
        conn.execute(
            text("UPDATE phone_otps SET consumed = TRUE WHERE phone_number = :p AND consumed = FALSE"),
            {"p": phone},
        )
        conn.execute(
            text("""
                INSERT INTO phone_otps (id, phone_number, code_hash, expires_at, attempts, consumed, created_at)
                VALUES (:id, :p, :h, :exp, 0, FALSE, :now)
            """),
            {"id": new_id(), "p": phone, "h": generate_password_hash(code),
             "exp": expires, "now": now_iso()},
        )

    try:
        sender(phone, f"Your {ORG_SHORT} verification code is {code}. It expires in {OTP_TTL_SECONDS // 60} minutes.")
    except Exception as e:
        logger.exception("Failed to send verification SMS to %s", phone)
        return VerificationResult(False, str(e) or "Failed to send verification code")

    return VerificationResult(True, "Verification code sent successfully")


def verify_phone_number(
    engine: Engine,
    phone_number: str,
    code: str,
    user_id: Optional[str] = None,
) -> VerificationResult:
    phone = normalize_phone(phone_number)
    code = (code or "").strip()
    if not code.isdigit() or len(code) != OTP_LENGTH:
        return VerificationResult(False, f"Please enter the {OTP_LENGTH}-digit code")

    with engine.begin() as conn:
        otp = conn.execute(
            text("""
                SELECT id, code_hash, expires_at, attempts
                FROM phone_otps
                WHERE phone_number = :p AND consumed = FALSE
                ORDER BY created_at DESC
                LIMIT 1
            """),
            {"p": phone},
        ).mappings().first()

        if not otp:
            return VerificationResult(False, "No active verification code. Please request a new one.")
        if otp["expires_at"] < now_iso():
            conn.execute(text("UPDATE phone_otps SET consumed = TRUE WHERE id = :id"), {"id": otp["id"]})
            return VerificationResult(False, "Verification code has expired. Please request a new one.")
        if int(otp["attempts"] or 0) >= OTP_MAX_ATTEMPTS:
            conn.execute(text("UPDATE phone_otps SET consumed = TRUE WHERE id = :id"), {"id": otp["id"]})
            return VerificationResult(False, "Too many attempts. Please request a new code.")

        if not check_password_hash(otp["code_hash"], code):
            conn.execute(
                text("UPDATE phone_otps SET attempts = attempts + 1 WHERE id = :id"),
                {"id": otp["id"]},
            )
            return VerificationResult(False, "Invalid verification code")

        conn.execute(text("UPDATE phone_otps SET consumed = TRUE WHERE id = :id"), {"id": otp["id"]})

        if user_id:
            user = conn.execute(
                text("SELECT id, phone_number, phone_verified, phone_change_count FROM users WHERE id = :id"),
                {"id": user_id},
            ).mappings().first()
            if not user:
                return VerificationResult(False, "User is not authenticated. Please sign in again.")

            # Replacing a verified number uses up the single allowed change
            changes = int(user["phone_change_count"] or 0)
            if user["phone_verified"] and normalize_phone(user["phone_number"] or "") != phone:
                if changes >= 1:
                    return VerificationResult(
                        False,
                        "You can only edit your phone number once. "
                        "Please contact support if you need to change it again.",
                    )
                changes += 1

            conn.execute(
                text("""
                    UPDATE users
                       SET phone_number = :p, phone_verified = TRUE,
                           phone_change_count = :changes, updated_at = :now
                     WHERE id = :id
                """),
                {"p": phone_number.strip(), "changes": changes, "now": now_iso(), "id": user_id},
            )
    logger.info("Phone %s verified%s", phone, f" for user {user_id}" if user_id else "")
    return VerificationResult(True, "Phone number verified successfully")
