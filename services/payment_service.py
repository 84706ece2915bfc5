# services/payment_service.py
"""
Simulated checkout for memberships, tickets and donations.

Nothing here talks to a gateway: each method validates its form, sleeps
for the fixed processing delay (scaled by PAYMENT_DELAY_SCALE) and hands
back a PaymentResult. Callers record the payment themselves, usually from
the on_success callback.
"""
from __future__ import annotations

import logging
import re
import secrets
import time
from typing import Callable, Optional

from config import PAYMENT_DELAY_SCALE
from domain.errors import PaymentError, ValidationError
from domain.models import PaymentResult
from utils.db import now_iso

logger = logging.getLogger(__name__)

METHODS = {
    "fpx": "FPX Online Banking",
    "card": "Credit / Debit Card",
    "grabpay": "GrabPay",
}

FPX_BANKS = [
    "Maybank2u",
    "CIMB Clicks",
    "Public Bank",
    "RHB Now",
    "Hong Leong Connect",
    "AmBank",
]

# seconds, before scaling
FPX_DELAYS = {"select_bank": 1.0, "login": 1.5, "confirm": 2.0}
CARD_DELAY = 2.0
GRABPAY_DELAY = 2.5

_EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/\d{2}$")

OnSuccess = Optional[Callable[[PaymentResult], None]]


def _wait(seconds: float) -> None:
    scaled = seconds * (PAYMENT_DELAY_SCALE or 0)
    if scaled > 0:
        time.sleep(scaled)


def _reference(method: str) -> str:
    return f"{method.upper()}-{secrets.token_hex(4).upper()}"


def _check_amount(amount) -> float:
    try:
        value = round(float(amount), 2)
    except (TypeError, ValueError):
        raise PaymentError("Invalid payment amount")
    if value <= 0:
        raise PaymentError("Payment amount must be greater than zero")
    return value


def _complete(method: str, amount: float, detail: str, on_success: OnSuccess) -> PaymentResult:
    result = PaymentResult(
        method=method,
        amount=amount,
        reference=_reference(method),
        paid_at=now_iso(),
        detail=detail,
    )
    logger.info("Simulated %s payment of %.2f approved (%s)", method, amount, result.reference)
    if on_success:
        on_success(result)
    return result


# ── formatting (mirrors the input masks) ─────────────────────────
def format_card_number(value: str) -> str:
    """'4111111111111111' → '4111 1111 1111 1111' (max 16 digits)."""
    digits = re.sub(r"\D", "", value or "")[:16]
    return " ".join(digits[i:i + 4] for i in range(0, len(digits), 4))


def format_expiry(value: str) -> str:
    digits = re.sub(r"\D", "", value or "")[:4]
    if len(digits) >= 3:
        return f"{digits[:2]}/{digits[2:]}"
    return digits


def validate_card(card_number: str, expiry: str, cvc: str, name_on_card: str) -> list[str]:
    errors: list[str] = []
    if len(re.sub(r"\D", "", card_number or "")) != 16:
        errors.append("Card number must be 16 digits")
    if not _EXPIRY_RE.match((expiry or "").strip()):
        errors.append("Expiry must be in MM/YY format")
    c = (cvc or "").strip()
    if not c.isdigit() or len(c) < 3:
        errors.append("CVC must be at least 3 digits")
    if not (name_on_card or "").strip():
        errors.append("Name on card is required")
    return errors


# ── methods ──────────────────────────────────────────────────────
def pay_fpx(amount, bank: str, on_success: OnSuccess = None,
            on_step: Optional[Callable[[str], None]] = None) -> PaymentResult:
    """Select bank → log in → confirm, each with its own fake delay."""
    amount = _check_amount(amount)
    if bank not in FPX_BANKS:
        raise ValidationError("Please select your bank")
    for step, delay in FPX_DELAYS.items():
        if on_step:
            on_step(step)
        _wait(delay)
    return _complete("fpx", amount, bank, on_success)


def pay_card(amount, card_number: str, expiry: str, cvc: str, name_on_card: str,
             on_success: OnSuccess = None) -> PaymentResult:
    amount = _check_amount(amount)
    errors = validate_card(card_number, expiry, cvc, name_on_card)
    if errors:
        raise ValidationError(errors)
    _wait(CARD_DELAY)
    last4 = re.sub(r"\D", "", card_number)[-4:]
    return _complete("card", amount, f"**** {last4}", on_success)


def pay_grabpay(amount, on_success: OnSuccess = None) -> PaymentResult:
    amount = _check_amount(amount)
    _wait(GRABPAY_DELAY)
    return _complete("grabpay", amount, "GrabPay wallet", on_success)


def process_payment(method: str, amount, form: Optional[dict] = None,
                    on_success: OnSuccess = None) -> PaymentResult:
    """Dispatch on method name; `form` carries the method's fields."""
    form = form or {}
    if method == "fpx":
        return pay_fpx(amount, form.get("bank", ""), on_success=on_success)
    if method == "card":
        return pay_card(
            amount,
            form.get("card_number", ""),
            form.get("expiry", ""),
            form.get("cvc", ""),
            form.get("name_on_card", ""),
            on_success=on_success,
        )
    if method == "grabpay":
        return pay_grabpay(amount, on_success=on_success)
    raise PaymentError(f"Unsupported payment method: {method}")
