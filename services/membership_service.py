# services/membership_service.py
"""
Membership tiers, the two-step application form and card renewal.

Step 1 collects role specific details, step 2 is a short survey; the
application is stored once payment has a reference. A user holds a single
membership row: upgrading rewrites it in place.
"""
from __future__ import annotations

import datetime
import json
import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import Engine

from config import MEMBERSHIP_TERM_DAYS
from domain.errors import NotFoundError, PaymentError, ValidationError
from domain.models import Membership, PaymentResult, UserProfile
from utils.db import new_id, now_iso, to_iso, utcnow
from utils.validation import clean_email, clean_text, is_valid_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tier:
    role: str
    title: str
    subtitle: str
    annual_fee: float
    entry_fee: float
    description: str

    @property
    def first_payment(self) -> float:
        return self.annual_fee + self.entry_fee


TIERS = {
    "ordinary": Tier(
        "ordinary", "Ordinary Member", "The Standard Bearer", 90.0, 50.0,
        "Annual subscription RM90 + RM50 one-time entry fee.",
    ),
    "student": Tier(
        "student", "Student Member", "For the Next Generation", 20.0, 50.0,
        "Annual subscription RM20 + RM50 one-time entry fee (Ages 25 and below).",
    ),
    "corporate": Tier(
        "corporate", "Corporate Member", "For Organizations", 2500.0, 0.0,
        "Annual subscription RM 2,500.00. For registered companies/societies.",
    ),
}
ROLES = list(TIERS)
DEFAULT_ROLE = "ordinary"

INTEREST_OPTIONS = ["Trips", "Talks / Seminars", "Workshops", "Exhibitions", "Other"]
REFERRAL_OPTIONS = [
    "Newspaper", "Radio", "BWM Website", "Internet Search",
    "Exhibitions/Talks/Events", "Friends/Family", "School/University",
    "Tourism Websites", "Walk In Visit", "Tours", "Other",
]
VOLUNTEER_OPTIONS = [
    "Heritage Guide/ Rumah Penghulu Tours", "Resource Centre/Library",
    "Events", "Fund Raising", "Other",
]
EDUCATION_LEVELS = {
    "School": "School (Primary or Secondary)",
    "Undergraduate": "Undergraduate (Diploma, Degree or equivalent)",
    "Postgraduate": "Postgraduate (Master's Degree, Doctorate)",
}

_CORPORATE_FIELDS = (
    "company_name", "company_roc", "company_phone", "company_fax",
    "representative_name", "representative_designation",
)
_PERSONAL_FIELDS = ("date_of_birth", "profession")
_STUDENT_FIELDS = ("student_email", "education_level")
_SURVEY_FIELDS = (
    "interests", "other_interest", "referral_sources", "other_referral_source",
    "volunteer_interest", "volunteer_areas", "other_volunteer_area",
)
_ALL_FIELDS = (
    ("email", "ic_number") + _CORPORATE_FIELDS + _PERSONAL_FIELDS
    + _STUDENT_FIELDS + _SURVEY_FIELDS
)
_LIST_FIELDS = {"interests", "referral_sources", "volunteer_areas"}


def role_for_tier(tier: str) -> str:
    for role, t in TIERS.items():
        if t.title == tier:
            return role
    return DEFAULT_ROLE


def annual_fee(tier: str) -> float:
    """Renewal price for a stored tier title; unknown tiers pay the ordinary rate."""
    for t in TIERS.values():
        if t.title == tier:
            return t.annual_fee
    return TIERS[DEFAULT_ROLE].annual_fee


def joining_fee(role: str) -> float:
    """What a new applicant pays today: annual fee plus any entry fee."""
    return TIERS.get(role, TIERS[DEFAULT_ROLE]).first_payment


def is_gold_card(tier: str) -> bool:
    t = (tier or "").lower()
    return "corporate" in t or "life" in t


# ──────────────────────────────────────────────────────────────
# Validation
# ──────────────────────────────────────────────────────────────
def _val(form: dict, key: str) -> str:
    return clean_text(form.get(key))


def validate_details(role: str, form: dict) -> list[str]:
    """Step 1: role specific details."""
    if role not in TIERS:
        return ["Please select a membership type"]
    errors: list[str] = []
    if role == "corporate":
        if not all(_val(form, k) for k in ("company_name", "company_roc",
                                            "company_phone", "representative_name")):
            errors.append("Please fill in all company details")
        if not _val(form, "email"):
            errors.append("Please enter email address")
    else:
        if not all(_val(form, k) for k in ("email", "ic_number", "date_of_birth", "profession")):
            errors.append("Please fill in all details")
        if role == "student":
            if not _val(form, "student_email"):
                errors.append("Please enter student email")
            if not _val(form, "education_level"):
                errors.append("Please select your education level")

    email = _val(form, "email")
    if email and not is_valid_email(clean_email(email)):
        errors.append("Please enter a valid email address")
    return errors


def validate_survey(form: dict) -> list[str]:
    """Step 2: interests, referral and volunteering."""
    errors: list[str] = []
    if "Other" in (form.get("referral_sources") or []) and not _val(form, "other_referral_source"):
        errors.append("Please specify where you heard about us")
    if "Other" in (form.get("interests") or []) and not _val(form, "other_interest"):
        errors.append("Please specify your other interest")

    volunteer = form.get("volunteer_interest")
    if volunteer is None:
        errors.append("Please answer if you are interested to volunteer")
    elif volunteer:
        areas = form.get("volunteer_areas") or []
        if not areas:
            errors.append("Please select at least one area to volunteer in")
        elif "Other" in areas and not _val(form, "other_volunteer_area"):
            errors.append("Please specify your other volunteer area")
    return errors


def _row_values(role: str, form: dict) -> dict:
    """Only the fields relevant to the role are kept; the rest are stored as NULL."""
    keep = {"email", "ic_number"} | set(_SURVEY_FIELDS)
    if role == "corporate":
        keep |= set(_CORPORATE_FIELDS)
    else:
        keep |= set(_PERSONAL_FIELDS)
        if role == "student":
            keep |= set(_STUDENT_FIELDS)

    values: dict = {}
    for k in _ALL_FIELDS:
        if k not in keep:
            values[k] = None
        elif k in _LIST_FIELDS:
            values[k] = json.dumps(list(form.get(k) or []))
        elif k == "volunteer_interest":
            v = form.get(k)
            values[k] = None if v is None else bool(v)
        elif k == "email":
            values[k] = clean_email(form.get(k))
        else:
            values[k] = _val(form, k) or None
    return values


# ──────────────────────────────────────────────────────────────
# Persistence
# ──────────────────────────────────────────────────────────────
def get_membership(engine: Engine, user_id: str) -> Optional[Membership]:
    with engine.connect() as conn:
        row = conn.execute(
            text("""
                SELECT * FROM memberships
                WHERE user_id = :uid
                ORDER BY created_at DESC
                LIMIT 1
            """),
            {"uid": user_id},
        ).mappings().first()
    return Membership.from_row(row) if row else None


def get_membership_by_id(engine: Engine, membership_id: str) -> Optional[Membership]:
    with engine.connect() as conn:
        row = conn.execute(
            text("SELECT * FROM memberships WHERE id = :id"),
            {"id": membership_id},
        ).mappings().first()
    return Membership.from_row(row) if row else None


def register_membership(
    engine: Engine,
    user: UserProfile,
    role: str,
    form: dict,
    payment_reference: str,
    *,
    upgrade: bool = False,
) -> Membership:
    if user is None:
        raise ValidationError("You must be logged in to register.")

    errors = validate_details(role, form) + validate_survey(form)
    if not clean_text(payment_reference):
        errors.append("Please enter payment reference")
    if errors:
        raise ValidationError(errors)

    existing = get_membership(engine, user.id)
    if existing and not upgrade:
        raise ValidationError("You already have a membership. Redirecting to your membership card.")

    tier = TIERS[role]
    now = now_iso()
    values = _row_values(role, form)
    params = {
        **values,
        "tier": tier.title,
        "full_name": user.full_name or "",
        "payment_reference": clean_text(payment_reference),
        "expires_at": to_iso(utcnow() + datetime.timedelta(days=MEMBERSHIP_TERM_DAYS)),
        "now": now,
    }

    cols = list(values)
    with engine.begin() as conn:
        if existing:
            sets = ", ".join(f"{c} = :{c}" for c in cols)
            conn.execute(
                text(f"""
                    UPDATE memberships
                       SET {sets}, tier = :tier, full_name = :full_name, status = 'active',
                           payment_reference = :payment_reference, expires_at = :expires_at,
                           updated_at = :now
                     WHERE id = :id
                """),
                {**params, "id": existing.id},
            )
            mid = existing.id
            logger.info("Upgraded membership %s to %s", mid, tier.title)
        else:
            mid = new_id()
            placeholders = ", ".join(f":{c}" for c in cols)
            conn.execute(
                text(f"""
                    INSERT INTO memberships (id, user_id, status, tier, full_name, {", ".join(cols)},
                                             payment_reference, expires_at, created_at, updated_at)
                    VALUES (:id, :uid, 'active', :tier, :full_name, {placeholders},
                            :payment_reference, :expires_at, :now, :now)
                """),
                {**params, "id": mid, "uid": user.id},
            )
            logger.info("Registered %s membership %s for user %s", tier.title, mid, user.id)

    return get_membership_by_id(engine, mid)


def _as_date(today: Union[None, str, datetime.date, datetime.datetime]) -> datetime.date:
    if today is None:
        return utcnow().date()
    if isinstance(today, datetime.datetime):
        return today.date()
    if isinstance(today, datetime.date):
        return today
    return datetime.date.fromisoformat(str(today)[:10])


def membership_state(membership: Optional[Membership], today=None) -> str:
    """'active', 'expired' or 'none'."""
    if membership is None:
        return "none"
    if (membership.status or "").lower() != "active":
        return "expired"
    if membership.expires_at:
        expires = datetime.date.fromisoformat(membership.expires_at[:10])
        if expires < _as_date(today):
            return "expired"
    return "active"


def renew_membership(engine: Engine, membership_id: str, payment: Optional[PaymentResult]) -> Membership:
    """Extend by one term from today once the annual fee has been paid."""
    membership = get_membership_by_id(engine, membership_id)
    if not membership:
        raise NotFoundError("Membership not found")

    fee = annual_fee(membership.tier)
    if payment is None:
        raise PaymentError("Payment is required to renew your membership")
    if round(payment.amount, 2) < round(fee, 2):
        raise PaymentError(f"Renewal requires a payment of RM{fee:,.2f}")

    expires = to_iso(utcnow() + datetime.timedelta(days=MEMBERSHIP_TERM_DAYS))
    with engine.begin() as conn:
        conn.execute(
            text("""
                UPDATE memberships
                   SET status = 'active', expires_at = :exp,
                       payment_reference = :ref, updated_at = :now
                 WHERE id = :id
            """),
            {"exp": expires, "ref": payment.reference, "now": now_iso(), "id": membership_id},
        )
    logger.info("Renewed membership %s until %s", membership_id, expires)
    return get_membership_by_id(engine, membership_id)
